"""
Tests for the install/remove dispatcher.
"""

import threading

import pytest

from ultrabunt.adapters.mock import MockBackend
from ultrabunt.adapters.packaging.apt import AptBackend
from ultrabunt.adapters.registry import BackendRegistry
from ultrabunt.adapters.shell.command import CommandRunner
from ultrabunt.core.config.loader import Settings
from ultrabunt.core.context import build_services
from ultrabunt.core.models.action import ErrorKind
from ultrabunt.core.models.package import Backend
from ultrabunt.core.services.custom_installers import CustomInstallerRegistry, MockCustomInstaller


def _backend(services, backend: Backend) -> MockBackend:
    return services.backends.get(backend)


# ── Install ──────────────────────────────────────────────────────────


class TestInstall:
    def test_unknown_package(self, services):
        result = services.dispatcher.install("no-such-package")
        assert not result.ok
        assert result.error_kind is ErrorKind.NOT_FOUND
        assert result.name == "no-such-package"

    def test_apt_round_trip(self, services):
        apt = _backend(services, Backend.APT)
        services.cache.rebuild()

        result = services.dispatcher.install("htop")
        assert result.ok
        assert result.action == "install"
        assert services.dispatcher.is_installed("htop")
        assert services.cache.contains(Backend.APT, "htop")

        result = services.dispatcher.remove("htop")
        assert result.ok
        assert not services.dispatcher.is_installed("htop")
        assert not services.cache.contains(Backend.APT, "htop")
        assert apt.installed == set()

    def test_apt_refreshes_index_first(self, services):
        apt = _backend(services, Backend.APT)
        services.dispatcher.install("htop")
        assert apt.calls == [("refresh_index", ""), ("install", "htop")]

    def test_other_backends_ensure_ready(self, services):
        snap = _backend(services, Backend.SNAP)
        assert services.dispatcher.install("vscode-snap").ok
        assert snap.calls == [("ensure_ready", ""), ("install", "code")]

    def test_flatpak_app_without_dependency_bootstraps(self, services):
        flatpak = _backend(services, Backend.FLATPAK)
        assert services.dispatcher.install("vscode-flatpak").ok
        assert flatpak.calls == [("ensure_ready", ""), ("install", "com.visualstudio.code")]

    def test_dependency_missing_makes_no_backend_call(self, services):
        apt = _backend(services, Backend.APT)
        services.cache.rebuild()

        result = services.dispatcher.install("docker-compose")
        assert not result.ok
        assert result.error_kind is ErrorKind.DEPENDENCY_MISSING
        assert "docker" in result.error
        assert apt.calls == []
        assert services.installers.get("docker").calls == ["is_installed"]

    def test_dependency_satisfied(self, services):
        services.installers.get("docker").installed = True
        services.cache.rebuild()
        result = services.dispatcher.install("docker-compose")
        assert result.ok
        assert services.cache.contains(Backend.APT, "docker-compose-plugin")

    def test_same_tool_on_two_backends_is_independent(self, services):
        services.cache.rebuild()
        assert services.dispatcher.install("vscode-snap").ok
        assert services.dispatcher.is_installed("vscode-snap")
        assert not services.dispatcher.is_installed("vscode")
        assert services.installers.get("vscode").calls == ["is_installed"]

    def test_custom_install(self, services):
        result = services.dispatcher.install("docker")
        assert result.ok
        assert services.installers.get("docker").installed
        assert services.dispatcher.is_installed("docker")

    def test_custom_install_note(self, services):
        installer = MockCustomInstaller("ollama", note="Run 'ollama pull llama3' to get a model")
        services.installers.register(installer)
        result = services.dispatcher.install("ollama")
        assert result.ok
        assert result.note == installer.note

    def test_custom_failure(self, services):
        services.installers.get("docker").fail_with = "repository key rejected"
        result = services.dispatcher.install("docker")
        assert result.error_kind is ErrorKind.BACKEND_COMMAND_FAILED
        assert "repository key rejected" in result.output
        assert result.note is None

    def test_unknown_custom_installer(self, mock_backends):
        services = build_services(
            Settings(), runner=CommandRunner(), backends=mock_backends,
            installers=CustomInstallerRegistry(),
        )
        result = services.dispatcher.install("docker")
        assert result.error_kind is ErrorKind.UNKNOWN_CUSTOM_INSTALLER

    def test_backend_not_ready(self, services):
        snap = _backend(services, Backend.SNAP)
        snap.set_not_ready("snapd did not become ready")
        result = services.dispatcher.install("vscode-snap")
        assert result.error_kind is ErrorKind.BACKEND_UNAVAILABLE
        assert result.error == "snapd did not become ready"
        assert snap.mutation_count == 0

    def test_no_adapter_registered(self):
        backends = BackendRegistry(mock_mode=True)
        backends.register(MockBackend(Backend.APT))
        services = build_services(
            Settings(), runner=CommandRunner(), backends=backends,
            installers=CustomInstallerRegistry(),
        )
        result = services.dispatcher.install("tokei")
        assert result.error_kind is ErrorKind.BACKEND_UNAVAILABLE

    def test_apt_get_missing(self, make_runner):
        runner = make_runner(available={"env", "dpkg-query"})
        backends = BackendRegistry()
        backends.register(AptBackend(runner))
        services = build_services(
            Settings(), runner=runner, backends=backends,
            installers=CustomInstallerRegistry(),
        )
        result = services.dispatcher.install("htop")
        assert result.error_kind is ErrorKind.BACKEND_UNAVAILABLE
        assert not runner.ran("env")

    def test_command_failure_keeps_cache(self, services):
        apt = _backend(services, Backend.APT)
        apt.set_failure("htop", "E: Unable to locate package htop")
        services.cache.rebuild()

        result = services.dispatcher.install("htop")
        assert result.error_kind is ErrorKind.BACKEND_COMMAND_FAILED
        assert "Unable to locate package" in result.output
        assert not services.cache.contains(Backend.APT, "htop")

    def test_cancelled(self, services):
        cancel = threading.Event()
        cancel.set()
        result = services.dispatcher.install("vscode-snap", cancel=cancel)
        assert result.error_kind is ErrorKind.CANCELLED
        assert _backend(services, Backend.SNAP).installed == set()

    def test_npm_install(self, services):
        npm = _backend(services, Backend.NPM)
        assert services.dispatcher.install("typescript").ok
        assert npm.installed == {"typescript"}
        assert services.dispatcher.is_installed("typescript")

    def test_result_serializes(self, services):
        data = services.dispatcher.install("no-such-package").to_dict()
        assert data["error_kind"] == "not_found"
        assert data["ok"] is False


# ── Remove ───────────────────────────────────────────────────────────


class TestRemove:
    def test_unknown_package(self, services):
        assert services.dispatcher.remove("nope").error_kind is ErrorKind.NOT_FOUND

    def test_dependents_reported_not_blocking(self, services):
        apt = _backend(services, Backend.APT)
        flatpak = _backend(services, Backend.FLATPAK)
        apt.mark_installed("flatpak")
        flatpak.mark_installed("org.localsend.localsend_app")
        services.cache.rebuild()

        result = services.dispatcher.remove("flatpak")
        assert result.ok
        assert "localsend" in result.dependents
        assert "flatpak" not in apt.installed

    def test_no_dependents(self, services):
        _backend(services, Backend.APT).mark_installed("htop")
        result = services.dispatcher.remove("htop")
        assert result.ok
        assert result.dependents == []

    def test_backend_unavailable(self, services):
        cargo = _backend(services, Backend.CARGO)
        cargo.mark_installed("tokei")
        cargo.set_available(False)
        result = services.dispatcher.remove("tokei")
        assert result.error_kind is ErrorKind.BACKEND_UNAVAILABLE
        assert cargo.mutation_count == 0

    def test_remove_does_not_bootstrap(self, services):
        _backend(services, Backend.SNAP).set_available(False)
        services.dispatcher.remove("vscode-snap")
        assert ("ensure_ready", "") not in _backend(services, Backend.SNAP).calls

    def test_custom_remove(self, services):
        installer = services.installers.get("docker")
        installer.installed = True
        assert services.dispatcher.remove("docker").ok
        assert not installer.installed

    def test_remove_failure(self, services):
        apt = _backend(services, Backend.APT)
        apt.mark_installed("htop")
        apt.set_failure("htop", "dpkg lock held")
        services.cache.rebuild()
        result = services.dispatcher.remove("htop")
        assert result.error_kind is ErrorKind.BACKEND_COMMAND_FAILED
        assert services.cache.contains(Backend.APT, "htop")


class TestInstalledDependents:
    @pytest.mark.parametrize("installed,expected", [
        (set(), []),
        ({"org.localsend.localsend_app"}, ["localsend"]),
    ])
    def test_only_installed_counted(self, services, installed, expected):
        flatpak = _backend(services, Backend.FLATPAK)
        for app in installed:
            flatpak.mark_installed(app)
        services.cache.rebuild()
        assert [n for n in services.dispatcher.installed_dependents("flatpak") if n == "localsend"] == expected
