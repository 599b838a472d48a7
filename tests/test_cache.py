"""
Tests for the installed-set cache.
"""

import threading

import pytest

from ultrabunt.adapters.mock import MockBackend
from ultrabunt.adapters.shell.command import CommandRunner
from ultrabunt.core.config.loader import Settings
from ultrabunt.core.context import build_services
from ultrabunt.core.models.package import Backend
from ultrabunt.core.services.custom_installers import CustomInstallerRegistry


def _apt(services) -> MockBackend:
    return services.backends.get(Backend.APT)


class _GatedBackend(MockBackend):
    """MockBackend that takes its listing, then blocks until released."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.entered = threading.Event()
        self.gate = threading.Event()

    def list_installed(self):
        ids = super().list_installed()
        self.entered.set()
        self.gate.wait(timeout=10)
        return ids


# ── Rebuild ──────────────────────────────────────────────────────────


class TestRebuild:
    def test_cached_hit_without_probe(self, services):
        apt = _apt(services)
        apt.mark_installed("htop")
        assert services.cache.rebuild()

        htop = services.catalog.get("htop")
        assert services.cache.is_installed(htop)
        assert apt.probe_calls == []

    def test_listed_miss_is_authoritative(self, services):
        assert services.cache.rebuild()
        git = services.catalog.get("git")
        assert not services.cache.is_installed(git)
        assert _apt(services).probe_calls == []

    def test_idempotent(self, services):
        _apt(services).mark_installed("git")
        services.backends.get(Backend.SNAP).mark_installed("firefox")
        services.cache.rebuild()
        first = services.cache.snapshot()
        services.cache.rebuild()
        assert services.cache.snapshot() == first
        assert (Backend.APT, "git") in first
        assert (Backend.SNAP, "firefox") in first

    def test_replaces_whole_set(self, services):
        apt = _apt(services)
        apt.mark_installed("git")
        services.cache.rebuild()
        apt.mark_installed("git", installed=False)
        services.cache.rebuild()
        assert not services.cache.contains(Backend.APT, "git")

    def test_lists_only_cached_backends(self, services):
        services.cache.rebuild()
        assert services.backends.get(Backend.NPM).list_calls == 0
        assert services.backends.get(Backend.CARGO).list_calls == 0
        assert services.cache.listed_backends == frozenset(Backend.cached())

    def test_restricted_to_backends(self, services):
        services.cache.rebuild(backends=[Backend.APT])
        assert _apt(services).list_calls == 1
        assert services.backends.get(Backend.SNAP).list_calls == 0
        assert services.cache.listed_backends == frozenset({Backend.APT})

    def test_cancel_keeps_previous_set(self, services):
        apt = _apt(services)
        apt.mark_installed("git")
        services.cache.rebuild()
        before = services.cache.snapshot()

        apt.mark_installed("htop")
        cancel = threading.Event()
        cancel.set()
        assert not services.cache.rebuild(cancel=cancel)
        assert services.cache.snapshot() == before

    def test_built_at(self, services):
        assert services.cache.built_at is None
        services.cache.rebuild()
        assert services.cache.built_at is not None


# ── Fallback probes ──────────────────────────────────────────────────


class TestFallbackProbe:
    def test_unlisted_backend_probes_and_records(self, services):
        unlisted = MockBackend(Backend.APT, installed=["htop"], bulk_listed=False)
        services.backends.register(unlisted)
        services.cache.rebuild()
        assert Backend.APT not in services.cache.listed_backends

        htop = services.catalog.get("htop")
        assert services.cache.is_installed(htop)
        assert unlisted.probe_calls == ["htop"]
        assert services.cache.cached(htop)

        # second read is answered from the set
        assert services.cache.is_installed(htop)
        assert unlisted.probe_calls == ["htop"]

    def test_never_built_probes(self, services):
        _apt(services).mark_installed("htop")
        assert services.cache.is_installed(services.catalog.get("htop"))
        assert _apt(services).probe_calls == ["htop"]

    def test_negative_probe_not_recorded(self, services):
        git = services.catalog.get("git")
        assert not services.cache.is_installed(git)
        assert not services.cache.cached(git)

    def test_npm_always_live(self, services):
        npm = services.backends.get(Backend.NPM)
        typescript = services.catalog.get("typescript")
        services.cache.rebuild()
        assert not services.cache.is_installed(typescript)

        npm.mark_installed("typescript")
        assert services.cache.is_installed(typescript)
        assert npm.probe_calls == ["typescript", "typescript"]
        assert services.cache.size == 0

    def test_custom_uses_installer_detection(self, services):
        docker = services.catalog.get("docker")
        installer = services.installers.get("docker")
        assert not services.cache.is_installed(docker)
        installer.installed = True
        assert services.cache.is_installed(docker)
        assert installer.calls == ["is_installed", "is_installed"]

    def test_custom_without_installer(self, mock_backends):
        services = build_services(
            Settings(), runner=CommandRunner(), backends=mock_backends,
            installers=CustomInstallerRegistry(),
        )
        assert not services.cache.is_installed(services.catalog.get("docker"))

    def test_status_map(self, services):
        _apt(services).mark_installed("git")
        services.cache.rebuild()
        names = ["git", "htop"]
        status = services.cache.status_map(services.catalog.get(n) for n in names)
        assert status == {"git": True, "htop": False}


# ── Point updates ────────────────────────────────────────────────────


class TestUpdateOne:
    def test_sets_and_clears(self, services):
        apt = _apt(services)
        services.cache.rebuild()
        htop = services.catalog.get("htop")

        apt.mark_installed("htop")
        services.cache.update_one(htop)
        assert services.cache.cached(htop)

        apt.mark_installed("htop", installed=False)
        services.cache.update_one(htop)
        assert not services.cache.cached(htop)

    def test_other_keys_untouched(self, services):
        apt = _apt(services)
        apt.mark_installed("git")
        services.cache.rebuild()
        apt.mark_installed("htop")
        services.cache.update_one(services.catalog.get("htop"))
        assert services.cache.snapshot() == {(Backend.APT, "git"), (Backend.APT, "htop")}

    def test_uncached_backend_ignored(self, services):
        npm = services.backends.get(Backend.NPM)
        npm.mark_installed("typescript")
        services.cache.update_one(services.catalog.get("typescript"))
        assert services.cache.size == 0
        assert npm.probe_calls == []


# ── Background refresh ───────────────────────────────────────────────


class TestBackgroundRefresh:
    @pytest.fixture
    def gated(self, services) -> _GatedBackend:
        backend = _GatedBackend(Backend.APT, installed=["git"])
        services.backends.register(backend)
        yield backend
        backend.gate.set()
        services.cache.shutdown()

    def test_completes(self, services):
        _apt(services).mark_installed("git")
        task = services.cache.start_background_refresh()
        assert task.wait(timeout=10)
        assert task.done()
        assert services.cache.contains(Backend.APT, "git")
        services.cache.shutdown()

    def test_single_refresh_in_flight(self, services, gated):
        first = services.cache.start_background_refresh()
        assert gated.entered.wait(timeout=10)
        assert services.cache.start_background_refresh() is first
        assert services.cache.current_refresh is first
        gated.gate.set()
        assert first.wait(timeout=10)

    def test_cancel_discards_result(self, services, gated):
        task = services.cache.start_background_refresh()
        assert gated.entered.wait(timeout=10)
        task.cancel()
        gated.gate.set()
        assert not task.wait(timeout=10)
        assert task.cancelled
        assert services.cache.snapshot() == frozenset()

    def test_wait_timeout(self, services, gated):
        task = services.cache.start_background_refresh()
        assert gated.entered.wait(timeout=10)
        assert not task.wait(timeout=0.05)
        assert not task.done()

    def test_new_task_after_finish(self, services):
        first = services.cache.start_background_refresh()
        first.wait(timeout=10)
        second = services.cache.start_background_refresh()
        assert second is not first
        second.wait(timeout=10)
        services.cache.shutdown()

    def test_install_during_refresh_survives_swap(self, services, gated):
        task = services.cache.start_background_refresh()
        assert gated.entered.wait(timeout=10)

        htop = services.catalog.get("htop")
        assert services.dispatcher.install("htop").ok
        assert services.cache.is_installed(htop)

        gated.gate.set()
        assert task.wait(timeout=10)
        assert services.cache.is_installed(htop)
        assert services.cache.contains(Backend.APT, "git")

    def test_remove_during_refresh_survives_swap(self, services, gated):
        gated.mark_installed("htop")
        task = services.cache.start_background_refresh()
        assert gated.entered.wait(timeout=10)

        assert services.dispatcher.remove("htop").ok

        gated.gate.set()
        assert task.wait(timeout=10)
        assert not services.cache.is_installed(services.catalog.get("htop"))

    def test_fill_on_read_during_refresh_survives_swap(self, services, gated):
        task = services.cache.start_background_refresh([Backend.APT])
        assert gated.entered.wait(timeout=10)

        gated.mark_installed("htop")
        htop = services.catalog.get("htop")
        assert services.cache.probe_and_record(htop)

        gated.gate.set()
        assert task.wait(timeout=10)
        assert services.cache.contains(Backend.APT, "htop")
