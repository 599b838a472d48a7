"""
Tests for service wiring.
"""

from ultrabunt.adapters.packaging.apt import AptBackend
from ultrabunt.core.config.loader import Settings
from ultrabunt.core.context import MOCK_INSTALLED, build_services
from ultrabunt.core.models.package import Backend
from ultrabunt.core.services.custom_installers import MockCustomInstaller


class TestBuildServices:
    def test_mock_mode(self):
        services = build_services(Settings(), mock=True)
        assert services.mock_mode
        assert services.backends.get(Backend.APT).installed == set(MOCK_INSTALLED[Backend.APT])
        assert isinstance(services.installers.get("docker"), MockCustomInstaller)
        assert services.dispatcher.is_installed("git")

    def test_real_backends(self, make_runner):
        services = build_services(Settings(), runner=make_runner())
        assert not services.mock_mode
        assert isinstance(services.backends.apt, AptBackend)
        assert "docker" in services.installers
        assert len(services.installers) == 10

    def test_excluded_from_settings(self):
        services = build_services(Settings(excluded_categories=["gaming"]), mock=True)
        assert services.catalog.excluded == frozenset({"gaming"})

    def test_explicit_exclusions_win(self):
        services = build_services(Settings(excluded_categories=["gaming"]), excluded=(), mock=True)
        assert services.catalog.excluded == frozenset()

    def test_php_version(self):
        services = build_services(Settings(php_version="8.1"), mock=True)
        assert services.catalog.get("php-fpm").backend_id == "php8.1-fpm"

    def test_exclude_updates_dispatcher(self, services):
        services.exclude({"gaming"})
        assert services.dispatcher.catalog is services.catalog
        assert "gaming" in services.catalog.excluded

    def test_visible_backends(self, services):
        services.exclude({cid for cid in (c.id for c in services.catalog.all_categories()) if cid != "core"})
        assert services.visible_backends() == {Backend.APT}

    def test_install_context(self, services):
        ctx = services.install_context()
        assert ctx.runner is services.runner
        assert ctx.node_lts == "20"
        assert ctx.cancel is None


class TestNodeBootstrap:
    def test_npm_bootstrap_runs_nodejs_installer(self, make_runner):
        runner = make_runner(available={"bash", "env", "dpkg-query"})
        services = build_services(Settings(), runner=runner)
        npm = services.backends.get(Backend.NPM)
        ok, error = npm.ensure_ready()
        assert not ok
        assert "npm still missing" in error
        assert any("deb.nodesource.com/setup_20.x" in " ".join(c) for c in runner.calls)
