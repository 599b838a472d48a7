"""
Tests for the custom installers and their registry.
"""

import threading

import pytest

from ultrabunt.adapters.packaging.apt import AptBackend
from ultrabunt.core.models.action import CommandResult
from ultrabunt.core.services.custom_installers import (
    CustomInstallerRegistry,
    InstallContext,
    MockCustomInstaller,
    default_installers,
    mock_installers,
    run_steps,
)
from ultrabunt.core.services.custom_installers import scripted
from ultrabunt.core.services.custom_installers.apt_repo import DockerInstaller, NodeJsInstaller
from ultrabunt.core.services.custom_installers.base import command, tolerant

TOOLS = {"bash", "env", "dpkg-query", "install", "chmod", "rm", "curl", "systemctl", "npm"}


@pytest.fixture
def runner(make_runner):
    return make_runner(available=TOOLS)


@pytest.fixture
def ctx(runner) -> InstallContext:
    return InstallContext(runner=runner, apt=AptBackend(runner), node_lts="22")


def _scripts(runner) -> list[str]:
    return [c[2] for c in runner.calls if c[:2] == ["bash", "-c"]]


# ── Step runner ──────────────────────────────────────────────────────


class TestRunSteps:
    def test_joins_output(self, ctx, runner):
        runner.respond("chmod", stdout="one")
        runner.respond("rm", stdout="two")
        r = run_steps(ctx, [command(["chmod", "x"]), command(["rm", "y"])], label="demo")
        assert r.ok
        assert r.stdout == "one\ntwo"
        assert r.command == ["demo"]

    def test_stops_at_first_failure(self, ctx, runner):
        runner.respond("chmod", returncode=1, stderr="denied")
        r = run_steps(ctx, [command(["chmod", "x"]), command(["rm", "y"])], label="demo")
        assert not r.ok
        assert r.stderr == "denied"
        assert not runner.ran("rm")

    def test_tolerant_step(self, ctx, runner):
        runner.respond("chmod", returncode=1)
        r = run_steps(ctx, [tolerant(command(["chmod", "x"])), command(["rm", "y"])], label="demo")
        assert r.ok
        assert runner.ran("rm")

    def test_cancel_between_steps(self, ctx, runner):
        ctx.cancel = threading.Event()

        def step(c):
            c.cancel.set()
            return CommandResult(returncode=0)

        r = run_steps(ctx, [step, command(["rm", "y"])], label="demo")
        assert r.cancelled
        assert not runner.ran("rm")


# ── APT repository installers ────────────────────────────────────────


class TestDockerInstaller:
    def test_install_sequence(self, ctx, runner):
        assert DockerInstaller().install(ctx).ok
        scripts = _scripts(runner)
        assert any("download.docker.com/linux/ubuntu/gpg" in s for s in scripts)
        assert any("/etc/apt/sources.list.d/docker.list" in s for s in scripts)
        assert any("usermod -aG docker" in s for s in scripts)
        installs = [c[-1] for c in runner.calls if "install" in c and c[0] == "env"]
        assert "docker-ce" in installs
        assert "docker-compose-plugin" in installs

    def test_conflicting_packages_removal_is_optional(self, ctx, runner):
        runner.respond("bash", "-c", "apt-get remove -y docker docker-engine docker.io containerd runc",
                       returncode=100)
        assert DockerInstaller().install(ctx).ok

    def test_key_failure_stops(self, ctx, runner):
        runner.respond("bash", "-c", "curl -fsSL https://download.docker.com/linux/ubuntu/gpg "
                       "| gpg --dearmor --yes -o /etc/apt/keyrings/docker.gpg", returncode=22)
        r = DockerInstaller().install(ctx)
        assert not r.ok
        assert not any(c[:2] == ["env", "DEBIAN_FRONTEND=noninteractive"] and "install" in c for c in runner.calls)

    def test_detection_probes_docker_ce(self, ctx, runner):
        runner.respond("dpkg-query", stdout="install ok installed")
        assert DockerInstaller().is_installed(ctx)
        assert runner.calls[-1][-1] == "docker-ce"

    def test_has_note(self):
        assert "docker group" in DockerInstaller.note

    def test_remove_drops_repository(self, ctx, runner):
        assert DockerInstaller().remove(ctx).ok
        assert ["rm", "-f", "/etc/apt/sources.list.d/docker.list", "/etc/apt/keyrings/docker.gpg"] in runner.calls


class TestNodeJsInstaller:
    def test_uses_configured_lts(self, ctx, runner):
        assert NodeJsInstaller().install(ctx).ok
        assert any("setup_22.x" in s for s in _scripts(runner))

    def test_detection(self, ctx, runner):
        runner.respond("dpkg-query", returncode=1)
        assert not NodeJsInstaller().is_installed(ctx)


# ── Scripted installers ──────────────────────────────────────────────


class TestScriptedInstallers:
    def test_ollama_detection(self, ctx, tmp_path, monkeypatch):
        monkeypatch.setattr(scripted, "LOCAL_BIN", tmp_path)
        assert not scripted.OllamaInstaller().is_installed(ctx)
        (tmp_path / "ollama").touch()
        assert scripted.OllamaInstaller().is_installed(ctx)

    def test_ollama_on_path(self, ctx, runner, tmp_path, monkeypatch):
        monkeypatch.setattr(scripted, "LOCAL_BIN", tmp_path)
        runner.available.add("ollama")
        assert scripted.OllamaInstaller().is_installed(ctx)

    def test_ollama_install_script(self, ctx, runner):
        assert scripted.OllamaInstaller().install(ctx).ok
        assert _scripts(runner) == [f"curl -fsSL {scripted.OLLAMA_SCRIPT_URL} | sh"]

    def test_ytdlp_prefers_pipx(self, ctx, runner):
        runner.available |= {"pipx", "pip3"}
        scripted.YtDlpInstaller().install(ctx)
        assert runner.calls[-1] == ["pipx", "install", "yt-dlp"]

    def test_ytdlp_pip_fallback(self, ctx, runner):
        runner.available.add("pip3")
        scripted.YtDlpInstaller().install(ctx)
        assert runner.calls[-1] == ["pip3", "install", "--user", "yt-dlp"]

    def test_ytdlp_without_pip(self, ctx):
        r = scripted.YtDlpInstaller().install(ctx)
        assert r.missing
        assert "python3-pip" in r.stderr

    def test_n8n_needs_node(self, ctx, runner):
        r = scripted.N8nInstaller().install(ctx)
        assert r.missing
        runner.available.add("node")
        assert scripted.N8nInstaller().install(ctx).ok
        assert runner.calls[-1] == ["npm", "install", "-g", "n8n"]

    def test_warp_detected_through_apt(self, ctx, runner):
        runner.respond("dpkg-query", stdout="install ok installed")
        assert scripted.WarpTerminalInstaller().is_installed(ctx)
        assert runner.calls[-1][-1] == "warp-terminal"

    def test_gollama_install_to_local_bin(self, ctx, runner):
        assert scripted.GollamaInstaller().install(ctx).ok
        script = _scripts(runner)[0]
        assert scripted.GOLLAMA_RELEASES_API in script
        assert "/usr/local/bin/gollama" in script


# ── Registry ─────────────────────────────────────────────────────────


class TestCustomInstallerRegistry:
    def test_default_covers_all_custom_names(self):
        registry = default_installers()
        assert registry.names() == sorted([
            "brave", "docker", "gollama", "n8n", "nodejs", "ollama",
            "sublime-text", "vscode", "warp-terminal", "yt-dlp",
        ])

    def test_nameless_rejected(self):
        with pytest.raises(ValueError):
            CustomInstallerRegistry().register(MockCustomInstaller(""))

    def test_mock_installers(self):
        registry = mock_installers(["docker", "vscode"], installed={"docker"})
        assert len(registry) == 2
        assert "docker" in registry
        assert registry.get("docker").installed
        assert not registry.get("vscode").installed
        assert registry.get("nope") is None
