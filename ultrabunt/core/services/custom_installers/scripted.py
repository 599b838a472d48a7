"""
Installers driven by download scripts, release binaries or language
package managers.

Detection: the tool's binary on PATH, except Warp which ships a .deb
and is detected through APT.
"""

from __future__ import annotations

from pathlib import Path

from ultrabunt.core.models.action import CommandResult
from ultrabunt.core.services.custom_installers.base import (
    CustomInstaller,
    InstallContext,
    apt_remove,
    command,
    run_steps,
    shell,
    tolerant,
)

WARP_DEB_URL = "https://app.warp.dev/download?package=deb"
OLLAMA_SCRIPT_URL = "https://ollama.com/install.sh"
GOLLAMA_RELEASES_API = "https://api.github.com/repos/sammcj/gollama/releases/latest"
LOCAL_BIN = Path("/usr/local/bin")


def _binary_present(ctx: InstallContext, binary: str, *extra_dirs: Path) -> bool:
    if ctx.runner.which(binary):
        return True
    return any((d / binary).is_file() for d in extra_dirs)


class WarpTerminalInstaller(CustomInstaller):
    name = "warp-terminal"

    def install(self, ctx: InstallContext) -> CommandResult:
        deb = "/tmp/warp-terminal.deb"
        return run_steps(
            ctx,
            [
                command(["curl", "-fsSL", "-o", deb, WARP_DEB_URL], root=False),
                shell(f"dpkg -i {deb} || apt-get install -f -y"),
                tolerant(command(["rm", "-f", deb], root=False)),
            ],
            label=f"install {self.name}",
        )

    def remove(self, ctx: InstallContext) -> CommandResult:
        return run_steps(ctx, [apt_remove("warp-terminal")], label=f"remove {self.name}")

    def is_installed(self, ctx: InstallContext) -> bool:
        return ctx.apt.probe_one("warp-terminal")


class OllamaInstaller(CustomInstaller):
    name = "ollama"
    note = "Ollama installed. Pull a model with: ollama pull llama3"

    def install(self, ctx: InstallContext) -> CommandResult:
        return run_steps(
            ctx,
            [shell(f"curl -fsSL {OLLAMA_SCRIPT_URL} | sh")],
            label=f"install {self.name}",
        )

    def remove(self, ctx: InstallContext) -> CommandResult:
        return run_steps(
            ctx,
            [
                tolerant(command(["systemctl", "stop", "ollama"])),
                tolerant(command(["systemctl", "disable", "ollama"])),
                command([
                    "rm", "-rf",
                    str(LOCAL_BIN / "ollama"),
                    "/usr/share/ollama",
                    "/etc/systemd/system/ollama.service",
                ]),
                tolerant(command(["systemctl", "daemon-reload"])),
            ],
            label=f"remove {self.name}",
        )

    def is_installed(self, ctx: InstallContext) -> bool:
        return _binary_present(ctx, "ollama", LOCAL_BIN)


class GollamaInstaller(CustomInstaller):
    """Latest linux/amd64 release binary from GitHub."""

    name = "gollama"

    def install(self, ctx: InstallContext) -> CommandResult:
        script = (
            "set -euo pipefail; "
            f"url=$(curl -fsSL {GOLLAMA_RELEASES_API} "
            "| grep -o '\"browser_download_url\": *\"[^\"]*linux[^\"]*amd64[^\"]*\"' "
            "| head -n1 | cut -d '\"' -f 4); "
            'test -n "$url"; '
            'tmp=$(mktemp -d); '
            'curl -fsSL -o "$tmp/asset" "$url"; '
            'case "$url" in '
            '*.tar.gz|*.tgz) tar -xzf "$tmp/asset" -C "$tmp"; bin=$(find "$tmp" -type f -name gollama | head -n1) ;; '
            '*.zip) unzip -q "$tmp/asset" -d "$tmp"; bin=$(find "$tmp" -type f -name gollama | head -n1) ;; '
            '*) bin="$tmp/asset" ;; '
            "esac; "
            f'install -m 0755 "$bin" {LOCAL_BIN / "gollama"}; '
            'rm -rf "$tmp"'
        )
        return run_steps(ctx, [shell(script)], label=f"install {self.name}")

    def remove(self, ctx: InstallContext) -> CommandResult:
        return run_steps(
            ctx,
            [command(["rm", "-f", str(LOCAL_BIN / "gollama")])],
            label=f"remove {self.name}",
        )

    def is_installed(self, ctx: InstallContext) -> bool:
        return _binary_present(ctx, "gollama", LOCAL_BIN)


class YtDlpInstaller(CustomInstaller):
    """yt-dlp for the invoking user, via pipx when present, else pip."""

    name = "yt-dlp"

    def install(self, ctx: InstallContext) -> CommandResult:
        if ctx.runner.which("pipx"):
            step = command(["pipx", "install", "yt-dlp"], root=False)
        elif ctx.runner.which("pip3"):
            step = command(["pip3", "install", "--user", "yt-dlp"], root=False)
        else:
            return CommandResult(
                command=["pip3", "install", "--user", "yt-dlp"],
                missing=True,
                stderr="pip3 not found. Install python3-pip first.",
            )
        return run_steps(ctx, [step], label=f"install {self.name}")

    def remove(self, ctx: InstallContext) -> CommandResult:
        if ctx.runner.which("pipx"):
            step = command(["pipx", "uninstall", "yt-dlp"], root=False)
        else:
            step = command(["pip3", "uninstall", "-y", "yt-dlp"], root=False)
        return run_steps(ctx, [step], label=f"remove {self.name}")

    def is_installed(self, ctx: InstallContext) -> bool:
        return _binary_present(ctx, "yt-dlp", Path.home() / ".local" / "bin")


class N8nInstaller(CustomInstaller):
    """n8n as a global npm package (needs Node.js)."""

    name = "n8n"

    def install(self, ctx: InstallContext) -> CommandResult:
        if not ctx.runner.which("node"):
            return CommandResult(
                command=["npm", "install", "-g", "n8n"],
                missing=True,
                stderr="Node.js is required for n8n. Install nodejs first.",
            )
        return run_steps(ctx, [command(["npm", "install", "-g", "n8n"])], label=f"install {self.name}")

    def remove(self, ctx: InstallContext) -> CommandResult:
        return run_steps(ctx, [command(["npm", "uninstall", "-g", "n8n"])], label=f"remove {self.name}")

    def is_installed(self, ctx: InstallContext) -> bool:
        return _binary_present(ctx, "n8n")
