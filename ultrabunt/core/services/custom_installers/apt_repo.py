"""
Installers that add a third-party APT repository, then install from it.

Detection goes through the APT probe of the package the repository
provides (live ``dpkg-query``, not the cache).
"""

from __future__ import annotations

from dataclasses import dataclass

from ultrabunt.core.models.action import CommandResult
from ultrabunt.core.services.custom_installers.base import (
    CustomInstaller,
    InstallContext,
    Step,
    apt_install,
    apt_refresh,
    apt_remove,
    command,
    run_steps,
    shell,
    tolerant,
)

_ARCH = "$(dpkg --print-architecture)"
_CODENAME = '$(. /etc/os-release && echo "$VERSION_CODENAME")'


@dataclass(frozen=True)
class AptRepository:
    """A signed third-party APT source."""

    key_url: str
    keyring: str
    source: str          # deb line; may use $(...) expansions
    list_file: str
    dearmor: bool = True

    def add_steps(self) -> list[Step]:
        if self.dearmor:
            fetch_key = f"curl -fsSL {self.key_url} | gpg --dearmor --yes -o {self.keyring}"
        else:
            fetch_key = f"curl -fsSLo {self.keyring} {self.key_url}"
        return [
            command(["install", "-m", "0755", "-d", _parent(self.keyring)]),
            shell(fetch_key),
            command(["chmod", "a+r", self.keyring]),
            shell(f'echo "{self.source}" > {self.list_file}'),
        ]

    def remove_steps(self) -> list[Step]:
        return [tolerant(command(["rm", "-f", self.list_file, self.keyring]))]


class AptRepoInstaller(CustomInstaller):
    """Add a repository, refresh the index, install one or more packages."""

    repository: AptRepository
    packages: tuple[str, ...] = ()
    detect_package: str = ""

    def pre_install(self) -> list[Step]:
        return []

    def post_install(self) -> list[Step]:
        return []

    def install(self, ctx: InstallContext) -> CommandResult:
        steps = [
            *self.pre_install(),
            *self.repository.add_steps(),
            apt_refresh(),
            *(apt_install(pkg) for pkg in self.packages),
            *self.post_install(),
        ]
        return run_steps(ctx, steps, label=f"install {self.name}")

    def remove(self, ctx: InstallContext) -> CommandResult:
        steps = [*(apt_remove(pkg) for pkg in self.packages), *self.repository.remove_steps()]
        return run_steps(ctx, steps, label=f"remove {self.name}")

    def is_installed(self, ctx: InstallContext) -> bool:
        return ctx.apt.probe_one(self.detect_package or self.packages[0])


class DockerInstaller(AptRepoInstaller):
    name = "docker"
    note = "Docker installed. Log out and back in for docker group membership to take effect."
    repository = AptRepository(
        key_url="https://download.docker.com/linux/ubuntu/gpg",
        keyring="/etc/apt/keyrings/docker.gpg",
        source=(
            f"deb [arch={_ARCH} signed-by=/etc/apt/keyrings/docker.gpg] "
            f"https://download.docker.com/linux/ubuntu {_CODENAME} stable"
        ),
        list_file="/etc/apt/sources.list.d/docker.list",
    )
    packages = (
        "docker-ce",
        "docker-ce-cli",
        "containerd.io",
        "docker-buildx-plugin",
        "docker-compose-plugin",
    )
    detect_package = "docker-ce"

    def pre_install(self) -> list[Step]:
        # distro packages conflict with docker-ce
        return [tolerant(shell(
            "apt-get remove -y docker docker-engine docker.io containerd runc"
        ))]

    def post_install(self) -> list[Step]:
        return [tolerant(shell('usermod -aG docker "${SUDO_USER:-$USER}"'))]


class VSCodeInstaller(AptRepoInstaller):
    name = "vscode"
    repository = AptRepository(
        key_url="https://packages.microsoft.com/keys/microsoft.asc",
        keyring="/usr/share/keyrings/packages.microsoft.gpg",
        source=(
            "deb [arch=amd64,arm64,armhf signed-by=/usr/share/keyrings/packages.microsoft.gpg] "
            "https://packages.microsoft.com/repos/code stable main"
        ),
        list_file="/etc/apt/sources.list.d/vscode.list",
    )
    packages = ("code",)


class BraveInstaller(AptRepoInstaller):
    name = "brave"
    repository = AptRepository(
        key_url="https://brave-browser-apt-release.s3.brave.com/brave-browser-archive-keyring.gpg",
        keyring="/usr/share/keyrings/brave-browser-archive-keyring.gpg",
        source=(
            "deb [signed-by=/usr/share/keyrings/brave-browser-archive-keyring.gpg] "
            "https://brave-browser-apt-release.s3.brave.com/ stable main"
        ),
        list_file="/etc/apt/sources.list.d/brave-browser-release.list",
        dearmor=False,
    )
    packages = ("brave-browser",)


class SublimeTextInstaller(AptRepoInstaller):
    name = "sublime-text"
    repository = AptRepository(
        key_url="https://download.sublimetext.com/sublimehq-pub.gpg",
        keyring="/usr/share/keyrings/sublimehq-archive.gpg",
        source=(
            "deb [signed-by=/usr/share/keyrings/sublimehq-archive.gpg] "
            "https://download.sublimetext.com/ apt/stable/"
        ),
        list_file="/etc/apt/sources.list.d/sublime-text.list",
    )
    packages = ("sublime-text",)


class NodeJsInstaller(CustomInstaller):
    """Node.js LTS from NodeSource (its setup script adds the repository)."""

    name = "nodejs"

    def install(self, ctx: InstallContext) -> CommandResult:
        setup = f"curl -fsSL https://deb.nodesource.com/setup_{ctx.node_lts}.x | bash -"
        return run_steps(
            ctx,
            [shell(setup), apt_refresh(), apt_install("nodejs")],
            label=f"install {self.name}",
        )

    def remove(self, ctx: InstallContext) -> CommandResult:
        return run_steps(
            ctx,
            [
                apt_remove("nodejs"),
                tolerant(command([
                    "rm", "-f",
                    "/etc/apt/sources.list.d/nodesource.list",
                    "/etc/apt/sources.list.d/nodesource.sources",
                ])),
            ],
            label=f"remove {self.name}",
        )

    def is_installed(self, ctx: InstallContext) -> bool:
        return ctx.apt.probe_one("nodejs")


def _parent(path: str) -> str:
    return path.rsplit("/", 1)[0] or "/"
