"""
Ultrabunt — CLI entrypoint.

Usage:
    ultrabunt --help
    ultrabunt list dev
    ultrabunt --minimal menu
    python -m ultrabunt.main install htop -y
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import click

from ultrabunt import __version__
from ultrabunt.core.observability.logging_config import setup_logging
from ultrabunt.core.services.catalog import CATEGORIES, CORE_ONLY_CATEGORIES, MINIMAL_CATEGORIES

CATEGORY_IDS = [cid for cid, _ in CATEGORIES]


class UltrabuntGroup(click.Group):
    """Group whose usage errors (unknown flag, bad value) exit with 1."""

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as e:
            e.exit_code = 1
            raise

    def invoke(self, ctx: click.Context):
        try:
            return super().invoke(ctx)
        except click.UsageError as e:
            e.exit_code = 1
            raise


def _category_flags(f):
    """Add a ``--no-<category>`` flag per category."""
    for cid, label in reversed(CATEGORIES):
        f = click.option(
            f"--no-{cid}", f"no_{cid.replace('-', '_')}",
            is_flag=True, help=f"Hide {label}.",
        )(f)
    return f


def excluded_categories(
    flags: dict[str, bool],
    minimal: bool = False,
    core_only: bool = False,
    only: tuple[str, ...] = (),
) -> set[str]:
    """Resolve category flags into the set of hidden categories."""
    excluded = {cid for cid in CATEGORY_IDS if flags.get(f"no_{cid.replace('-', '_')}")}
    keep: set[str] | None = None
    if core_only:
        keep = set(CORE_ONLY_CATEGORIES)
    elif minimal:
        keep = set(MINIMAL_CATEGORIES)
    if only:
        keep = set(only) if keep is None else keep & set(only)
    if keep is not None:
        excluded |= set(CATEGORY_IDS) - keep
    return excluded


@click.group(cls=UltrabuntGroup, context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="ultrabunt")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to ultrabunt.yml (default: auto-detect).",
)
@click.option("--mock", is_flag=True, help="Use in-memory backends (no real execution).")
@click.option("--minimal", is_flag=True, help="Only core, dev, shell, monitoring, security and system.")
@click.option("--core-only", is_flag=True, help="Only the core category.")
@click.option(
    "--only",
    multiple=True,
    type=click.Choice(CATEGORY_IDS),
    help="Only this category (repeatable).",
)
@_category_flags
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
    mock: bool,
    minimal: bool,
    core_only: bool,
    only: tuple[str, ...],
    **flags: bool,
) -> None:
    """Ultrabunt — package manager front-end for Ubuntu and Mint."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["mock"] = mock or ctx.obj.get("mock", False)

    from ultrabunt.core.config.loader import ConfigError, Settings, load_settings

    injected = ctx.obj.get("services")
    if injected is not None:
        settings: Settings = injected.settings
    else:
        try:
            settings = load_settings(Path(config_path) if config_path else None)
        except ConfigError as e:
            click.secho(f"❌ {e}", fg="red", err=True)
            sys.exit(1)
    ctx.obj["settings"] = settings

    excluded = excluded_categories(flags, minimal=minimal, core_only=core_only, only=only)
    ctx.obj["excluded"] = excluded | set(settings.excluded_categories)
    if injected is not None and excluded:
        injected.exclude(excluded)

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = settings.log_level or "WARNING"

    setup_logging(
        level=level,
        log_file=None if injected is not None else settings.log_file,
        log_file_level=os.environ.get("ULTRABUNT_LOG_FILE_LEVEL", "INFO"),
        quiet_third_party=not debug,
    )


@cli.command()
@click.option("--host", default="127.0.0.1", help="Bind address.")
@click.option("--port", "-p", default=8000, type=int, help="Port number.")
@click.pass_context
def web(ctx: click.Context, host: str, port: int) -> None:
    """Start the JSON API server."""
    from ultrabunt.ui.cli.common import get_services
    from ultrabunt.ui.web.server import create_app, run_server

    services = get_services(ctx)
    app = create_app(services)
    debug = ctx.obj.get("debug", False)

    click.echo()
    click.secho("⚡ Ultrabunt — API server", bold=True)
    click.echo(f"   API:      http://{host}:{port}/api")
    click.echo(f"   Packages: {len(services.catalog)}")
    if services.mock_mode:
        click.secho("   Mode: mock (no real execution)", fg="yellow")
    if debug:
        click.secho("   Logging: DEBUG (all output)", fg="yellow")
    click.echo()

    run_server(app, host=host, port=port, debug=debug)


# ── Register commands from ultrabunt/ui/cli/ ─────────────────────

from ultrabunt.ui.cli.bulk import bulk  # noqa: E402
from ultrabunt.ui.cli.menu import menu  # noqa: E402
from ultrabunt.ui.cli.packages import (  # noqa: E402
    categories,
    check,
    info,
    install,
    list_packages,
    refresh,
    remove,
)

cli.add_command(categories)
cli.add_command(list_packages)
cli.add_command(info)
cli.add_command(install)
cli.add_command(remove)
cli.add_command(refresh)
cli.add_command(check)
cli.add_command(bulk)
cli.add_command(menu)


def main() -> None:
    """Console-script entry point."""
    cli()


if __name__ == "__main__":
    main()
