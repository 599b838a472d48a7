"""
CLI commands for bulk operations.

Thin wrappers over ``ultrabunt.core.services.bulk``.
"""

from __future__ import annotations

import sys
import threading
from pathlib import Path

import click

from ultrabunt.core.models.action import OperationResult
from ultrabunt.core.services.bulk import BulkService, BulkSummary
from ultrabunt.ui.cli.common import echo_json, get_services, print_result, require_privileges, warm_cache


@click.group()
def bulk() -> None:
    """Bulk — whole categories, system update, cleanup, export."""


def _service(ctx: click.Context) -> BulkService:
    services = get_services(ctx)
    warm_cache(services)
    return BulkService(services)


def _print_summary(summary: BulkSummary, as_json: bool) -> None:
    if as_json:
        echo_json(summary.to_dict())
    else:
        click.echo()
        color = "green" if summary.ok else "yellow"
        click.secho(
            f"{'✅' if summary.ok else '⚠️ '} {summary.action}: "
            f"{len(summary.succeeded)} succeeded, {len(summary.failed)} failed, "
            f"{len(summary.skipped)} skipped",
            fg=color, bold=True,
        )
        for name, error in summary.failed.items():
            click.echo(f"   ❌ {name}: {error}")
    if not summary.ok:
        sys.exit(1)


def _run_batch(as_json: bool, call) -> None:
    cancel = threading.Event()
    progress = None if as_json else _progress
    try:
        summary = call(cancel, progress)
    except KeyError as e:
        click.secho(f"❌ {e.args[0]}", fg="red", err=True)
        sys.exit(1)
    _print_summary(summary, as_json)


def _progress(result: OperationResult) -> None:
    print_result(result)


# ── Categories ──────────────────────────────────────────────────


@bulk.command("install-category")
@click.argument("category")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install_category(ctx: click.Context, category: str, yes: bool, as_json: bool) -> None:
    """Install every missing package in a category."""
    if not yes and not as_json:
        click.confirm(
            f"Install ALL packages in '{category}'? This may take several minutes.",
            abort=True,
        )
    service = _service(ctx)
    require_privileges(service.services)
    _run_batch(as_json, lambda cancel, progress: service.install_category(category, cancel, progress))


@bulk.command("remove-category")
@click.argument("category")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def remove_category(ctx: click.Context, category: str, yes: bool, as_json: bool) -> None:
    """Remove every installed package in a category."""
    if not yes and not as_json:
        click.confirm(f"⚠️  Remove ALL packages in '{category}'? This cannot be undone!", abort=True)
        click.confirm("Are you ABSOLUTELY SURE?", abort=True)
    service = _service(ctx)
    require_privileges(service.services)
    _run_batch(as_json, lambda cancel, progress: service.remove_category(category, cancel, progress))


# ── Maintenance ─────────────────────────────────────────────────


@bulk.command("update-all")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def update_all(ctx: click.Context, yes: bool, as_json: bool) -> None:
    """Update apt, snap and flatpak packages."""
    if not yes and not as_json:
        click.confirm("Update all package managers and installed packages?", abort=True)
    service = _service(ctx)
    require_privileges(service.services)
    if not as_json:
        click.secho("🔄 Updating system packages...", fg="cyan")
    _print_summary(service.update_all(), as_json)


@bulk.command()
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def cleanup(ctx: click.Context, yes: bool, as_json: bool) -> None:
    """Remove orphans, clean caches, drop old snap revisions and journal entries."""
    if not yes and not as_json:
        click.confirm("Remove unused packages, clean caches and vacuum the journal?", abort=True)
    service = _service(ctx)
    require_privileges(service.services)
    if not as_json:
        click.secho("🧹 Cleaning up...", fg="cyan")
    _print_summary(service.cleanup(), as_json)


@bulk.command()
@click.option(
    "--output", "-o", "output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Report path (default: /tmp/ultrabunt-packages-<timestamp>.txt).",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def export(ctx: click.Context, output: Path | None, as_json: bool) -> None:
    """Export the package list with install status."""
    path = _service(ctx).export_package_list(output)
    if as_json:
        echo_json({"path": str(path)})
        return
    click.secho(f"✅ Package list exported to {path}", fg="green")
