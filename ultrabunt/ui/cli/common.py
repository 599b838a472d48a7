"""
Shared CLI helpers — service lookup, privilege checks, result output.
"""

from __future__ import annotations

import json
import sys
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Any

import click

from ultrabunt.core.context import Services
from ultrabunt.core.models.action import ErrorKind, OperationResult
from ultrabunt.core.models.package import PackageRecord

# Binaries the tool cannot work without
REQUIRED_TOOLS = ("dpkg-query",)


def get_services(ctx: click.Context) -> Services:
    """Services for this invocation, built on first use.

    Tests inject ready-made services through ``obj={"services": ...}``.
    """
    obj = ctx.ensure_object(dict)
    services = obj.get("services")
    if services is not None:
        return services

    from ultrabunt.core.context import build_services
    from ultrabunt.core.services.catalog import CatalogError

    mock = obj.get("mock", False)
    try:
        services = build_services(obj["settings"], excluded=obj.get("excluded"), mock=mock)
    except CatalogError as e:
        click.secho(f"❌ Invalid package list in config: {e}", fg="red", err=True)
        sys.exit(1)
    if not mock:
        missing = [tool for tool in REQUIRED_TOOLS if services.runner.which(tool) is None]
        if missing:
            click.secho(
                f"❌ Required system tool(s) missing: {', '.join(missing)}. "
                "Ultrabunt needs an Ubuntu/Debian system.",
                fg="red", err=True,
            )
            sys.exit(1)
    obj["services"] = services
    return services


def warm_cache(services: Services) -> None:
    """Build the installed-set cache once per process."""
    if services.cache.built_at is None:
        services.cache.rebuild(backends=services.visible_backends())


def require_privileges(services: Services) -> None:
    """Prime sudo before mutating commands; exit 1 when refused."""
    if services.mock_mode or services.runner.is_root:
        return
    from ultrabunt.adapters.shell.command import ensure_sudo

    if not ensure_sudo():
        click.secho("❌ Administrator privileges are required", fg="red", err=True)
        sys.exit(1)


def run_cancellable(
    fn: Callable[[str, threading.Event], OperationResult],
    name: str,
) -> OperationResult:
    """Run one dispatcher call; Ctrl-C cancels the in-flight command."""
    cancel = threading.Event()
    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="dispatch") as pool:
        future = pool.submit(fn, name, cancel)
        while True:
            try:
                wait([future], timeout=0.2)
            except KeyboardInterrupt:
                click.secho("\n⏹  Cancelling...", fg="yellow", err=True)
                cancel.set()
                continue
            if future.done():
                return future.result()


def echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2))


def status_icon(installed: bool) -> str:
    return "✅" if installed else "⬜"


def print_record_line(record: PackageRecord, installed: bool) -> None:
    click.echo(
        f"   {status_icon(installed)} {record.name:<22} "
        f"{record.backend.value:<8} {record.description}"
    )


def print_result(result: OperationResult) -> None:
    """One-line outcome plus any dependents warning or note."""
    verb = "Installed" if result.action == "install" else "Removed"
    if result.dependents:
        click.secho(
            f"⚠️  Installed packages depend on {result.name}: {', '.join(result.dependents)}",
            fg="yellow",
        )
    if result.ok:
        click.secho(f"✅ {verb} {result.name}", fg="green")
        if result.note:
            click.echo(f"   ℹ️  {result.note}")
        return

    label = {
        ErrorKind.NOT_FOUND: "not found",
        ErrorKind.DEPENDENCY_MISSING: "dependency missing",
        ErrorKind.BACKEND_UNAVAILABLE: "backend unavailable",
        ErrorKind.BACKEND_COMMAND_FAILED: "command failed",
        ErrorKind.UNKNOWN_CUSTOM_INSTALLER: "no installer",
        ErrorKind.CANCELLED: "cancelled",
    }.get(result.error_kind, "failed")
    click.secho(f"❌ {result.name}: {label}: {result.error}", fg="red")
