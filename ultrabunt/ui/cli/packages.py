"""
CLI commands for the package catalog — list, inspect, install, remove.

Thin wrappers over the Catalog, the InstalledSetCache and the Dispatcher.
"""

from __future__ import annotations

import sys
import time

import click

from ultrabunt.core.models.package import Backend
from ultrabunt.ui.cli.common import (
    echo_json,
    get_services,
    print_record_line,
    print_result,
    require_privileges,
    run_cancellable,
    status_icon,
    warm_cache,
)


# ── Observe ─────────────────────────────────────────────────────


@click.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def categories(ctx: click.Context, as_json: bool) -> None:
    """List package categories."""
    services = get_services(ctx)
    catalog = services.catalog
    rows = [
        {
            "id": c.id,
            "name": c.display_name,
            "packages": len(catalog.list_by_category(c.id)),
            "excluded": c.id in catalog.excluded,
        }
        for c in catalog.all_categories()
    ]

    if as_json:
        echo_json(rows)
        return

    click.secho("📂 Categories:", fg="cyan", bold=True)
    for row in rows:
        if row["excluded"]:
            click.secho(f"   {row['id']:<15} {row['name']} (hidden)", dim=True)
        else:
            click.echo(f"   {row['id']:<15} {row['name']} ({row['packages']})")


@click.command("list")
@click.argument("category", required=False)
@click.option("--installed", "only_installed", is_flag=True, help="Only installed packages.")
@click.option("--missing", "only_missing", is_flag=True, help="Only packages not installed.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_packages(
    ctx: click.Context,
    category: str | None,
    only_installed: bool,
    only_missing: bool,
    as_json: bool,
) -> None:
    """List packages with their install status."""
    if only_installed and only_missing:
        raise click.UsageError("--installed and --missing are mutually exclusive")

    services = get_services(ctx)
    catalog = services.catalog
    if category is not None and catalog.category(category) is None:
        click.secho(f"❌ Unknown category: {category}", fg="red", err=True)
        sys.exit(1)

    warm_cache(services)
    cats = [catalog.category(category)] if category else catalog.visible_categories()
    groups: list[tuple] = []
    for cat in cats:
        rows = []
        for record in sorted(catalog.list_by_category(cat.id), key=lambda r: r.name):
            installed = services.cache.is_installed(record)
            if (only_installed and not installed) or (only_missing and installed):
                continue
            rows.append((record, installed))
        if rows:
            groups.append((cat, rows))

    if as_json:
        echo_json([
            {**record.model_dump(mode="json"), "installed": installed}
            for _, rows in groups for record, installed in rows
        ])
        return

    if not groups:
        click.secho("⚠️  No matching packages", fg="yellow")
        return
    for cat, rows in groups:
        click.secho(f"\n📦 {cat.display_name}", fg="cyan", bold=True)
        for record, installed in rows:
            print_record_line(record, installed)
    click.echo()


@click.command()
@click.argument("name")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def info(ctx: click.Context, name: str, as_json: bool) -> None:
    """Show details for one package."""
    services = get_services(ctx)
    record = services.catalog.get(name)
    if record is None:
        click.secho(f"❌ Unknown package: {name}", fg="red", err=True)
        sys.exit(1)

    warm_cache(services)
    installed = services.cache.is_installed(record)
    dep_installed = services.dispatcher.is_installed(record.dependency) if record.dependency else None
    dependents = [r.name for r in services.catalog.dependents_of(name)]
    category = services.catalog.category(record.category)

    if as_json:
        echo_json({
            **record.model_dump(mode="json"),
            "installed": installed,
            "dependency_installed": dep_installed,
            "dependents": dependents,
        })
        return

    click.secho(f"📦 {record.name}", fg="cyan", bold=True)
    click.echo(f"   {record.description}")
    click.echo(f"   Status:    {status_icon(installed)} {'installed' if installed else 'not installed'}")
    click.echo(f"   Backend:   {record.backend.value} ({record.backend_id})")
    click.echo(f"   Category:  {category.display_name if category else record.category}")
    if record.dependency:
        click.echo(f"   Requires:  {record.dependency} {status_icon(bool(dep_installed))}")
    if dependents:
        click.echo(f"   Needed by: {', '.join(dependents)}")


# ── Act ─────────────────────────────────────────────────────────


@click.command()
@click.argument("names", nargs=-1, required=True)
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(ctx: click.Context, names: tuple[str, ...], yes: bool, as_json: bool) -> None:
    """Install one or more packages."""
    _mutate(ctx, "install", names, yes, as_json)


@click.command()
@click.argument("names", nargs=-1, required=True)
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def remove(ctx: click.Context, names: tuple[str, ...], yes: bool, as_json: bool) -> None:
    """Remove one or more packages."""
    _mutate(ctx, "remove", names, yes, as_json)


_PROGRESS = {"install": "Installing", "remove": "Removing"}


def _mutate(ctx: click.Context, action: str, names: tuple[str, ...], yes: bool, as_json: bool) -> None:
    services = get_services(ctx)
    if not yes and not as_json:
        click.confirm(f"{action.capitalize()} {', '.join(names)}?", default=True, abort=True)
    require_privileges(services)
    warm_cache(services)

    fn = services.dispatcher.install if action == "install" else services.dispatcher.remove
    results = []
    for name in names:
        if not as_json:
            click.secho(f"📦 {_PROGRESS[action]} {name}...", fg="cyan")
        result = run_cancellable(fn, name)
        results.append(result)
        if not as_json:
            print_result(result)

    if as_json:
        echo_json([r.to_dict() for r in results])
    if not all(r.ok for r in results):
        sys.exit(1)


# ── Cache ───────────────────────────────────────────────────────


@click.command()
@click.option("--background", is_flag=True, help="Rebuild in a worker thread (Ctrl-C cancels).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def refresh(ctx: click.Context, background: bool, as_json: bool) -> None:
    """Rebuild the installed-package cache."""
    services = get_services(ctx)
    cache = services.cache
    start = time.monotonic()

    if background:
        task = cache.start_background_refresh(services.visible_backends())
        if not as_json:
            click.echo("🔄 Refreshing package cache", nl=False)
        try:
            while not task.done():
                task.wait(timeout=0.5)
                if not as_json:
                    click.echo(".", nl=False)
        except KeyboardInterrupt:
            task.cancel()
        swapped = task.wait()
        if not as_json:
            click.echo()
    else:
        swapped = cache.rebuild(backends=services.visible_backends())

    elapsed_ms = int((time.monotonic() - start) * 1000)
    if as_json:
        echo_json({
            "ok": swapped,
            "entries": cache.size,
            "listed": sorted(b.value for b in cache.listed_backends),
            "duration_ms": elapsed_ms,
        })
        return

    if not swapped:
        click.secho("⏹  Refresh cancelled, previous cache kept", fg="yellow")
        return
    listed = ", ".join(sorted(b.value for b in cache.listed_backends)) or "none"
    click.secho(f"✅ Cache rebuilt: {cache.size} entries ({listed}) in {elapsed_ms}ms", fg="green")


@click.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def check(ctx: click.Context, as_json: bool) -> None:
    """Check catalog integrity and backend availability."""
    services = get_services(ctx)
    problems = services.catalog.validate()
    for record in services.catalog.records():
        if record.backend is Backend.CUSTOM and record.name not in services.installers:
            problems.append(f"{record.name}: no custom installer registered")
    backends = services.backends.backend_status()

    if as_json:
        echo_json({"ok": not problems, "problems": problems, "backends": backends})
        if problems:
            sys.exit(1)
        return

    click.secho("🔧 Backends:", fg="cyan", bold=True)
    for name, status in backends.items():
        icon = "✅" if status["available"] else "❌"
        click.echo(f"   {icon} {name:<8} ({status['cli']})")
    click.echo()

    if problems:
        click.secho(f"❌ {len(problems)} catalog problem(s):", fg="red", bold=True)
        for p in problems:
            click.echo(f"   • {p}")
        sys.exit(1)
    click.secho(f"✅ Catalog OK: {len(services.catalog)} packages", fg="green")
