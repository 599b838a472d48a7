"""
Interactive menu — categories, packages, actions, bulk operations.

A prompt-driven loop over the same services as the other commands. One
package's failure never leaves the loop; Ctrl-C during an operation
cancels that operation only.
"""

from __future__ import annotations

import click

from ultrabunt.core.context import Services
from ultrabunt.core.models.package import Category, PackageRecord
from ultrabunt.core.services.bulk import BulkService, BulkSummary
from ultrabunt.core.services.cache import RefreshTask
from ultrabunt.ui.cli.common import (
    get_services,
    print_record_line,
    print_result,
    require_privileges,
    run_cancellable,
    status_icon,
)
from ultrabunt.ui.cli.speech import Announcer


@click.command()
@click.pass_context
def menu(ctx: click.Context) -> None:
    """Interactive package menu."""
    services = get_services(ctx)
    require_privileges(services)
    Menu(services, Announcer(services.settings.tts, services.runner)).run()


class Menu:
    """Prompt loop state: services, speech and the warm-up task."""

    def __init__(self, services: Services, announcer: Announcer):
        self.services = services
        self.say = announcer
        self.bulk = BulkService(services)
        self._warmup: RefreshTask | None = None

    def run(self) -> None:
        self._warmup = self.services.cache.start_background_refresh(self.services.visible_backends())
        self.say.announce("Welcome to Ultrabunt", fg="cyan")
        try:
            while True:
                cats = self.services.catalog.visible_categories()
                click.echo()
                click.secho("═══ Ultrabunt ═══", fg="cyan", bold=True)
                for i, cat in enumerate(cats, 1):
                    click.echo(f"  {i:>2}) {cat.display_name}")
                click.echo("   b) Bulk operations")
                click.echo("   r) Refresh package cache")
                click.echo("   q) Quit")
                choice = click.prompt("Select", default="q").strip().lower()
                if choice == "q":
                    break
                if choice == "b":
                    self.bulk_menu()
                elif choice == "r":
                    self.refresh()
                elif choice.isdigit() and 1 <= int(choice) <= len(cats):
                    self.category_menu(cats[int(choice) - 1])
                else:
                    click.secho("Invalid choice", fg="yellow")
        except click.Abort:
            click.echo()
        finally:
            self.services.cache.shutdown()
        self.say.announce("Goodbye")

    # ── Screens ─────────────────────────────────────────────────

    def category_menu(self, category: Category) -> None:
        self._wait_for_cache()
        while True:
            records = sorted(self.services.catalog.list_by_category(category.id), key=lambda r: r.name)
            click.echo()
            self.say.announce(category.display_name, fg="cyan")
            for i, record in enumerate(records, 1):
                installed = self.services.cache.is_installed(record)
                click.echo(f"  {i:>2})", nl=False)
                print_record_line(record, installed)
            click.echo("   0) Back")
            choice = click.prompt("Select package", type=click.IntRange(0, len(records)), default=0)
            if choice == 0:
                return
            self.package_menu(records[choice - 1])

    def package_menu(self, record: PackageRecord) -> None:
        installed = self.services.cache.is_installed(record)
        click.echo()
        click.secho(f"📦 {record.name}", fg="cyan", bold=True)
        click.echo(f"   {record.description}")
        click.echo(f"   {status_icon(installed)} {record.backend.value} ({record.backend_id})")
        if record.dependency:
            click.echo(f"   Requires: {record.dependency}")

        actions = ["reinstall", "remove"] if installed else ["install"]
        action = click.prompt(
            "Action",
            type=click.Choice([*actions, "back"]),
            default="back",
            show_choices=True,
        )
        if action == "back":
            return
        if action == "remove" and not click.confirm(f"Remove {record.name}?", default=False):
            return

        fn = self.services.dispatcher.remove if action == "remove" else self.services.dispatcher.install
        self.say.speak(f"{action} {record.name}")
        result = run_cancellable(fn, record.name)
        print_result(result)
        self.say.speak("Success" if result.ok else "Failed. Check the logs.")

    def bulk_menu(self) -> None:
        self._wait_for_cache()
        options = {
            "1": ("Install category", self._bulk_install_category),
            "2": ("Remove category", self._bulk_remove_category),
            "3": ("Install selected", self._bulk_install_selected),
            "4": ("Remove selected", self._bulk_remove_selected),
            "5": ("Update all", lambda: self._show(self.bulk.update_all())),
            "6": ("Cleanup", lambda: self._show(self.bulk.cleanup())),
            "7": ("Export package list", self._export),
        }
        click.echo()
        click.secho("═══ Bulk operations ═══", fg="cyan", bold=True)
        for key, (label, _) in options.items():
            click.echo(f"   {key}) {label}")
        click.echo("   0) Back")
        choice = click.prompt("Select", default="0").strip()
        if choice in options:
            options[choice][1]()

    def refresh(self) -> None:
        task = self.services.cache.start_background_refresh(self.services.visible_backends())
        click.echo("🔄 Refreshing...")
        if task.wait():
            self.say.announce(f"Cache rebuilt: {self.services.cache.size} entries", fg="green")

    # ── Bulk actions ────────────────────────────────────────────

    def _pick_category(self) -> str | None:
        cats = self.services.catalog.visible_categories()
        for i, cat in enumerate(cats, 1):
            click.echo(f"  {i:>2}) {cat.display_name}")
        choice = click.prompt("Category", type=click.IntRange(0, len(cats)), default=0)
        return cats[choice - 1].id if choice else None

    def _pick_names(self, installed: bool) -> list[str]:
        records = [
            r for r in sorted(self.services.catalog.visible_records(), key=lambda r: r.name)
            if self.services.cache.is_installed(r) == installed
        ]
        if not records:
            click.secho("Nothing to select", fg="yellow")
            return []
        for record in records:
            click.echo(f"   {record.name:<22} [{record.category}] {record.description}")
        raw = click.prompt("Package names (space separated)", default="", show_default=False)
        return raw.split()

    def _bulk_install_category(self) -> None:
        category = self._pick_category()
        if category and click.confirm("Install ALL packages in this category?"):
            self._show(self.bulk.install_category(category, progress=print_result))

    def _bulk_remove_category(self) -> None:
        category = self._pick_category()
        if category and click.confirm("⚠️  Remove ALL packages in this category?") \
                and click.confirm("Are you ABSOLUTELY SURE?"):
            self._show(self.bulk.remove_category(category, progress=print_result))

    def _bulk_install_selected(self) -> None:
        names = self._pick_names(installed=False)
        if names and click.confirm(f"Install {len(names)} selected package(s)?"):
            self._show(self.bulk.install_selected(names, progress=print_result))

    def _bulk_remove_selected(self) -> None:
        names = self._pick_names(installed=True)
        if names and click.confirm(f"⚠️  Remove {len(names)} selected package(s)?"):
            self._show(self.bulk.remove_selected(names, progress=print_result))

    def _export(self) -> None:
        path = self.bulk.export_package_list()
        self.say.announce(f"Package list exported to {path}", fg="green")

    def _show(self, summary: BulkSummary) -> None:
        self.say.announce(
            f"{summary.action}: {len(summary.succeeded)} succeeded, {len(summary.failed)} failed",
            fg="green" if summary.ok else "yellow",
        )
        for name, error in summary.failed.items():
            click.echo(f"   ❌ {name}: {error}")

    def _wait_for_cache(self) -> None:
        if self._warmup is not None and not self._warmup.done():
            click.echo("⏳ Waiting for the package cache...")
            self._warmup.wait()
