"""
Catalog — static lookup of package records by name and by category.

Built once at startup from the L0 data table (plus any extra records
from the config file) and shared read-only afterwards.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from ultrabunt.core.models.package import Backend, Category, PackageRecord
from ultrabunt.core.services.catalog.data import CATEGORIES, PACKAGES

logger = logging.getLogger(__name__)

# Category sets for the --minimal / --core-only startup profiles
MINIMAL_CATEGORIES = frozenset({"core", "dev", "shell", "monitoring", "security", "system"})
CORE_ONLY_CATEGORIES = frozenset({"core"})


class CatalogError(Exception):
    """Raised when catalog records conflict (e.g. duplicate names)."""


class PackageNotFoundError(KeyError):
    """Raised by ``Catalog.require`` for unknown package names."""

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown package: {self.name}"


class Catalog:
    """Immutable table of PackageRecords.

    Lookups ignore exclusions: an excluded category only disappears from
    the ``visible_*`` views used by menus and background refreshes.
    """

    def __init__(
        self,
        records: Iterable[PackageRecord],
        categories: Iterable[Category],
        excluded: Iterable[str] = (),
    ):
        self._categories: dict[str, Category] = {}
        for cat in categories:
            self._categories[cat.id] = cat

        self._records: dict[str, PackageRecord] = {}
        for record in records:
            if record.name in self._records:
                raise CatalogError(f"Duplicate package name in catalog: {record.name}")
            self._records[record.name] = record

        self._excluded = frozenset(excluded)
        unknown = self._excluded - self._categories.keys()
        if unknown:
            logger.warning("Excluding unknown categories: %s", ", ".join(sorted(unknown)))

    # ── Construction ────────────────────────────────────────────

    @classmethod
    def builtin(
        cls,
        php_version: str = "8.3",
        extra: Iterable[PackageRecord] = (),
        excluded: Iterable[str] = (),
    ) -> Catalog:
        """Build the catalog from the built-in data table."""
        records = [
            PackageRecord(
                name=name,
                backend_id=entry["id"].replace("{php}", php_version),
                backend=Backend(entry["backend"]),
                description=entry.get("description", ""),
                category=entry["category"],
                dependency=entry.get("dependency"),
            )
            for name, entry in PACKAGES.items()
        ]
        records.extend(extra)
        categories = [Category(id=cid, display_name=label) for cid, label in CATEGORIES]
        catalog = cls(records, categories, excluded=excluded)
        logger.debug(
            "Catalog built: %d packages in %d categories",
            len(catalog), len(categories),
        )
        return catalog

    def with_excluded(self, excluded: Iterable[str]) -> Catalog:
        """Copy of this catalog with a different excluded-category set."""
        return Catalog(self._records.values(), self._categories.values(), excluded=excluded)

    # ── Lookup ──────────────────────────────────────────────────

    def get(self, name: str) -> PackageRecord | None:
        """Look up a record by name."""
        return self._records.get(name)

    def require(self, name: str) -> PackageRecord:
        """Look up a record by name, raising PackageNotFoundError if absent."""
        record = self._records.get(name)
        if record is None:
            raise PackageNotFoundError(name)
        return record

    def list_by_category(self, category: str) -> list[PackageRecord]:
        """Records in a category, in insertion order."""
        return [r for r in self._records.values() if r.category == category]

    def all_categories(self) -> list[Category]:
        return list(self._categories.values())

    def category(self, category_id: str) -> Category | None:
        return self._categories.get(category_id)

    def records(self) -> list[PackageRecord]:
        return list(self._records.values())

    def dependents_of(self, name: str) -> list[PackageRecord]:
        """Records whose ``dependency`` names the given package."""
        return [r for r in self._records.values() if r.dependency == name]

    # ── Exclusions ──────────────────────────────────────────────

    @property
    def excluded(self) -> frozenset[str]:
        return self._excluded

    def visible_categories(self) -> list[Category]:
        return [c for c in self._categories.values() if c.id not in self._excluded]

    def visible_records(self) -> list[PackageRecord]:
        return [r for r in self._records.values() if r.category not in self._excluded]

    # ── Integrity ───────────────────────────────────────────────

    def validate(self) -> list[str]:
        """Check catalog integrity.

        Returns:
            Human-readable problems; empty when the catalog is consistent.
        """
        problems: list[str] = []
        for record in self._records.values():
            if record.dependency is not None:
                if record.dependency == record.name:
                    problems.append(f"{record.name}: depends on itself")
                elif record.dependency not in self._records:
                    problems.append(
                        f"{record.name}: dependency '{record.dependency}' is not in the catalog"
                    )
            if record.category not in self._categories:
                problems.append(f"{record.name}: unknown category '{record.category}'")
        return problems

    # ── Container protocol ──────────────────────────────────────

    def __contains__(self, name: object) -> bool:
        return name in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[PackageRecord]:
        return iter(self._records.values())
