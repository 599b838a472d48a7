"""
Tests for the package catalog and domain models.
"""

import pytest
from pydantic import ValidationError

from ultrabunt.core.models.package import Backend, Category, PackageRecord
from ultrabunt.core.services.catalog import (
    CATEGORIES,
    PACKAGES,
    Catalog,
    CatalogError,
    PackageNotFoundError,
)


def _record(name: str, **kw) -> PackageRecord:
    return PackageRecord(
        name=name,
        backend_id=kw.pop("backend_id", name),
        backend=kw.pop("backend", Backend.APT),
        category=kw.pop("category", "core"),
        **kw,
    )


# ── Models ───────────────────────────────────────────────────────────


class TestPackageRecord:
    def test_cache_key(self):
        r = _record("vscode-snap", backend_id="code", backend=Backend.SNAP)
        assert r.cache_key == (Backend.SNAP, "code")

    def test_frozen(self):
        r = _record("htop")
        with pytest.raises(ValidationError):
            r.name = "other"

    def test_name_without_whitespace(self):
        with pytest.raises(ValidationError):
            _record("two words")

    def test_cached_backends(self):
        assert set(Backend.cached()) == {Backend.APT, Backend.SNAP, Backend.FLATPAK}
        assert Backend.APT.is_cached
        assert not Backend.NPM.is_cached
        assert not Backend.CUSTOM.is_cached


# ── Builtin catalog ──────────────────────────────────────────────────


class TestBuiltinCatalog:
    def test_every_name_round_trips(self):
        catalog = Catalog.builtin()
        for name in PACKAGES:
            assert catalog.get(name).name == name

    def test_no_dangling_dependencies(self):
        catalog = Catalog.builtin()
        for record in catalog:
            if record.dependency is not None:
                assert catalog.get(record.dependency) is not None, record.name

    def test_validate_clean(self):
        assert Catalog.builtin().validate() == []

    def test_every_record_has_known_category(self):
        ids = {cid for cid, _ in CATEGORIES}
        for record in Catalog.builtin():
            assert record.category in ids

    def test_php_version_template(self):
        catalog = Catalog.builtin(php_version="8.1")
        ids = [r.backend_id for r in catalog if r.backend_id.startswith("php")]
        assert ids
        assert all("{php}" not in i for i in ids)
        assert any("8.1" in i for i in ids)

    def test_same_tool_on_several_backends(self):
        catalog = Catalog.builtin()
        vscode = catalog.get("vscode")
        snap = catalog.get("vscode-snap")
        assert vscode.backend is Backend.CUSTOM
        assert snap.backend is Backend.SNAP
        assert vscode.cache_key != snap.cache_key

    def test_docker_compose_depends_on_docker(self):
        assert Catalog.builtin().get("docker-compose").dependency == "docker"

    def test_categories_in_menu_order(self):
        cats = Catalog.builtin().all_categories()
        assert [c.id for c in cats] == [cid for cid, _ in CATEGORIES]


# ── Lookup ───────────────────────────────────────────────────────────


class TestLookup:
    @pytest.fixture
    def catalog(self) -> Catalog:
        return Catalog(
            [
                _record("git"),
                _record("curl"),
                _record("docker", backend=Backend.CUSTOM, category="containers"),
                _record("docker-compose", category="containers", dependency="docker"),
            ],
            [Category(id="core", display_name="Core"), Category(id="containers", display_name="Containers")],
        )

    def test_get_unknown(self, catalog):
        assert catalog.get("nope") is None

    def test_require_unknown(self, catalog):
        with pytest.raises(PackageNotFoundError) as exc:
            catalog.require("nope")
        assert exc.value.name == "nope"
        assert isinstance(exc.value, KeyError)

    def test_list_by_category_insertion_order(self, catalog):
        assert [r.name for r in catalog.list_by_category("core")] == ["git", "curl"]

    def test_list_unknown_category_empty(self, catalog):
        assert catalog.list_by_category("gaming") == []

    def test_dependents_of(self, catalog):
        assert [r.name for r in catalog.dependents_of("docker")] == ["docker-compose"]

    def test_container_protocol(self, catalog):
        assert "git" in catalog
        assert len(catalog) == 4
        assert [r.name for r in catalog][:2] == ["git", "curl"]

    def test_duplicate_names_rejected(self):
        with pytest.raises(CatalogError):
            Catalog([_record("git"), _record("git")], [Category(id="core", display_name="Core")])

    def test_validate_reports_problems(self):
        catalog = Catalog(
            [_record("a", dependency="missing"), _record("b", category="nowhere")],
            [Category(id="core", display_name="Core")],
        )
        problems = catalog.validate()
        assert any("missing" in p for p in problems)
        assert any("nowhere" in p for p in problems)


# ── Exclusions ───────────────────────────────────────────────────────


class TestExclusions:
    def test_excluded_hidden_but_resolvable(self):
        catalog = Catalog.builtin(excluded={"gaming"})
        assert "gaming" not in {c.id for c in catalog.visible_categories()}
        assert all(r.category != "gaming" for r in catalog.visible_records())
        assert catalog.get("steam").category == "gaming"
        assert catalog.list_by_category("gaming")

    def test_with_excluded_copy(self):
        catalog = Catalog.builtin()
        narrowed = catalog.with_excluded({"dev"})
        assert narrowed.excluded == frozenset({"dev"})
        assert catalog.excluded == frozenset()
        assert len(narrowed) == len(catalog)

    def test_extra_records_collide(self):
        with pytest.raises(CatalogError):
            Catalog.builtin(extra=[_record("git")])

    def test_extra_records_added(self):
        catalog = Catalog.builtin(extra=[_record("my-tool", category="dev")])
        assert catalog.get("my-tool").category == "dev"
