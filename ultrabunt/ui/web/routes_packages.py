"""
Package routes — catalog, install status, install/remove, cache refresh.

All endpoints return JSON. Grouped under /api/ prefix.
"""

from __future__ import annotations

import logging

from flask import Blueprint, current_app, jsonify, request

from ultrabunt.core.context import Services
from ultrabunt.core.models.action import ErrorKind, OperationResult
from ultrabunt.core.models.package import PackageRecord

logger = logging.getLogger(__name__)

packages_bp = Blueprint("packages", __name__)

_STATUS_FOR_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.DEPENDENCY_MISSING: 409,
}


def _services() -> Services:
    return current_app.config["SERVICES"]


def _record_json(record: PackageRecord, services: Services) -> dict:
    return {
        **record.model_dump(mode="json"),
        "installed": services.cache.is_installed(record),
    }


def _operation_response(result: OperationResult):  # type: ignore[no-untyped-def]
    if result.ok:
        return jsonify(result.to_dict())
    status = _STATUS_FOR_KIND.get(result.error_kind, 500)  # type: ignore[arg-type]
    return jsonify(result.to_dict()), status


# ── Catalog ──────────────────────────────────────────────────────────


@packages_bp.route("/categories")
def api_categories():  # type: ignore[no-untyped-def]
    """Visible categories with package counts."""
    catalog = _services().catalog
    return jsonify([
        {
            "id": c.id,
            "name": c.display_name,
            "packages": len(catalog.list_by_category(c.id)),
        }
        for c in catalog.visible_categories()
    ])


@packages_bp.route("/packages")
def api_packages():  # type: ignore[no-untyped-def]
    """Packages with install status, optionally for one category."""
    services = _services()
    category = request.args.get("category")
    if category:
        if services.catalog.category(category) is None:
            return jsonify({"error": f"Unknown category: {category}"}), 404
        records = services.catalog.list_by_category(category)
    else:
        records = services.catalog.visible_records()
    return jsonify([_record_json(r, services) for r in records])


@packages_bp.route("/packages/<name>")
def api_package(name: str):  # type: ignore[no-untyped-def]
    """One package with status, dependency and dependents."""
    services = _services()
    record = services.catalog.get(name)
    if record is None:
        return jsonify({"error": f"Unknown package: {name}"}), 404
    data = _record_json(record, services)
    data["dependents"] = [r.name for r in services.catalog.dependents_of(name)]
    return jsonify(data)


# ── Actions ──────────────────────────────────────────────────────────


@packages_bp.route("/packages/<name>/install", methods=["POST"])
def api_install(name: str):  # type: ignore[no-untyped-def]
    """Install a package."""
    return _operation_response(_services().dispatcher.install(name))


@packages_bp.route("/packages/<name>/remove", methods=["POST"])
def api_remove(name: str):  # type: ignore[no-untyped-def]
    """Remove a package."""
    return _operation_response(_services().dispatcher.remove(name))


# ── Cache ────────────────────────────────────────────────────────────


@packages_bp.route("/cache/refresh", methods=["POST"])
def api_cache_refresh():  # type: ignore[no-untyped-def]
    """Start a background cache rebuild."""
    services = _services()
    task = services.cache.start_background_refresh(services.visible_backends())
    return jsonify({"started": True, "done": task.done()}), 202


@packages_bp.route("/cache/refresh", methods=["GET"])
def api_cache_status():  # type: ignore[no-untyped-def]
    """State of the last background rebuild and the cache size."""
    cache = _services().cache
    task = cache.current_refresh
    return jsonify({
        "running": task is not None and not task.done(),
        "cancelled": task is not None and task.cancelled,
        "entries": cache.size,
        "listed": sorted(b.value for b in cache.listed_backends),
        "built_at": cache.built_at,
    })


@packages_bp.route("/cache/refresh", methods=["DELETE"])
def api_cache_cancel():  # type: ignore[no-untyped-def]
    """Cancel a running background rebuild."""
    task = _services().cache.current_refresh
    if task is None or task.done():
        return jsonify({"cancelled": False, "error": "No refresh running"}), 409
    task.cancel()
    return jsonify({"cancelled": True})
