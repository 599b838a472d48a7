"""
Web API server — Flask app factory.

Creates the Flask application that exposes the catalog, the cache and
the dispatcher as JSON endpoints under ``/api``.
"""

from __future__ import annotations

import logging

from flask import Flask

from ultrabunt.core.context import Services

logger = logging.getLogger(__name__)


def create_app(services: Services) -> Flask:
    """Create and configure the Flask application.

    Args:
        services: Wired services shared by every request.

    Returns:
        Configured Flask application.
    """
    app = Flask(__name__)
    app.config["SERVICES"] = services
    app.config["MOCK_MODE"] = services.mock_mode
    app.json.sort_keys = False

    from ultrabunt.ui.web.routes_packages import packages_bp

    app.register_blueprint(packages_bp, url_prefix="/api")

    # Warm the cache without blocking startup
    if services.cache.built_at is None:
        services.cache.start_background_refresh(services.visible_backends())

    logger.info("API app created (%d packages, mock=%s)", len(services.catalog), services.mock_mode)
    return app


def run_server(
    app: Flask,
    host: str = "127.0.0.1",
    port: int = 8000,
    debug: bool = False,
) -> None:
    """Run the Flask development server."""
    logger.info("Starting API server on %s:%d", host, port)
    app.run(host=host, port=port, debug=debug, use_reloader=False, threaded=True)
