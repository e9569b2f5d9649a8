"""Tambola game service: ticket sets, bookings, live calling and winners."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from dotenv import load_dotenv
from flask import Flask


def create_app(overrides: Mapping[str, Any] | None = None) -> Flask:
    """Application factory.

    Args:
        overrides: Optional config values applied on top of the
            environment-derived configuration (used by tests).

    Returns:
        Configured Flask application.
    """
    load_dotenv()

    from tambola.config import get_config
    from tambola.db import init_db
    from tambola.error_handlers import register_error_handlers
    from tambola.logging_config import configure_logging
    from tambola.routes.bookings import bookings_bp
    from tambola.routes.games import games_bp
    from tambola.routes.health import health_bp
    from tambola.routes.tickets import tickets_bp
    from tambola.services.number_caller import CallerRegistry

    app = Flask(__name__)
    app.config.from_object(get_config())
    if overrides:
        app.config.update(overrides)

    configure_logging(app)
    init_db(app)
    register_error_handlers(app)

    app.extensions["number_callers"] = CallerRegistry(
        app.extensions["session_factory"],
        delay_override=app.config.get("CALLER_DELAY_OVERRIDE"),
    )

    app.register_blueprint(health_bp)
    app.register_blueprint(games_bp, url_prefix="/api")
    app.register_blueprint(bookings_bp, url_prefix="/api")
    app.register_blueprint(tickets_bp, url_prefix="/api")

    return app
