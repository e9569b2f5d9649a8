"""Liveness and readiness."""

from __future__ import annotations

from flask import Blueprint, current_app
from sqlalchemy import text

from tambola.db import get_session
from tambola.utils.responses import ok

health_bp = Blueprint("health", __name__)


@health_bp.get("/health")
def health_check():
    """Report database reachability and how many games are calling numbers."""

    get_session().execute(text("SELECT 1"))
    callers = current_app.extensions["number_callers"]
    return ok({"status": "ok", "database": "ok", "active_callers": callers.running_count()})
