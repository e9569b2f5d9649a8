"""Map every failure to the JSON error envelope.

A handled error still reaches request teardown with ``exc=None``, which would
commit the request session, so each handler discards pending changes first.
"""

from __future__ import annotations

import logging

from flask import Flask, g, request
from marshmallow import ValidationError as MarshmallowValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from werkzeug.exceptions import HTTPException

from tambola.errors import AppError, ConflictError, NotFoundError, ValidationError
from tambola.utils.responses import fail

logger = logging.getLogger(__name__)


def _respond(err: AppError):
    session: Session | None = getattr(g, "db", None)
    if session is not None:
        session.rollback()

    if err.status_code >= 500:
        logger.warning("%s %s failed: %s (%s)", request.method, request.path, err.code, err.message)
    else:
        logger.debug("%s %s rejected: %s (%s)", request.method, request.path, err.code, err.message)
    return fail(err.code, err.message, err.status_code, err.details)


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(AppError)
    def _handle_app_error(exc: AppError):
        return _respond(exc)

    @app.errorhandler(MarshmallowValidationError)
    def _handle_schema_error(exc: MarshmallowValidationError):
        return _respond(ValidationError(details=exc.messages))

    @app.errorhandler(IntegrityError)
    def _handle_integrity_error(exc: IntegrityError):
        # Constraint races that slipped past the savepoint guards.
        logger.info("Integrity error on %s", request.path, exc_info=exc)
        return _respond(ConflictError(details=str(exc.orig) if exc.orig else str(exc)))

    @app.errorhandler(HTTPException)
    def _handle_http_exception(exc: HTTPException):
        status = int(exc.code or 500)
        if status == 404:
            return _respond(NotFoundError(message=f"No route for {request.path}"))
        return _respond(
            AppError(
                code="http_error",
                message=exc.description or "HTTP error",
                status_code=status,
                details={"name": exc.name},
            )
        )

    @app.errorhandler(Exception)
    def _handle_unexpected(exc: Exception):
        logger.exception("Unhandled exception on %s %s", request.method, request.path)
        return _respond(AppError(code="internal_error", message="Internal server error", status_code=500))
