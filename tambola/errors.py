"""Errors raised by services and rendered by ``error_handlers``."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class AppError(Exception):
    """Base error carrying its envelope code and HTTP status."""

    code: str
    message: str
    status_code: int
    details: Any | None = None


class NotFoundError(AppError):
    """The requested game or ticket does not exist."""

    def __init__(self, message: str = "Not found", details: Any | None = None) -> None:
        super().__init__(code="not_found", message=message, status_code=404, details=details)


class ValidationError(AppError):
    """Request data the game rules reject."""

    def __init__(self, message: str = "Validation error", details: Any | None = None) -> None:
        super().__init__(code="validation_error", message=message, status_code=400, details=details)


class ConflictError(AppError):
    """A ticket or ticket set is already taken."""

    def __init__(self, message: str = "Conflict", details: Any | None = None) -> None:
        super().__init__(code="conflict", message=message, status_code=409, details=details)


class GameStateError(AppError):
    """Operation not allowed in the game's current status."""

    def __init__(self, message: str = "Invalid game state", details: Any | None = None) -> None:
        super().__init__(code="invalid_state", message=message, status_code=409, details=details)


class TicketGenerationError(AppError):
    """A column pool ran dry before a row could be filled."""

    def __init__(self, message: str = "Ticket generation failed", details: Any | None = None) -> None:
        super().__init__(code="ticket_generation_failed", message=message, status_code=503, details=details)
