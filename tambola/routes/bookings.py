"""Booking routes (controllers). No business logic here."""

from __future__ import annotations

from flask import Blueprint, request

from tambola.db import get_session
from tambola.schemas.booking import BookingCreateSchema, BookingSchema, BookingUpdateSchema
from tambola.services.booking_service import BookingService
from tambola.utils.responses import ok

bookings_bp = Blueprint("bookings", __name__)

_booking_schema = BookingSchema()
_bookings_schema = BookingSchema(many=True)
_create_schema = BookingCreateSchema()
_update_schema = BookingUpdateSchema()
_service = BookingService()


@bookings_bp.get("/games/<int:game_id>/bookings")
def list_bookings(game_id: int):
    """List all bookings for a game."""

    bookings = _service.list_bookings(get_session(), game_id)
    return ok(_bookings_schema.dump(bookings))


@bookings_bp.post("/games/<int:game_id>/bookings")
def book_tickets(game_id: int):
    """Book one or more tickets for a player."""

    payload = request.get_json(silent=True) or {}
    data = _create_schema.load(payload)

    bookings = _service.book_tickets(
        get_session(),
        game_id,
        ticket_numbers=data["ticket_numbers"],
        player_name=str(data["player_name"]),
        player_phone=data.get("player_phone"),
    )

    # Commit occurs in teardown if no exception.
    return ok(_bookings_schema.dump(bookings), status_code=201)


@bookings_bp.patch("/bookings/<int:booking_id>")
def update_booking(booking_id: int):
    """Correct the player details on a booking."""

    payload = request.get_json(silent=True) or {}
    data = _update_schema.load(payload)

    booking = _service.update_player(
        get_session(),
        booking_id,
        player_name=data.get("player_name"),
        player_phone=data.get("player_phone"),
    )
    return ok(_booking_schema.dump(booking))
