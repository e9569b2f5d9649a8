"""Marshmallow schemas for Booking."""

from __future__ import annotations

from marshmallow import Schema, fields, validate


class BookingSchema(Schema):
    """Serialize Booking."""

    id = fields.Int(required=True)
    game_id = fields.Int(required=True)
    ticket_id = fields.Int(required=True)
    player_name = fields.Str(required=True)
    player_phone = fields.Str(allow_none=True)
    booked_at = fields.DateTime()


class BookingCreateSchema(Schema):
    """Validate a booking request."""

    player_name = fields.Str(required=True, validate=validate.Length(min=1, max=200))
    player_phone = fields.Str(required=False, load_default=None, allow_none=True, validate=validate.Length(max=32))
    ticket_numbers = fields.List(
        fields.Integer(validate=validate.Range(min=1)),
        required=True,
        validate=validate.Length(min=1),
    )


class BookingUpdateSchema(Schema):
    """Player detail corrections."""

    player_name = fields.Str(required=False, validate=validate.Length(min=1, max=200))
    player_phone = fields.Str(required=False, allow_none=True, validate=validate.Length(max=32))
