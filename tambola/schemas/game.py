"""Schemas for game setup, lifecycle and results."""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validate, validates

from tambola.records import LEGACY_PRIZE_ALIASES, PrizeType

_PRIZE_CHOICES = [p.value for p in PrizeType] + sorted(LEGACY_PRIZE_ALIASES)


class GameCreateSchema(Schema):
    selected_prizes = fields.List(
        fields.String(validate=validate.OneOf(_PRIZE_CHOICES)),
        required=True,
        validate=validate.Length(min=1),
    )
    max_tickets = fields.Integer(required=False, load_default=None, validate=validate.Range(min=1, max=600))
    number_calling_delay = fields.Integer(required=False, load_default=None, validate=validate.Range(min=1, max=60))
    ticket_set = fields.String(required=False, load_default="default", validate=validate.Length(min=1, max=100))
    host_phone = fields.String(required=False, load_default=None, allow_none=True)


class GameUpdateSchema(Schema):
    selected_prizes = fields.List(
        fields.String(validate=validate.OneOf(_PRIZE_CHOICES)),
        required=False,
        validate=validate.Length(min=1),
    )
    max_tickets = fields.Integer(required=False, validate=validate.Range(min=1, max=600))
    number_calling_delay = fields.Integer(required=False, validate=validate.Range(min=1, max=60))
    ticket_set = fields.String(required=False, validate=validate.Length(min=1, max=100))
    host_phone = fields.String(required=False, allow_none=True)

    @validates("selected_prizes")
    def _validate_unique(self, value, **kwargs):  # type: ignore[no-untyped-def]
        if len(value) != len(set(value)):
            raise ValidationError("Prizes must be unique")


class GameSchema(Schema):
    id = fields.Int(required=True)
    status = fields.Str(required=True)
    numbers_called = fields.List(fields.Int())
    current_number = fields.Int(allow_none=True)
    max_tickets = fields.Int()
    selected_prizes = fields.List(fields.Str())
    number_calling_delay = fields.Int()
    ticket_set = fields.Str()
    host_phone = fields.Str(allow_none=True)
    created_at = fields.DateTime()
    started_at = fields.DateTime(allow_none=True)
    ended_at = fields.DateTime(allow_none=True)


class DetectedWinnerSchema(Schema):
    prize_type = fields.Function(lambda w: w.prize_type.value)
    ticket_id = fields.Int()
    ticket_number = fields.Int()
    player_name = fields.Str()
    player_phone = fields.Str(allow_none=True)
    call_index = fields.Int(allow_none=True)
    winning_number = fields.Int(allow_none=True)


class CallResultSchema(Schema):
    number = fields.Int(allow_none=True)
    numbers_called = fields.List(fields.Int())
    winners = fields.List(fields.Nested(DetectedWinnerSchema))
    finished = fields.Bool()


class AwardedPrizeSchema(Schema):
    id = fields.Int()
    prize_type = fields.Str()
    ticket_id = fields.Int()
    ticket_number = fields.Int(allow_none=True)
    player_name = fields.Str(allow_none=True)
    claimed_at = fields.DateTime()


class SheetCandidateSchema(Schema):
    tickets = fields.List(fields.Int())
    player_name = fields.Str()
    is_valid = fields.Bool()
    reason = fields.Str(allow_none=True)
    is_winner = fields.Bool()
    winner_reason = fields.Str(allow_none=True)
