"""Marshmallow schemas for tickets and ticket sets."""

from __future__ import annotations

from marshmallow import Schema, fields, validate


class TicketSchema(Schema):
    id = fields.Int(required=True)
    set_name = fields.Str()
    ticket_number = fields.Int(required=True)
    row1 = fields.List(fields.Int())
    row2 = fields.List(fields.Int())
    row3 = fields.List(fields.Int())
    numbers = fields.List(fields.Int())


class TicketGenerateSchema(Schema):
    set_name = fields.Str(required=True, validate=validate.Length(min=1, max=100))
    count = fields.Integer(required=True, validate=validate.Range(min=1, max=600))
    # Consecutive tickets per block that share no numbers (3 = half sheet).
    unique_group = fields.Integer(required=False, load_default=1, validate=validate.Range(min=1, max=6))


class TicketImportSchema(Schema):
    set_name = fields.Str(required=True, validate=validate.Length(min=1, max=100))
    max_tickets = fields.Integer(required=False, load_default=None, validate=validate.Range(min=1, max=600))
