"""Ticket routes (controllers). No business logic here."""

from __future__ import annotations

from flask import Blueprint, current_app, request

from tambola.db import get_session
from tambola.schemas.ticket import TicketGenerateSchema, TicketImportSchema, TicketSchema
from tambola.services.ticket_service import TicketService
from tambola.services.ticket_set_loader import TicketSetLoader
from tambola.utils.responses import ok

tickets_bp = Blueprint("tickets", __name__)

_ticket_schema = TicketSchema()
_tickets_schema = TicketSchema(many=True)
_generate_schema = TicketGenerateSchema()
_import_schema = TicketImportSchema()


def _service() -> TicketService:
    return TicketService(max_retries=int(current_app.config["TICKET_GENERATION_RETRIES"]))


def _loader() -> TicketSetLoader:
    loader = current_app.extensions.get("ticket_set_loader")
    if loader is None:
        loader = TicketSetLoader(str(current_app.config["TICKET_SETS_SOURCE"]))
        current_app.extensions["ticket_set_loader"] = loader
    return loader


@tickets_bp.get("/tickets")
def list_tickets():
    """List tickets of a set.

    Query params:
    - set: ticket set name (default "default")
    - max: optional highest ticket number to include
    """

    set_name = (request.args.get("set") or "default").strip()
    max_tickets = request.args.get("max", type=int)
    tickets = _service().list_tickets(get_session(), set_name, max_tickets)
    return ok(_tickets_schema.dump(tickets))


@tickets_bp.get("/tickets/sets")
def list_sets():
    return ok(_service().list_sets(get_session()))


@tickets_bp.get("/tickets/<string:set_name>/<int:ticket_number>")
def get_ticket(set_name: str, ticket_number: int):
    return ok(_ticket_schema.dump(_service().get_ticket(get_session(), set_name, ticket_number)))


@tickets_bp.post("/tickets/generate")
def generate_tickets():
    payload = request.get_json(silent=True) or {}
    data = _generate_schema.load(payload)

    tickets = _service().generate_set(
        get_session(), str(data["set_name"]), int(data["count"]), unique_group=int(data["unique_group"])
    )
    return ok(
        {"set_name": data["set_name"], "count": len(tickets), "unique_group": data["unique_group"]},
        status_code=201,
    )


@tickets_bp.post("/tickets/import")
def import_tickets():
    payload = request.get_json(silent=True) or {}
    data = _import_schema.load(payload)

    max_tickets = int(data["max_tickets"] or current_app.config["DEFAULT_MAX_TICKETS"])
    tickets = _service().import_set(get_session(), _loader(), str(data["set_name"]), max_tickets)
    return ok({"set_name": data["set_name"], "count": len(tickets)}, status_code=201)
