"""Game routes (controllers). No business logic here."""

from __future__ import annotations

from flask import Blueprint, current_app, request

from tambola.db import get_session
from tambola.schemas.game import (
    AwardedPrizeSchema,
    CallResultSchema,
    DetectedWinnerSchema,
    GameCreateSchema,
    GameSchema,
    GameUpdateSchema,
    SheetCandidateSchema,
)
from tambola.services.game_service import GameService
from tambola.utils.responses import ok

games_bp = Blueprint("games", __name__)

_game_schema = GameSchema()
_create_schema = GameCreateSchema()
_update_schema = GameUpdateSchema()
_call_schema = CallResultSchema()
_winners_schema = DetectedWinnerSchema(many=True)
_awarded_schema = AwardedPrizeSchema(many=True)
_sheets_schema = SheetCandidateSchema(many=True)
_service = GameService()


def _callers():
    return current_app.extensions["number_callers"]


@games_bp.post("/games")
def create_game():
    payload = request.get_json(silent=True) or {}
    data = _create_schema.load(payload)

    session = get_session()
    game = _service.create_game(
        session,
        selected_prizes=data["selected_prizes"],
        max_tickets=int(data["max_tickets"] or current_app.config["DEFAULT_MAX_TICKETS"]),
        number_calling_delay=int(data["number_calling_delay"] or current_app.config["DEFAULT_CALLING_DELAY"]),
        ticket_set=str(data["ticket_set"]),
        host_phone=data.get("host_phone"),
    )
    return ok(_game_schema.dump(game), status_code=201)


@games_bp.get("/games/latest")
def get_latest_game():
    return ok(_game_schema.dump(_service.get_latest_game(get_session())))


@games_bp.get("/games/<int:game_id>")
def get_game(game_id: int):
    return ok(_game_schema.dump(_service.get_game(get_session(), game_id)))


@games_bp.patch("/games/<int:game_id>")
def update_game(game_id: int):
    payload = request.get_json(silent=True) or {}
    data = _update_schema.load(payload)
    game = _service.update_settings(get_session(), game_id, data)
    return ok(_game_schema.dump(game))


@games_bp.post("/games/<int:game_id>/start")
def start_game(game_id: int):
    return ok(_game_schema.dump(_service.start_game(get_session(), game_id)))


@games_bp.post("/games/<int:game_id>/pause")
def pause_game(game_id: int):
    game = _service.pause_game(get_session(), game_id)
    _callers().stop(game_id)
    return ok(_game_schema.dump(game))


@games_bp.post("/games/<int:game_id>/resume")
def resume_game(game_id: int):
    return ok(_game_schema.dump(_service.resume_game(get_session(), game_id)))


@games_bp.post("/games/<int:game_id>/end")
def end_game(game_id: int):
    game = _service.end_game(get_session(), game_id)
    _callers().stop(game_id)
    return ok(_game_schema.dump(game))


@games_bp.post("/games/<int:game_id>/call")
def call_number(game_id: int):
    """Call one number now and report the winners it produced."""

    session = get_session()
    result = _service.call_next_number(session, game_id)
    if result is None:
        game = _service.get_game(session, game_id)
        return ok(
            _call_schema.dump(
                {"number": None, "numbers_called": game.numbers_called, "winners": [], "finished": True}
            )
        )
    return ok(
        _call_schema.dump(
            {
                "number": result.number,
                "numbers_called": list(result.numbers_called),
                "winners": result.winners,
                "finished": False,
            }
        )
    )


@games_bp.post("/games/<int:game_id>/calling/start")
def start_calling(game_id: int):
    _service.require_active(get_session(), game_id)
    caller = _callers().start(game_id)
    return ok({"game_id": game_id, "running": caller.is_running})


@games_bp.post("/games/<int:game_id>/calling/stop")
def stop_calling(game_id: int):
    stopped = _callers().stop(game_id)
    return ok({"game_id": game_id, "stopped": stopped})


@games_bp.post("/games/<int:game_id>/detect")
def detect_winners(game_id: int):
    winners = _service.detect_and_record(get_session(), game_id)
    return ok(_winners_schema.dump(winners))


@games_bp.get("/games/<int:game_id>/winners")
def list_winners(game_id: int):
    return ok(_awarded_schema.dump(_service.list_winners(get_session(), game_id)))


@games_bp.get("/games/<int:game_id>/sheets")
def sheet_report(game_id: int):
    report = _service.sheet_report(get_session(), game_id)

    def _rows(pairs):
        return [
            {
                "tickets": list(candidate.tickets),
                "player_name": candidate.player_name,
                "is_valid": candidate.is_valid,
                "reason": candidate.reason,
                "is_winner": validation.is_winner,
                "winner_reason": validation.reason,
            }
            for candidate, validation in pairs
        ]

    return ok(
        {
            "half_sheets": _sheets_schema.dump(_rows(report.half_sheets)),
            "full_sheets": _sheets_schema.dump(_rows(report.full_sheets)),
        }
    )
