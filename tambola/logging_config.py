"""Logging configuration.

Besides level setup, game events broadcast through ``tambola.signals`` are
written to the ``tambola.events`` logger so a host can follow a game from
the server log alone.
"""

from __future__ import annotations

import logging

from flask import Flask

from tambola import signals

events_logger = logging.getLogger("tambola.events")


def _log_number_called(game_id: int, **payload) -> None:
    events_logger.info("game=%s number=%s count=%s", game_id, payload.get("number"), len(payload.get("numbers_called", ())))


def _log_winners(game_id: int, **payload) -> None:
    for w in payload.get("winners", []):
        events_logger.info("game=%s prize=%s ticket=%s player=%s", game_id, w.prize_type.value, w.ticket_number, w.player_name)


def _log_status(game_id: int, **payload) -> None:
    events_logger.info("game=%s status %s -> %s", game_id, payload.get("previous"), payload.get("status"))


def _log_booking(game_id: int, **payload) -> None:
    events_logger.info("game=%s booked=%s player=%s", game_id, payload.get("ticket_numbers"), payload.get("player_name"))


def configure_logging(app: Flask) -> None:
    level_name = str(app.config.get("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s [%(threadName)s] %(name)s %(message)s")
    logging.getLogger("tambola").setLevel(level)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    signals.number_called.connect(_log_number_called)
    signals.winners_recorded.connect(_log_winners)
    signals.game_status_changed.connect(_log_status)
    signals.tickets_booked.connect(_log_booking)
