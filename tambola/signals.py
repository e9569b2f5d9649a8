"""Change notifications for game observers.

Handlers receive the game id as sender plus keyword payloads:

* ``number_called``: ``number``, ``numbers_called``
* ``winners_recorded``: ``winners`` (list of ``DetectedWinner``)
* ``game_status_changed``: ``previous``, ``status``
* ``tickets_booked``: ``ticket_numbers``, ``player_name``

Services never send directly. ``send_after_commit`` queues the event on the
session and it goes out only once that session's transaction commits; a
rollback discards it.
"""

from __future__ import annotations

from typing import Any

from blinker import Namespace, Signal
from sqlalchemy import event
from sqlalchemy.orm import Session, SessionTransaction

_signals = Namespace()

number_called = _signals.signal("number-called")
winners_recorded = _signals.signal("winners-recorded")
game_status_changed = _signals.signal("game-status-changed")
tickets_booked = _signals.signal("tickets-booked")

_PENDING_KEY = "tambola.pending_signals"


def send_after_commit(session: Session, signal: Signal, sender: Any, **payload: Any) -> None:
    session.info.setdefault(_PENDING_KEY, []).append((signal, sender, payload))


@event.listens_for(Session, "after_commit")
def _flush_pending(session: Session) -> None:
    # Releasing a SAVEPOINT also counts as a commit.
    if session.in_nested_transaction():
        return
    pending = session.info.pop(_PENDING_KEY, [])
    for signal, sender, payload in pending:
        signal.send(sender, **payload)


@event.listens_for(Session, "after_transaction_end")
def _drop_pending(session: Session, transaction: SessionTransaction) -> None:
    # Runs after after_commit; whatever is left was rolled back or closed unsent.
    if transaction.parent is None:
        session.info.pop(_PENDING_KEY, None)
