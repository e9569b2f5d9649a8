"""Game coordination: lifecycle, number calling and winner persistence.

The service owns the authoritative game row. Each detection pass reads one
snapshot of the game, hands it by value to the pure detector, and stores
whatever the detector reports as newly won.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from tambola import signals
from tambola.errors import GameStateError, NotFoundError, ValidationError
from tambola.models.base import utcnow
from tambola.models.game import Game
from tambola.records import GAME_TRANSITIONS, GameStatus, PrizeType
from tambola.repositories.booking_repository import BookingRepository, to_booking_record
from tambola.repositories.game_repository import GameRepository
from tambola.repositories.ticket_repository import TicketRepository, to_ticket_record
from tambola.repositories.winner_repository import WinnerRepository, to_winner_record
from tambola.services.sheet_validation import (
    SheetCandidate,
    SheetValidation,
    find_full_sheet_candidates,
    find_half_sheet_candidates,
    validate_sheet_for_winning,
)
from tambola.services.winner_detection import DetectedWinner, GameSnapshot, detect_for_snapshot

logger = logging.getLogger(__name__)

HIGHEST_NUMBER = 90


@dataclass(frozen=True)
class CallResult:
    number: int
    numbers_called: tuple[int, ...]
    winners: list[DetectedWinner]


@dataclass(frozen=True)
class AwardedPrize:
    id: int
    prize_type: str
    ticket_id: int
    ticket_number: int | None
    player_name: str | None
    claimed_at: datetime


@dataclass(frozen=True)
class SheetReport:
    half_sheets: list[tuple[SheetCandidate, SheetValidation]]
    full_sheets: list[tuple[SheetCandidate, SheetValidation]]


class GameService:
    """Game use-cases."""

    def __init__(
        self,
        games: GameRepository | None = None,
        tickets: TicketRepository | None = None,
        bookings: BookingRepository | None = None,
        winners: WinnerRepository | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._games = games or GameRepository()
        self._tickets = tickets or TicketRepository()
        self._bookings = bookings or BookingRepository()
        self._winners = winners or WinnerRepository()
        self._rng = rng or random.Random()

    # -- lookup -----------------------------------------------------------

    def get_game(self, session: Session, game_id: int) -> Game:
        game = self._games.get_by_id(session, game_id)
        if game is None:
            raise NotFoundError(message=f"Game {game_id} not found")
        return game

    def get_latest_game(self, session: Session) -> Game:
        game = self._games.get_latest(session)
        if game is None:
            raise NotFoundError(message="No games yet")
        return game

    # -- setup ------------------------------------------------------------

    @staticmethod
    def _normalize_prizes(selected_prizes: Iterable[str]) -> list[str]:
        prizes = PrizeType.parse_many(selected_prizes)
        if not prizes:
            raise ValidationError(
                message="Invalid selected_prizes",
                details={"selected_prizes": ["Select at least one prize"]},
            )
        return [p.value for p in prizes]

    def create_game(
        self,
        session: Session,
        *,
        selected_prizes: Iterable[str],
        max_tickets: int = 100,
        number_calling_delay: int = 5,
        ticket_set: str = "default",
        host_phone: str | None = None,
    ) -> Game:
        if max_tickets < 1:
            raise ValidationError(message="Invalid max_tickets", details={"max_tickets": ["Must be >= 1"]})
        if number_calling_delay < 1:
            raise ValidationError(
                message="Invalid number_calling_delay",
                details={"number_calling_delay": ["Must be >= 1"]},
            )

        prizes = self._normalize_prizes(selected_prizes)
        available = self._tickets.count_set(session, ticket_set)
        if available < max_tickets:
            logger.warning("Ticket set %s holds %s tickets, fewer than max_tickets=%s", ticket_set, available, max_tickets)

        game = self._games.create(
            session,
            status=GameStatus.WAITING.value,
            numbers_called=[],
            current_number=None,
            max_tickets=int(max_tickets),
            selected_prizes=prizes,
            number_calling_delay=int(number_calling_delay),
            ticket_set=ticket_set,
            host_phone=host_phone,
        )
        logger.info("Created game %s (set=%s, max_tickets=%s, prizes=%s)", game.id, ticket_set, max_tickets, prizes)
        return game

    def update_settings(self, session: Session, game_id: int, changes: dict[str, Any]) -> Game:
        """Apply setting changes.

        Prizes, ticket set and max_tickets are fixed once the game starts;
        delay and host phone may change until it ends.
        """

        game = self.get_game(session, game_id)
        status = GameStatus(game.status)
        if status is GameStatus.ENDED:
            raise GameStateError(message=f"Game {game_id} has ended")

        locked = {"selected_prizes", "max_tickets", "ticket_set"} & {k for k, v in changes.items() if v is not None}
        if locked and status is not GameStatus.WAITING:
            raise GameStateError(
                message="Only waiting games can change prizes or tickets",
                details={field: ["Locked after the game starts"] for field in sorted(locked)},
            )

        if changes.get("selected_prizes") is not None:
            game.selected_prizes = self._normalize_prizes(changes["selected_prizes"])
        if changes.get("max_tickets") is not None:
            if int(changes["max_tickets"]) < 1:
                raise ValidationError(message="Invalid max_tickets", details={"max_tickets": ["Must be >= 1"]})
            game.max_tickets = int(changes["max_tickets"])
        if changes.get("ticket_set") is not None:
            game.ticket_set = str(changes["ticket_set"])
        if changes.get("number_calling_delay") is not None:
            if int(changes["number_calling_delay"]) < 1:
                raise ValidationError(
                    message="Invalid number_calling_delay",
                    details={"number_calling_delay": ["Must be >= 1"]},
                )
            game.number_calling_delay = int(changes["number_calling_delay"])
        if "host_phone" in changes:
            game.host_phone = changes["host_phone"]

        session.flush()
        return game

    # -- lifecycle ----------------------------------------------------------

    def _transition(self, session: Session, game_id: int, target: GameStatus) -> Game:
        game = self._games.get_for_update(session, game_id)
        if game is None:
            raise NotFoundError(message=f"Game {game_id} not found")

        current = GameStatus(game.status)
        if target not in GAME_TRANSITIONS[current]:
            raise GameStateError(
                message=f"Cannot move game {game_id} from {current.value} to {target.value}",
                details={"status": current.value, "requested": target.value},
            )

        game.status = target.value
        if target is GameStatus.ACTIVE and game.started_at is None:
            game.started_at = utcnow()
        if target is GameStatus.ENDED:
            game.ended_at = utcnow()
        session.flush()

        logger.info("Game %s: %s -> %s", game_id, current.value, target.value)
        signals.send_after_commit(
            session, signals.game_status_changed, game.id, previous=current.value, status=target.value
        )
        return game

    def start_game(self, session: Session, game_id: int) -> Game:
        game = self.get_game(session, game_id)
        if GameStatus(game.status) is not GameStatus.WAITING:
            raise GameStateError(message=f"Game {game_id} is {game.status}; only waiting games can start")
        return self._transition(session, game_id, GameStatus.ACTIVE)

    def pause_game(self, session: Session, game_id: int) -> Game:
        return self._transition(session, game_id, GameStatus.PAUSED)

    def resume_game(self, session: Session, game_id: int) -> Game:
        game = self.get_game(session, game_id)
        if GameStatus(game.status) is not GameStatus.PAUSED:
            raise GameStateError(message=f"Game {game_id} is {game.status}; only paused games can resume")
        return self._transition(session, game_id, GameStatus.ACTIVE)

    def end_game(self, session: Session, game_id: int) -> Game:
        return self._transition(session, game_id, GameStatus.ENDED)

    # -- calling & detection --------------------------------------------------

    @staticmethod
    def _ensure_active(game: Game) -> Game:
        if GameStatus(game.status) is not GameStatus.ACTIVE:
            raise GameStateError(message=f"Game {game.id} is {game.status}; numbers are only called while active")
        return game

    def require_active(self, session: Session, game_id: int) -> Game:
        return self._ensure_active(self.get_game(session, game_id))

    def call_next_number(self, session: Session, game_id: int, rng: random.Random | None = None) -> CallResult | None:
        """Append one uniformly random uncalled number, then record new winners.

        Returns None when every number has been called.
        """

        game = self._games.get_for_update(session, game_id)
        if game is None:
            raise NotFoundError(message=f"Game {game_id} not found")
        self._ensure_active(game)

        called = [int(n) for n in (game.numbers_called or [])]
        remaining = sorted(set(range(1, HIGHEST_NUMBER + 1)) - set(called))
        if not remaining:
            logger.info("Game %s: all %s numbers called", game_id, HIGHEST_NUMBER)
            return None

        number = (rng or self._rng).choice(remaining)
        game.numbers_called = [*called, number]
        game.current_number = number
        session.flush()

        logger.info("Game %s: called %s (%s/%s)", game_id, number, len(called) + 1, HIGHEST_NUMBER)
        signals.send_after_commit(
            session, signals.number_called, game.id, number=number, numbers_called=tuple(game.numbers_called)
        )

        winners = self._record_winners(session, game)
        return CallResult(number=number, numbers_called=tuple(game.numbers_called), winners=winners)

    def build_snapshot(self, session: Session, game: Game) -> GameSnapshot:
        tickets = self._tickets.list_set(session, game.ticket_set, game.max_tickets)
        return GameSnapshot(
            game_id=int(game.id),
            numbers_called=tuple(int(n) for n in (game.numbers_called or [])),
            selected_prizes=frozenset(PrizeType.parse_many(game.selected_prizes or [])),
            max_tickets=int(game.max_tickets),
            tickets=tuple(to_ticket_record(t) for t in tickets),
            bookings=tuple(to_booking_record(b) for b in self._bookings.list_for_game(session, game.id)),
            winners=tuple(to_winner_record(w) for w in self._winners.list_for_game(session, game.id)),
        )

    def _record_winners(self, session: Session, game: Game) -> list[DetectedWinner]:
        snapshot = self.build_snapshot(session, game)
        detected = detect_for_snapshot(snapshot)

        stored: list[DetectedWinner] = []
        for winner in detected:
            row = self._winners.insert_if_absent(
                session, game_id=game.id, ticket_id=winner.ticket_id, prize_type=winner.prize_type
            )
            if row is not None:
                stored.append(winner)

        if stored:
            for w in stored:
                logger.info(
                    "Game %s: %s won by ticket %s (%s)", game.id, w.prize_type.value, w.ticket_number, w.player_name
                )
            signals.send_after_commit(session, signals.winners_recorded, game.id, winners=stored)
        return stored

    def detect_and_record(self, session: Session, game_id: int) -> list[DetectedWinner]:
        """Re-run detection for the game's current state and store new winners."""

        game = self.get_game(session, game_id)
        return self._record_winners(session, game)

    # -- reporting ------------------------------------------------------------

    def list_winners(self, session: Session, game_id: int) -> list[AwardedPrize]:
        game = self.get_game(session, game_id)
        bookings = {b.ticket_id: b for b in self._bookings.list_for_game(session, game.id)}
        tickets = {t.id: t for t in self._tickets.list_set(session, game.ticket_set)}

        out: list[AwardedPrize] = []
        for w in self._winners.list_for_game(session, game.id):
            ticket = tickets.get(w.ticket_id)
            booking = bookings.get(w.ticket_id)
            out.append(
                AwardedPrize(
                    id=int(w.id),
                    prize_type=str(w.prize_type),
                    ticket_id=int(w.ticket_id),
                    ticket_number=int(ticket.ticket_number) if ticket is not None else None,
                    player_name=booking.player_name if booking is not None else None,
                    claimed_at=w.claimed_at,
                )
            )
        return out

    def sheet_report(self, session: Session, game_id: int) -> SheetReport:
        """Sheet candidates with the reason each does or does not win yet."""

        game = self.get_game(session, game_id)
        snapshot = self.build_snapshot(session, game)

        def _validate(candidates: Sequence[SheetCandidate]) -> list[tuple[SheetCandidate, SheetValidation]]:
            return [(c, validate_sheet_for_winning(c, snapshot.tickets, snapshot.numbers_called)) for c in candidates]

        return SheetReport(
            half_sheets=_validate(find_half_sheet_candidates(snapshot.bookings, snapshot.tickets, snapshot.max_tickets)),
            full_sheets=_validate(find_full_sheet_candidates(snapshot.bookings, snapshot.tickets, snapshot.max_tickets)),
        )
