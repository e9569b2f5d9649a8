"""Service layer for ticket bookings."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from sqlalchemy.orm import Session

from tambola import signals
from tambola.errors import ConflictError, GameStateError, NotFoundError, ValidationError
from tambola.models.booking import Booking
from tambola.records import GameStatus
from tambola.repositories.booking_repository import BookingRepository
from tambola.repositories.game_repository import GameRepository
from tambola.repositories.ticket_repository import TicketRepository

logger = logging.getLogger(__name__)


class BookingService:
    """Booking use-cases."""

    def __init__(
        self,
        bookings: BookingRepository | None = None,
        games: GameRepository | None = None,
        tickets: TicketRepository | None = None,
    ) -> None:
        self._bookings = bookings or BookingRepository()
        self._games = games or GameRepository()
        self._tickets = tickets or TicketRepository()

    def list_bookings(self, session: Session, game_id: int) -> Sequence[Booking]:
        if self._games.get_by_id(session, game_id) is None:
            raise NotFoundError(message=f"Game {game_id} not found")
        return self._bookings.list_for_game(session, game_id)

    def book_tickets(
        self,
        session: Session,
        game_id: int,
        *,
        ticket_numbers: Iterable[int],
        player_name: str,
        player_phone: str | None = None,
    ) -> list[Booking]:
        """Book tickets (by ticket number) for one player.

        All-or-nothing: any ticket that is out of range, missing from the
        game's set or already held fails the whole request.
        """

        name = (player_name or "").strip()
        numbers = [int(n) for n in ticket_numbers]
        if not name or not numbers:
            raise ValidationError(
                message="Please enter player name and select at least one ticket",
                details={
                    **({"player_name": ["Required"]} if not name else {}),
                    **({"ticket_numbers": ["Select at least one ticket"]} if not numbers else {}),
                },
            )
        if len(numbers) != len(set(numbers)):
            raise ValidationError(message="Invalid ticket_numbers", details={"ticket_numbers": ["Numbers must be unique"]})

        game = self._games.get_by_id(session, game_id)
        if game is None:
            raise NotFoundError(message=f"Game {game_id} not found")
        if GameStatus(game.status) is not GameStatus.WAITING:
            raise GameStateError(message=f"Game {game_id} is {game.status}; bookings close when the game starts")

        out_of_range = [n for n in numbers if n < 1 or n > game.max_tickets]
        if out_of_range:
            raise ValidationError(
                message="Invalid ticket_numbers",
                details={"ticket_numbers": [f"Must be within 1..{game.max_tickets}: {out_of_range}"]},
            )

        tickets = self._tickets.get_by_numbers(session, game.ticket_set, numbers)
        missing = [n for n in numbers if n not in tickets]
        if missing:
            raise NotFoundError(
                message=f"Tickets not found in set {game.ticket_set!r}",
                details={"ticket_numbers": missing},
            )

        taken = self._bookings.booked_ticket_ids(session, game.id)
        already = [n for n in numbers if tickets[n].id in taken]
        if already:
            raise ConflictError(message="Some tickets are already booked", details={"ticket_numbers": already})

        phone = (player_phone or "").strip() or None
        created: list[Booking] = []
        for n in numbers:
            booking = self._bookings.try_create(
                session, game_id=game.id, ticket_id=tickets[n].id, player_name=name, player_phone=phone
            )
            if booking is None:
                # Lost a race with a concurrent booking for the same ticket.
                raise ConflictError(message="Some tickets are already booked", details={"ticket_numbers": [n]})
            created.append(booking)

        logger.info("Game %s: %s booked tickets %s", game.id, name, numbers)
        signals.send_after_commit(session, signals.tickets_booked, game.id, ticket_numbers=numbers, player_name=name)
        return created

    def update_player(
        self, session: Session, booking_id: int, *, player_name: str | None = None, player_phone: str | None = None
    ) -> Booking:
        """Correct player details on an existing booking."""

        booking = self._bookings.get_by_id(session, booking_id)
        if booking is None:
            raise NotFoundError(message=f"Booking {booking_id} not found")

        if player_name is not None:
            name = player_name.strip()
            if not name:
                raise ValidationError(message="Invalid player_name", details={"player_name": ["Required"]})
            booking.player_name = name
        if player_phone is not None:
            booking.player_phone = player_phone.strip() or None

        session.flush()
        return booking
