"""Repository layer for Booking persistence."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tambola.models.booking import Booking
from tambola.records import BookingRecord


def to_booking_record(booking: Booking) -> BookingRecord:
    return BookingRecord(
        id=int(booking.id),
        game_id=int(booking.game_id),
        ticket_id=int(booking.ticket_id),
        player_name=str(booking.player_name),
        player_phone=booking.player_phone,
        booked_at=booking.booked_at,
    )


class BookingRepository:
    """CRUD operations for Booking."""

    def list_for_game(self, session: Session, game_id: int) -> Sequence[Booking]:
        stmt = select(Booking).where(Booking.game_id == int(game_id)).order_by(Booking.id.asc())
        return list(session.scalars(stmt).all())

    def get_by_id(self, session: Session, booking_id: int) -> Booking | None:
        return session.get(Booking, booking_id)

    def booked_ticket_ids(self, session: Session, game_id: int) -> set[int]:
        stmt = select(Booking.ticket_id).where(Booking.game_id == int(game_id))
        return {int(t) for t in session.scalars(stmt).all()}

    def try_create(
        self, session: Session, *, game_id: int, ticket_id: int, player_name: str, player_phone: str | None
    ) -> Booking | None:
        """Insert a booking; None if another writer already holds the ticket."""

        booking = Booking(game_id=game_id, ticket_id=ticket_id, player_name=player_name, player_phone=player_phone)
        try:
            with session.begin_nested():
                session.add(booking)
                session.flush()
        except IntegrityError:
            return None
        return booking
