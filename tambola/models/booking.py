"""Booking ORM model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from tambola.models.base import Base, utcnow


class Booking(Base):
    """A ticket held by a player for one game."""

    __tablename__ = "bookings"
    # One booking per ticket per game; concurrent claims lose at this constraint.
    __table_args__ = (UniqueConstraint("game_id", "ticket_id", name="uq_bookings_game_ticket"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    game_id: Mapped[int] = mapped_column(Integer, ForeignKey("games.id", ondelete="CASCADE"), index=True)
    ticket_id: Mapped[int] = mapped_column(Integer, ForeignKey("tickets.id", ondelete="CASCADE"))
    player_name: Mapped[str] = mapped_column(String(200), nullable=False)
    player_phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    booked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
