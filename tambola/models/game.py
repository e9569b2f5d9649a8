"""Game ORM model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, Integer, SmallInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from tambola.models.base import Base, utcnow


class Game(Base):
    """One housie session.

    ``numbers_called`` is append-only; always assign a new list so the JSON
    column is flagged dirty.
    """

    __tablename__ = "games"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="waiting", index=True)

    numbers_called: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)
    current_number: Mapped[int | None] = mapped_column(SmallInteger, nullable=True)

    max_tickets: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    selected_prizes: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    number_calling_delay: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    ticket_set: Mapped[str] = mapped_column(String(100), nullable=False, default="default")
    host_phone: Mapped[str | None] = mapped_column(String(32), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
