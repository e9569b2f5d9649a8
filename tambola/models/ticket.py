"""Ticket ORM model.

A ticket is written once when its set is generated or imported and never
updated afterwards.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, Integer, SmallInteger, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from tambola.models.base import Base, utcnow


class Ticket(Base):
    """A 3x9 housie ticket holding 15 numbers."""

    __tablename__ = "tickets"
    __table_args__ = (UniqueConstraint("set_name", "ticket_number", name="uq_tickets_set_number"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    set_name: Mapped[str] = mapped_column(String(100), nullable=False, default="default", index=True)
    ticket_number: Mapped[int] = mapped_column(SmallInteger, nullable=False)

    row1: Mapped[list[int]] = mapped_column(JSON, nullable=False)
    row2: Mapped[list[int]] = mapped_column(JSON, nullable=False)
    row3: Mapped[list[int]] = mapped_column(JSON, nullable=False)
    numbers: Mapped[list[int]] = mapped_column(JSON, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
