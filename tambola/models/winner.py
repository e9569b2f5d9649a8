"""Winner ORM model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from tambola.models.base import Base, utcnow

_SHEET_ONLY = text("prize_type IN ('half_sheet', 'full_sheet')")


class Winner(Base):
    """A prize awarded to one ticket in one game."""

    __tablename__ = "winners"
    __table_args__ = (
        UniqueConstraint("game_id", "prize_type", "ticket_id", name="uq_winners_game_prize_ticket"),
        # Sheet prizes have a single winner per game.
        Index(
            "uq_winners_game_sheet_prize",
            "game_id",
            "prize_type",
            unique=True,
            sqlite_where=_SHEET_ONLY,
            postgresql_where=_SHEET_ONLY,
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    game_id: Mapped[int] = mapped_column(Integer, ForeignKey("games.id", ondelete="CASCADE"), index=True)
    ticket_id: Mapped[int] = mapped_column(Integer, ForeignKey("tickets.id", ondelete="CASCADE"))
    prize_type: Mapped[str] = mapped_column(String(32), nullable=False)
    claimed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
