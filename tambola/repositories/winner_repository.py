"""Repository layer for Winner persistence."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tambola.models.winner import Winner
from tambola.records import PrizeType, WinnerRecord

logger = logging.getLogger(__name__)


def to_winner_record(winner: Winner) -> WinnerRecord:
    return WinnerRecord(
        id=int(winner.id),
        game_id=int(winner.game_id),
        ticket_id=int(winner.ticket_id),
        prize_type=PrizeType.parse(winner.prize_type),
        claimed_at=winner.claimed_at,
    )


class WinnerRepository:
    """Reads and insert-or-ignore writes for winners."""

    def list_for_game(self, session: Session, game_id: int) -> Sequence[Winner]:
        stmt = select(Winner).where(Winner.game_id == int(game_id)).order_by(Winner.id.asc())
        return list(session.scalars(stmt).all())

    def insert_if_absent(self, session: Session, *, game_id: int, ticket_id: int, prize_type: PrizeType) -> Winner | None:
        """Insert a winner row unless a uniqueness constraint already covers it.

        Concurrent detection passes may compute the same award; the loser of
        that race gets None back and nothing is written.
        """

        winner = Winner(game_id=game_id, ticket_id=ticket_id, prize_type=prize_type.value)
        try:
            with session.begin_nested():
                session.add(winner)
                session.flush()
        except IntegrityError:
            logger.info("Winner already recorded: game=%s prize=%s ticket=%s", game_id, prize_type.value, ticket_id)
            return None
        return winner
