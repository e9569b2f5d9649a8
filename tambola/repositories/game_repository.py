"""Repository layer for Game persistence."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from tambola.models.game import Game


class GameRepository:
    """CRUD operations for Game."""

    def get_by_id(self, session: Session, game_id: int) -> Game | None:
        return session.get(Game, game_id)

    def get_for_update(self, session: Session, game_id: int) -> Game | None:
        """Load the game row locked for the rest of the transaction.

        Attributes are reloaded so a row already in the session is not stale.
        SQLite has no row locks; the statement degrades to a plain select.
        """
        stmt = (
            select(Game)
            .where(Game.id == int(game_id))
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return session.scalars(stmt).first()

    def get_latest(self, session: Session) -> Game | None:
        stmt = select(Game).order_by(Game.created_at.desc(), Game.id.desc()).limit(1)
        return session.scalars(stmt).first()

    def create(self, session: Session, **fields: object) -> Game:
        game = Game(**fields)
        session.add(game)
        session.flush()  # assign PK
        return game
