"""Plain value types shared by the detection core and the persistence layer.

The winner detector and sheet validator only ever see these frozen records,
never ORM rows, so a detection pass works on a consistent snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterable

from tambola.errors import ValidationError


class PrizeType(str, Enum):
    QUICK_FIVE = "quick_five"
    CORNERS = "corners"
    STAR_CORNERS = "star_corners"
    TOP_LINE = "top_line"
    MIDDLE_LINE = "middle_line"
    BOTTOM_LINE = "bottom_line"
    FULL_HOUSE = "full_house"
    SECOND_FULL_HOUSE = "second_full_house"
    HALF_SHEET = "half_sheet"
    FULL_SHEET = "full_sheet"

    @property
    def is_sheet(self) -> bool:
        return self in SHEET_PRIZES

    @classmethod
    def parse(cls, value: str | PrizeType) -> PrizeType:
        """Resolve a prize identifier, accepting legacy aliases.

        Raises:
            ValidationError: for identifiers that name no prize.
        """
        if isinstance(value, PrizeType):
            return value
        key = str(value).strip().lower()
        key = LEGACY_PRIZE_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError as exc:
            raise ValidationError(
                message=f"Unknown prize type {value!r}",
                details={"prize_type": [f"Must be one of {', '.join(p.value for p in cls)}"]},
            ) from exc

    @classmethod
    def parse_many(cls, values: Iterable[str | PrizeType]) -> list[PrizeType]:
        """Parse and de-duplicate, keeping catalogue order."""
        wanted = {cls.parse(v) for v in values}
        return [p for p in cls if p in wanted]


SHEET_PRIZES = frozenset({PrizeType.HALF_SHEET, PrizeType.FULL_SHEET})

# Identifiers written by older clients.
LEGACY_PRIZE_ALIASES: dict[str, str] = {
    "early_five": "quick_five",
    "first_line": "top_line",
    "second_line": "middle_line",
    "third_line": "bottom_line",
}


class GameStatus(str, Enum):
    WAITING = "waiting"
    ACTIVE = "active"
    PAUSED = "paused"
    ENDED = "ended"


# status -> statuses reachable from it
GAME_TRANSITIONS: dict[GameStatus, frozenset[GameStatus]] = {
    GameStatus.WAITING: frozenset({GameStatus.ACTIVE, GameStatus.ENDED}),
    GameStatus.ACTIVE: frozenset({GameStatus.PAUSED, GameStatus.ENDED}),
    GameStatus.PAUSED: frozenset({GameStatus.ACTIVE, GameStatus.ENDED}),
    GameStatus.ENDED: frozenset(),
}


@dataclass(frozen=True)
class TicketRecord:
    id: int
    ticket_number: int
    row1: tuple[int, ...]
    row2: tuple[int, ...]
    row3: tuple[int, ...]
    numbers: tuple[int, ...]

    @property
    def rows(self) -> tuple[tuple[int, ...], tuple[int, ...], tuple[int, ...]]:
        return (self.row1, self.row2, self.row3)


@dataclass(frozen=True)
class BookingRecord:
    id: int
    game_id: int
    ticket_id: int
    player_name: str
    player_phone: str | None = None
    booked_at: datetime | None = None


@dataclass(frozen=True)
class WinnerRecord:
    game_id: int
    ticket_id: int
    prize_type: PrizeType
    id: int | None = None
    claimed_at: datetime | None = None
