"""Housie ticket generation and shape validation."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Iterable, Sequence

from tambola.errors import TicketGenerationError

ROWS = 3
COLUMNS = 9
NUMBERS_PER_ROW = 5
NUMBERS_PER_TICKET = ROWS * NUMBERS_PER_ROW

# Inclusive number range of each column: 1-9, 10-19, ..., 70-79, 80-90.
COLUMN_RANGES: tuple[tuple[int, int], ...] = (
    (1, 9),
    (10, 19),
    (20, 29),
    (30, 39),
    (40, 49),
    (50, 59),
    (60, 69),
    (70, 79),
    (80, 90),
)


def column_of(number: int) -> int:
    """Column index holding ``number`` (90 sits in the last column)."""
    if number < 1 or number > 90:
        raise ValueError(f"number out of range: {number}")
    return min(number // 10, COLUMNS - 1)


@dataclass(frozen=True)
class TicketData:
    ticket_number: int
    row1: tuple[int, ...]
    row2: tuple[int, ...]
    row3: tuple[int, ...]
    numbers: tuple[int, ...]

    @property
    def rows(self) -> tuple[tuple[int, ...], tuple[int, ...], tuple[int, ...]]:
        return (self.row1, self.row2, self.row3)

    @classmethod
    def from_rows(cls, ticket_number: int, rows: Sequence[Iterable[int]]) -> TicketData:
        r1, r2, r3 = (tuple(sorted(int(n) for n in row)) for row in rows)
        return cls(
            ticket_number=int(ticket_number),
            row1=r1,
            row2=r2,
            row3=r3,
            numbers=tuple(sorted((*r1, *r2, *r3))),
        )


def validate_ticket(ticket: TicketData) -> list[str]:
    """Return the shape problems of a ticket; empty when the ticket is valid."""

    problems: list[str] = []
    if ticket.ticket_number < 1:
        problems.append("ticket_number must be >= 1")

    seen: set[int] = set()
    for idx, row in enumerate(ticket.rows, start=1):
        if len(row) != NUMBERS_PER_ROW:
            problems.append(f"row{idx} has {len(row)} numbers (expected {NUMBERS_PER_ROW})")
        if list(row) != sorted(row):
            problems.append(f"row{idx} is not ascending")

        used_columns: set[int] = set()
        for n in row:
            if n < 1 or n > 90:
                problems.append(f"row{idx} number {n} outside 1..90")
                continue
            col = column_of(n)
            if col in used_columns:
                problems.append(f"row{idx} uses column {col} twice")
            used_columns.add(col)
            if n in seen:
                problems.append(f"number {n} appears more than once")
            seen.add(n)

    if len(seen) != NUMBERS_PER_TICKET:
        problems.append(f"ticket has {len(seen)} distinct numbers (expected {NUMBERS_PER_TICKET})")
    if tuple(ticket.numbers) != tuple(sorted(seen)):
        problems.append("numbers is not the sorted union of the rows")

    return problems


class TicketGenerator:
    """Draw tickets from per-column number pools.

    By default every ticket starts from full pools. With
    ``unique_across_set=True`` the pools are shared by all tickets generated
    by this instance, so no number repeats within the set and pools can run
    dry; that raises ``TicketGenerationError`` and leaves the generator
    unusable (start a fresh one to retry).
    """

    def __init__(self, rng: random.Random | None = None, *, unique_across_set: bool = False) -> None:
        self._rng = rng or random.Random()
        self._shared_pools = self._fresh_pools() if unique_across_set else None

    def _fresh_pools(self) -> list[list[int]]:
        pools = []
        for lo, hi in COLUMN_RANGES:
            pool = list(range(lo, hi + 1))
            self._rng.shuffle(pool)
            pools.append(pool)
        return pools

    def generate(self, ticket_number: int) -> TicketData:
        pools = self._shared_pools if self._shared_pools is not None else self._fresh_pools()

        rows: list[list[int]] = []
        for row_idx in range(ROWS):
            columns = self._rng.sample(range(COLUMNS), NUMBERS_PER_ROW)
            row: list[int] = []
            for col in columns:
                if not pools[col]:
                    raise TicketGenerationError(
                        message=f"Column {col} exhausted while filling ticket {ticket_number}",
                        details={"ticket_number": ticket_number, "row": row_idx + 1, "column": col},
                    )
                row.append(pools[col].pop())
            rows.append(row)

        ticket = TicketData.from_rows(ticket_number, rows)
        problems = validate_ticket(ticket)
        if problems:
            raise TicketGenerationError(
                message=f"Generated ticket {ticket_number} is malformed",
                details={"problems": problems},
            )
        return ticket


def generate_ticket(ticket_number: int, rng: random.Random | None = None) -> TicketData:
    """Generate one independent ticket."""
    return TicketGenerator(rng).generate(ticket_number)
