"""Winner detection over a snapshot of one game.

``detect_winners`` is a pure function: given the tickets, bookings, the
ordered called numbers and the winners already on record, it returns only
the awards that are newly due. Running it again with its own output added to
the existing winners returns nothing, and since called numbers are never
withdrawn, winners only accumulate.

Per-ticket prizes go to the earliest completion: every booked ticket that
completed the pattern on the same call shares the prize, and tickets that
complete it on a later call never win it.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Collection, Iterable, Sequence
from dataclasses import dataclass

from tambola.records import BookingRecord, PrizeType, TicketRecord, WinnerRecord
from tambola.services.sheet_validation import (
    MIN_MARKED_PER_SHEET_TICKET,
    SheetCandidate,
    get_winning_full_sheet,
    get_winning_half_sheet,
)

logger = logging.getLogger(__name__)

QUICK_FIVE_COUNT = 5

# Evaluated in this order; second full house depends on the full house outcome.
PER_TICKET_PRIZES: tuple[PrizeType, ...] = (
    PrizeType.QUICK_FIVE,
    PrizeType.CORNERS,
    PrizeType.STAR_CORNERS,
    PrizeType.TOP_LINE,
    PrizeType.MIDDLE_LINE,
    PrizeType.BOTTOM_LINE,
    PrizeType.FULL_HOUSE,
)


@dataclass(frozen=True)
class DetectedWinner:
    prize_type: PrizeType
    ticket_id: int
    ticket_number: int
    player_name: str
    player_phone: str | None = None
    # Position in numbers_called of the call that completed the prize.
    call_index: int | None = None
    winning_number: int | None = None


@dataclass(frozen=True)
class GameSnapshot:
    """Everything one detection pass needs, captured at a single point in time."""

    game_id: int
    numbers_called: tuple[int, ...]
    selected_prizes: frozenset[PrizeType]
    max_tickets: int
    tickets: tuple[TicketRecord, ...]
    bookings: tuple[BookingRecord, ...]
    winners: tuple[WinnerRecord, ...]


@dataclass(frozen=True)
class _Entry:
    ticket: TicketRecord
    booking: BookingRecord


def pattern_numbers(prize: PrizeType, ticket: TicketRecord) -> tuple[int, ...]:
    """Numbers that must all be called for a fixed-pattern prize."""

    if prize is PrizeType.CORNERS:
        return (ticket.row1[0], ticket.row1[-1], ticket.row3[0], ticket.row3[-1])
    if prize is PrizeType.STAR_CORNERS:
        centre = ticket.row2[len(ticket.row2) // 2]
        return (ticket.row1[0], ticket.row1[-1], centre, ticket.row3[0], ticket.row3[-1])
    if prize is PrizeType.TOP_LINE:
        return tuple(ticket.row1)
    if prize is PrizeType.MIDDLE_LINE:
        return tuple(ticket.row2)
    if prize is PrizeType.BOTTOM_LINE:
        return tuple(ticket.row3)
    if prize in (PrizeType.FULL_HOUSE, PrizeType.SECOND_FULL_HOUSE):
        return tuple(ticket.numbers)
    raise ValueError(f"{prize.value} is not a fixed-pattern prize")


def completion_index(prize: PrizeType, ticket: TicketRecord, positions: dict[int, int]) -> int | None:
    """Index of the call that completed ``prize`` on ``ticket``, or None.

    ``positions`` maps each called number to its index in the call order.
    """

    if prize is PrizeType.QUICK_FIVE:
        marked = sorted(positions[n] for n in ticket.numbers if n in positions)
        if len(marked) < QUICK_FIVE_COUNT:
            return None
        return marked[QUICK_FIVE_COUNT - 1]

    last = -1
    for n in pattern_numbers(prize, ticket):
        idx = positions.get(n)
        if idx is None:
            return None
        last = max(last, idx)
    return last


def call_positions(numbers_called: Iterable[int]) -> dict[int, int]:
    positions: dict[int, int] = {}
    for idx, n in enumerate(numbers_called):
        positions.setdefault(int(n), idx)
    return positions


def check_pattern(prize: PrizeType, ticket: TicketRecord, numbers_called: Iterable[int]) -> bool:
    """True when ``ticket`` currently satisfies a per-ticket prize."""

    if prize.is_sheet:
        raise ValueError(f"{prize.value} is decided per sheet, not per ticket")
    return completion_index(prize, ticket, call_positions(numbers_called)) is not None


def _is_well_formed(ticket: TicketRecord) -> bool:
    return bool(ticket.row1 and ticket.row2 and ticket.row3 and ticket.numbers)


def _booked_entries(
    bookings: Iterable[BookingRecord], tickets_by_id: dict[int, TicketRecord], max_tickets: int
) -> list[_Entry]:
    entries: dict[int, _Entry] = {}
    for booking in bookings:
        ticket = tickets_by_id.get(booking.ticket_id)
        if ticket is None:
            logger.warning("Skipping booking %s: ticket %s not found", booking.id, booking.ticket_id)
            continue
        if not _is_well_formed(ticket):
            logger.warning("Skipping booking %s: ticket %s is malformed", booking.id, ticket.id)
            continue
        if not 1 <= ticket.ticket_number <= max_tickets:
            logger.warning(
                "Skipping booking %s: ticket number %s outside 1..%s", booking.id, ticket.ticket_number, max_tickets
            )
            continue
        entries.setdefault(ticket.id, _Entry(ticket=ticket, booking=booking))
    return sorted(entries.values(), key=lambda e: e.ticket.ticket_number)


def _resolve_earliest(
    prize: PrizeType,
    entries: Sequence[_Entry],
    awarded_ids: Collection[int],
    tickets_by_id: dict[int, TicketRecord],
    positions: dict[int, int],
    numbers_called: Sequence[int],
) -> list[DetectedWinner]:
    completed: list[tuple[int, _Entry]] = []
    for entry in entries:
        idx = completion_index(prize, entry.ticket, positions)
        if idx is not None:
            completed.append((idx, entry))

    indexes = [idx for idx, _ in completed]
    # Recorded winners anchor the winning call even if their booking is gone.
    for ticket_id in awarded_ids:
        ticket = tickets_by_id.get(ticket_id)
        if ticket is None or not _is_well_formed(ticket):
            continue
        idx = completion_index(prize, ticket, positions)
        if idx is not None:
            indexes.append(idx)

    if not indexes:
        return []
    earliest = min(indexes)

    return [
        DetectedWinner(
            prize_type=prize,
            ticket_id=entry.ticket.id,
            ticket_number=entry.ticket.ticket_number,
            player_name=entry.booking.player_name,
            player_phone=entry.booking.player_phone,
            call_index=idx,
            winning_number=numbers_called[idx],
        )
        for idx, entry in completed
        if idx == earliest and entry.ticket.id not in awarded_ids
    ]


def _sheet_winner(
    prize: PrizeType,
    sheet: SheetCandidate,
    tickets: Sequence[TicketRecord],
    bookings: Sequence[BookingRecord],
    positions: dict[int, int],
    numbers_called: Sequence[int],
) -> DetectedWinner | None:
    by_number = {t.ticket_number: t for t in tickets}
    first = by_number.get(sheet.tickets[0])
    if first is None:
        logger.warning("Skipping %s: first ticket %s of sheet not found", prize.value, sheet.tickets[0])
        return None

    # The sheet completes when its slowest ticket reaches the minimum marks.
    idx: int | None = None
    for ticket_number in sheet.tickets:
        ticket = by_number.get(ticket_number)
        if ticket is None:
            continue
        marked = sorted(positions[n] for n in ticket.numbers if n in positions)
        if len(marked) >= MIN_MARKED_PER_SHEET_TICKET:
            nth = marked[MIN_MARKED_PER_SHEET_TICKET - 1]
            idx = nth if idx is None else max(idx, nth)

    phone = next((b.player_phone for b in bookings if b.id == sheet.booking_id), None)
    return DetectedWinner(
        prize_type=prize,
        ticket_id=first.id,
        ticket_number=first.ticket_number,
        player_name=sheet.player_name,
        player_phone=phone,
        call_index=idx,
        winning_number=numbers_called[idx] if idx is not None else None,
    )


def detect_winners(
    tickets: Iterable[TicketRecord],
    bookings: Iterable[BookingRecord],
    numbers_called: Iterable[int],
    existing_winners: Iterable[WinnerRecord],
    max_tickets: int,
    selected_prizes: Iterable[PrizeType | str],
) -> list[DetectedWinner]:
    """Compute the winners newly due for the given game state.

    Never raises for "nothing won"; bookings that point at missing or
    malformed tickets are logged and skipped.
    """

    tickets = list(tickets)
    bookings = list(bookings)
    numbers_called = [int(n) for n in numbers_called]
    selected = set(PrizeType.parse_many(selected_prizes))

    positions = call_positions(numbers_called)
    tickets_by_id = {t.id: t for t in tickets}

    awarded: dict[PrizeType, set[int]] = defaultdict(set)
    for winner in existing_winners:
        awarded[PrizeType.parse(winner.prize_type)].add(winner.ticket_id)

    entries = _booked_entries(bookings, tickets_by_id, int(max_tickets))
    found: list[DetectedWinner] = []

    for prize in PER_TICKET_PRIZES:
        if prize not in selected:
            continue
        found.extend(_resolve_earliest(prize, entries, awarded[prize], tickets_by_id, positions, numbers_called))

    if PrizeType.SECOND_FULL_HOUSE in selected:
        full_house_ids = set(awarded[PrizeType.FULL_HOUSE])
        full_house_ids.update(w.ticket_id for w in found if w.prize_type is PrizeType.FULL_HOUSE)
        if full_house_ids:
            eligible = [e for e in entries if e.ticket.id not in full_house_ids]
            found.extend(
                _resolve_earliest(
                    PrizeType.SECOND_FULL_HOUSE,
                    eligible,
                    awarded[PrizeType.SECOND_FULL_HOUSE],
                    tickets_by_id,
                    positions,
                    numbers_called,
                )
            )

    sheet_finders = (
        (PrizeType.HALF_SHEET, get_winning_half_sheet),
        (PrizeType.FULL_SHEET, get_winning_full_sheet),
    )
    for prize, finder in sheet_finders:
        if prize not in selected or awarded[prize]:
            continue
        sheet = finder(bookings, tickets, numbers_called, int(max_tickets))
        if sheet is None:
            continue
        winner = _sheet_winner(prize, sheet, tickets, bookings, positions, numbers_called)
        if winner is not None:
            found.append(winner)

    return found


def detect_for_snapshot(snapshot: GameSnapshot) -> list[DetectedWinner]:
    return detect_winners(
        tickets=snapshot.tickets,
        bookings=snapshot.bookings,
        numbers_called=snapshot.numbers_called,
        existing_winners=snapshot.winners,
        max_tickets=snapshot.max_tickets,
        selected_prizes=snapshot.selected_prizes,
    )
