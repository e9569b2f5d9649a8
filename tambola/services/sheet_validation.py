"""Half-sheet and full-sheet ownership checks.

A sheet is a block of consecutive ticket numbers (3 for a half sheet, 6 for
a full sheet) ending on a multiple of the block size. It qualifies only when
one player holds every ticket in the block, and it wins once every ticket in
the block has at least two called numbers, so a sheet cannot win on the
strength of a single ticket.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable, Sequence
from dataclasses import dataclass

from tambola.records import BookingRecord, TicketRecord

logger = logging.getLogger(__name__)

HALF_SHEET_SIZE = 3
FULL_SHEET_SIZE = 6
MIN_MARKED_PER_SHEET_TICKET = 2

MIXED_OWNERSHIP_REASON = "Tickets owned by different players"


@dataclass(frozen=True)
class SheetCandidate:
    tickets: tuple[int, ...]
    player_name: str
    booking_id: int | None
    is_valid: bool
    reason: str | None = None


@dataclass(frozen=True)
class SheetValidation:
    is_winner: bool
    reason: str | None = None


def _bookings_by_ticket_number(
    bookings: Iterable[BookingRecord], tickets: Iterable[TicketRecord]
) -> dict[int, BookingRecord]:
    by_id = {t.id: t for t in tickets}
    out: dict[int, BookingRecord] = {}
    for booking in bookings:
        ticket = by_id.get(booking.ticket_id)
        if ticket is None:
            logger.warning("Booking %s references unknown ticket %s", booking.id, booking.ticket_id)
            continue
        out.setdefault(ticket.ticket_number, booking)
    return out


def _find_candidates(
    bookings: Iterable[BookingRecord],
    tickets: Iterable[TicketRecord],
    max_tickets: int,
    size: int,
) -> list[SheetCandidate]:
    owners = _bookings_by_ticket_number(bookings, tickets)
    candidates: list[SheetCandidate] = []

    for end in range(size, int(max_tickets) + 1, size):
        window = tuple(range(end - size + 1, end + 1))
        if window[0] < 1:
            continue

        held = [owners[n] for n in window if n in owners]
        if len(held) != size:
            # Partially booked windows are not candidates at all.
            continue

        first = held[0]
        if all(b.player_name == first.player_name for b in held):
            candidates.append(
                SheetCandidate(tickets=window, player_name=first.player_name, booking_id=first.id, is_valid=True)
            )
        else:
            candidates.append(
                SheetCandidate(
                    tickets=window,
                    player_name="Multiple players",
                    booking_id=None,
                    is_valid=False,
                    reason=MIXED_OWNERSHIP_REASON,
                )
            )

    return candidates


def find_half_sheet_candidates(
    bookings: Iterable[BookingRecord], tickets: Iterable[TicketRecord], max_tickets: int
) -> list[SheetCandidate]:
    """Fully booked 3-ticket windows ending on multiples of 3."""
    return _find_candidates(bookings, tickets, max_tickets, HALF_SHEET_SIZE)


def find_full_sheet_candidates(
    bookings: Iterable[BookingRecord], tickets: Iterable[TicketRecord], max_tickets: int
) -> list[SheetCandidate]:
    """Fully booked 6-ticket windows ending on multiples of 6."""
    return _find_candidates(bookings, tickets, max_tickets, FULL_SHEET_SIZE)


def has_minimum_marked_numbers(
    ticket: TicketRecord, called_numbers: Collection[int], minimum: int = MIN_MARKED_PER_SHEET_TICKET
) -> bool:
    called = called_numbers if isinstance(called_numbers, (set, frozenset)) else set(called_numbers)
    return sum(1 for n in ticket.numbers if n in called) >= minimum


def validate_sheet_for_winning(
    candidate: SheetCandidate, tickets: Iterable[TicketRecord], called_numbers: Collection[int]
) -> SheetValidation:
    if not candidate.is_valid:
        return SheetValidation(is_winner=False, reason=candidate.reason)

    by_number = {t.ticket_number: t for t in tickets}
    called = set(called_numbers)
    for ticket_number in candidate.tickets:
        ticket = by_number.get(ticket_number)
        if ticket is None:
            return SheetValidation(is_winner=False, reason=f"Ticket {ticket_number} not found")
        if not has_minimum_marked_numbers(ticket, called, MIN_MARKED_PER_SHEET_TICKET):
            return SheetValidation(
                is_winner=False,
                reason=f"Ticket {ticket_number} has less than {MIN_MARKED_PER_SHEET_TICKET} marked numbers",
            )

    return SheetValidation(is_winner=True)


def _first_winner(
    candidates: Sequence[SheetCandidate], tickets: Sequence[TicketRecord], called_numbers: Collection[int]
) -> SheetCandidate | None:
    for candidate in candidates:
        if validate_sheet_for_winning(candidate, tickets, called_numbers).is_winner:
            return candidate
    return None


def get_winning_half_sheet(
    bookings: Iterable[BookingRecord],
    tickets: Iterable[TicketRecord],
    called_numbers: Collection[int],
    max_tickets: int,
) -> SheetCandidate | None:
    tickets = list(tickets)
    return _first_winner(find_half_sheet_candidates(bookings, tickets, max_tickets), tickets, called_numbers)


def get_winning_full_sheet(
    bookings: Iterable[BookingRecord],
    tickets: Iterable[TicketRecord],
    called_numbers: Collection[int],
    max_tickets: int,
) -> SheetCandidate | None:
    tickets = list(tickets)
    return _first_winner(find_full_sheet_candidates(bookings, tickets, max_tickets), tickets, called_numbers)
