from tambola.records import BookingRecord, TicketRecord
from tambola.services.sheet_validation import (
    MIXED_OWNERSHIP_REASON,
    find_full_sheet_candidates,
    find_half_sheet_candidates,
    get_winning_full_sheet,
    get_winning_half_sheet,
    has_minimum_marked_numbers,
    validate_sheet_for_winning,
)


def _ticket(number: int) -> TicketRecord:
    # Ticket n holds n, n+20 and n+40 in row1 so marks are easy to control.
    row1 = (number, number + 20, number + 40, 71, 80)
    row2 = (2 if number != 2 else 3, 14, 33, 55, 66)
    row3 = (7 if number != 7 else 8, 16, 36, 58, 77)
    return TicketRecord(
        id=1000 + number,
        ticket_number=number,
        row1=row1,
        row2=row2,
        row3=row3,
        numbers=tuple(sorted(row1 + row2 + row3)),
    )


def _booking(booking_id: int, ticket_number: int, name: str) -> BookingRecord:
    return BookingRecord(id=booking_id, game_id=1, ticket_id=1000 + ticket_number, player_name=name)


TICKETS = [_ticket(n) for n in range(1, 19)]


def test_half_sheet_wins_when_every_ticket_has_two_marks():
    bookings = [_booking(i, n, "Asha") for i, n in enumerate((10, 11, 12), start=1)]
    called = [10, 30, 11, 31, 12, 32]

    winner = get_winning_half_sheet(bookings, TICKETS, called, max_tickets=18)

    assert winner is not None
    assert winner.tickets == (10, 11, 12)
    assert winner.player_name == "Asha"
    assert winner.is_valid


def test_half_sheet_mixed_owner_is_invalid_and_never_wins():
    bookings = [_booking(1, 10, "Asha"), _booking(2, 11, "Ravi"), _booking(3, 12, "Asha")]
    called = [10, 30, 11, 31, 12, 32]

    candidates = find_half_sheet_candidates(bookings, TICKETS, max_tickets=18)
    assert len(candidates) == 1
    assert candidates[0].tickets == (10, 11, 12)
    assert candidates[0].is_valid is False
    assert candidates[0].reason == MIXED_OWNERSHIP_REASON

    result = validate_sheet_for_winning(candidates[0], TICKETS, called)
    assert result.is_winner is False
    assert get_winning_half_sheet(bookings, TICKETS, called, max_tickets=18) is None


def test_one_strong_ticket_cannot_carry_a_sheet():
    bookings = [_booking(i, n, "Asha") for i, n in enumerate((10, 11, 12), start=1)]
    called = [10, 30, 50, 11, 31, 12]  # ticket 12 only has one mark

    candidate = find_half_sheet_candidates(bookings, TICKETS, max_tickets=18)[0]
    result = validate_sheet_for_winning(candidate, TICKETS, called)

    assert result.is_winner is False
    assert result.reason == "Ticket 12 has less than 2 marked numbers"


def test_partially_booked_window_is_not_a_candidate():
    bookings = [_booking(1, 10, "Asha"), _booking(2, 11, "Asha")]
    assert find_half_sheet_candidates(bookings, TICKETS, max_tickets=18) == []


def test_windows_do_not_straddle_multiples():
    # 11, 12, 13 are consecutive but not an aligned half sheet.
    bookings = [_booking(i, n, "Asha") for i, n in enumerate((11, 12, 13), start=1)]
    assert find_half_sheet_candidates(bookings, TICKETS, max_tickets=18) == []


def test_windows_beyond_max_tickets_are_ignored():
    bookings = [_booking(i, n, "Asha") for i, n in enumerate((16, 17, 18), start=1)]
    assert find_half_sheet_candidates(bookings, TICKETS, max_tickets=17) == []


def test_full_sheet_first_window_wins():
    bookings = [_booking(n, n, "Meera") for n in range(1, 13)]
    called = [n for t in range(1, 13) for n in (t, t + 20)]

    candidates = find_full_sheet_candidates(bookings, TICKETS, max_tickets=18)
    assert [c.tickets for c in candidates] == [(1, 2, 3, 4, 5, 6), (7, 8, 9, 10, 11, 12)]

    winner = get_winning_full_sheet(bookings, TICKETS, called, max_tickets=18)
    assert winner is not None
    assert winner.tickets == (1, 2, 3, 4, 5, 6)


def test_booking_for_unknown_ticket_is_skipped():
    bookings = [_booking(1, 10, "Asha"), _booking(2, 11, "Asha"), _booking(3, 12, "Asha")]
    bookings.append(BookingRecord(id=9, game_id=1, ticket_id=424242, player_name="Ghost"))

    candidates = find_half_sheet_candidates(bookings, TICKETS, max_tickets=18)
    assert [c.tickets for c in candidates] == [(10, 11, 12)]


def test_has_minimum_marked_numbers():
    ticket = TICKETS[0]
    assert has_minimum_marked_numbers(ticket, [1], minimum=2) is False
    assert has_minimum_marked_numbers(ticket, [1, 21]) is True
    assert has_minimum_marked_numbers(ticket, [1, 21, 41, 71, 80], minimum=5) is True
