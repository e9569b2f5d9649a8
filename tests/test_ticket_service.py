import json
import random

import pytest

from tambola.errors import ConflictError, NotFoundError, TicketGenerationError, ValidationError
from tambola.services import ticket_service
from tambola.services.ticket_generator import TicketGenerator, validate_ticket
from tambola.services.ticket_service import TicketService
from tambola.services.ticket_set_loader import TicketSetLoader


def test_generate_set_persists_numbered_tickets(session):
    service = TicketService(rng=random.Random(5))
    ticks = []
    rows = service.generate_set(session, "classic", 6, progress=ticks.append)
    session.commit()

    assert [t.ticket_number for t in rows] == [1, 2, 3, 4, 5, 6]
    assert sum(ticks) == 6
    assert service.list_sets(session) == ["classic"]
    assert len(service.list_tickets(session, "classic", 4)) == 4

    ticket = service.get_ticket(session, "classic", 2)
    assert len(ticket.numbers) == 15
    assert [len(r) for r in (ticket.row1, ticket.row2, ticket.row3)] == [5, 5, 5]


def test_generate_set_refuses_existing_set(session):
    service = TicketService(rng=random.Random(5))
    service.generate_set(session, "classic", 2)

    with pytest.raises(ConflictError):
        service.generate_set(session, "classic", 2)
    with pytest.raises(ValidationError):
        service.generate_set(session, "other", 0)


def test_get_missing_ticket(session):
    with pytest.raises(NotFoundError):
        TicketService().get_ticket(session, "classic", 1)


def _row(numbers):
    cells = [0] * 9
    for n in numbers:
        cells[min(n // 10, 8)] = n
    return cells


def test_import_set_validates_tickets(session, tmp_path):
    good = [
        {"ticketId": 1, "rowId": 1, "numbers": _row([1, 12, 23, 34, 45])},
        {"ticketId": 1, "rowId": 2, "numbers": _row([5, 16, 56, 67, 78])},
        {"ticketId": 1, "rowId": 3, "numbers": _row([9, 29, 39, 69, 89])},
    ]
    bad = [
        {"ticketId": 2, "rowId": 1, "numbers": _row([2, 13, 24, 35])},
        {"ticketId": 2, "rowId": 2, "numbers": _row([6, 17, 57, 68, 79])},
        {"ticketId": 2, "rowId": 3, "numbers": _row([8, 28, 38, 58, 88])},
    ]
    (tmp_path / "good.json").write_text(json.dumps(good), encoding="utf-8")
    (tmp_path / "mixed.json").write_text(json.dumps(good + bad), encoding="utf-8")
    loader = TicketSetLoader(str(tmp_path))
    service = TicketService()

    rows = service.import_set(session, loader, "good", 10)
    assert len(rows) == 1
    assert validate_ticket(loader.load("good", 10)[0]) == []

    with pytest.raises(ValidationError) as exc:
        service.import_set(session, loader, "mixed", 10)
    assert list(exc.value.details) == ["2"]


def test_generate_set_in_unique_blocks(session):
    service = TicketService(rng=random.Random(11))
    ticks = []
    rows = service.generate_set(session, "strips", 7, progress=ticks.append, unique_group=3)
    session.commit()

    assert [t.ticket_number for t in rows] == list(range(1, 8))
    assert ticks == [3, 3, 1]
    for block in (rows[0:3], rows[3:6]):
        seen = [n for t in block for n in t.numbers]
        assert len(seen) == len(set(seen)) == 45


def test_generate_set_rejects_bad_unique_group(session):
    service = TicketService()
    for group in (0, 7):
        with pytest.raises(ValidationError) as exc:
            service.generate_set(session, "strips", 6, unique_group=group)
        assert "unique_group" in exc.value.details
    assert service.list_tickets(session, "strips") == []


def _flaky_generator(failures):
    made = []

    class Flaky(TicketGenerator):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, **kwargs)
            made.append(self)

        def generate(self, ticket_number):
            if len(made) <= failures and ticket_number % 3 == 0:
                raise TicketGenerationError(message="Column 1 pool ran dry")
            return super().generate(ticket_number)

    return Flaky, made


def test_unique_block_is_redrawn_after_exhaustion(session, monkeypatch):
    flaky, made = _flaky_generator(failures=2)
    monkeypatch.setattr(ticket_service, "TicketGenerator", flaky)
    service = TicketService(max_retries=5, rng=random.Random(3))

    rows = service.generate_set(session, "strips", 3, unique_group=3)

    assert len(made) == 3
    assert [t.ticket_number for t in rows] == [1, 2, 3]
    seen = [n for t in rows for n in t.numbers]
    assert len(seen) == len(set(seen))


def test_unique_block_gives_up_after_max_retries(session, monkeypatch):
    flaky, made = _flaky_generator(failures=100)
    monkeypatch.setattr(ticket_service, "TicketGenerator", flaky)
    service = TicketService(max_retries=4, rng=random.Random(3))

    with pytest.raises(TicketGenerationError) as exc:
        service.generate_set(session, "strips", 6, unique_group=3)

    assert len(made) == 4
    assert exc.value.details["ticket_numbers"] == [1, 2, 3]
    assert exc.value.details["last_error"] is None
    assert service.list_tickets(session, "strips") == []
