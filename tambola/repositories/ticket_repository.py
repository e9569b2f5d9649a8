"""Repository layer for Ticket persistence."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from tambola.models.ticket import Ticket
from tambola.records import TicketRecord
from tambola.services.ticket_generator import TicketData


def to_ticket_record(ticket: Ticket) -> TicketRecord:
    return TicketRecord(
        id=int(ticket.id),
        ticket_number=int(ticket.ticket_number),
        row1=tuple(int(n) for n in ticket.row1 or ()),
        row2=tuple(int(n) for n in ticket.row2 or ()),
        row3=tuple(int(n) for n in ticket.row3 or ()),
        numbers=tuple(int(n) for n in ticket.numbers or ()),
    )


class TicketRepository:
    """Reads and bulk inserts for tickets."""

    def list_set(self, session: Session, set_name: str, max_tickets: int | None = None) -> Sequence[Ticket]:
        stmt = select(Ticket).where(Ticket.set_name == set_name)
        if max_tickets is not None:
            stmt = stmt.where(Ticket.ticket_number <= int(max_tickets))
        stmt = stmt.order_by(Ticket.ticket_number.asc())
        return list(session.scalars(stmt).all())

    def get_by_number(self, session: Session, set_name: str, ticket_number: int) -> Ticket | None:
        stmt = select(Ticket).where(Ticket.set_name == set_name, Ticket.ticket_number == int(ticket_number))
        return session.scalars(stmt).first()

    def get_by_numbers(self, session: Session, set_name: str, ticket_numbers: Iterable[int]) -> dict[int, Ticket]:
        wanted = sorted({int(n) for n in ticket_numbers})
        if not wanted:
            return {}
        stmt = select(Ticket).where(Ticket.set_name == set_name, Ticket.ticket_number.in_(wanted))
        return {int(t.ticket_number): t for t in session.scalars(stmt).all()}

    def count_set(self, session: Session, set_name: str) -> int:
        stmt = select(func.count()).select_from(Ticket).where(Ticket.set_name == set_name)
        return int(session.scalar(stmt) or 0)

    def list_set_names(self, session: Session) -> list[str]:
        stmt = select(Ticket.set_name).distinct().order_by(Ticket.set_name.asc())
        return [str(name) for name in session.scalars(stmt).all()]

    def add_many(self, session: Session, set_name: str, tickets: Iterable[TicketData]) -> list[Ticket]:
        rows = [
            Ticket(
                set_name=set_name,
                ticket_number=t.ticket_number,
                row1=list(t.row1),
                row2=list(t.row2),
                row3=list(t.row3),
                numbers=list(t.numbers),
            )
            for t in tickets
        ]
        session.add_all(rows)
        session.flush()  # assign PKs
        return rows
