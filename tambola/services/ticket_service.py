"""Service layer for ticket sets."""

from __future__ import annotations

import logging
import random
from collections.abc import Callable, Sequence

from sqlalchemy.orm import Session

from tambola.errors import ConflictError, NotFoundError, TicketGenerationError, ValidationError
from tambola.models.ticket import Ticket
from tambola.repositories.ticket_repository import TicketRepository
from tambola.services.ticket_generator import TicketData, TicketGenerator, validate_ticket
from tambola.services.ticket_set_loader import TicketSetLoader

logger = logging.getLogger(__name__)

# Six tickets already need all 90 numbers.
MAX_UNIQUE_GROUP = 6


class TicketService:
    """Ticket set use-cases."""

    def __init__(
        self,
        repository: TicketRepository | None = None,
        *,
        max_retries: int = 10,
        rng: random.Random | None = None,
    ) -> None:
        self._repo = repository or TicketRepository()
        self._max_retries = max_retries
        self._rng = rng or random.Random()

    def list_tickets(self, session: Session, set_name: str, max_tickets: int | None = None) -> Sequence[Ticket]:
        return self._repo.list_set(session, set_name, max_tickets)

    def list_sets(self, session: Session) -> list[str]:
        return self._repo.list_set_names(session)

    def get_ticket(self, session: Session, set_name: str, ticket_number: int) -> Ticket:
        ticket = self._repo.get_by_number(session, set_name, ticket_number)
        if ticket is None:
            raise NotFoundError(message=f"Ticket {ticket_number} not found in set {set_name!r}")
        return ticket

    def _ensure_empty(self, session: Session, set_name: str) -> None:
        if self._repo.count_set(session, set_name):
            raise ConflictError(message=f"Ticket set {set_name!r} already exists")

    def _generate_group(self, ticket_numbers: Sequence[int]) -> list[TicketData]:
        """Generate tickets that share no numbers with each other.

        A group of one always succeeds. Larger groups draw from shared column
        pools, which can run dry; the whole group is then redrawn with a fresh
        generator, up to ``max_retries`` attempts.
        """

        attempts = max(1, self._max_retries)
        last_error: TicketGenerationError | None = None
        for attempt in range(1, attempts + 1):
            generator = TicketGenerator(self._rng, unique_across_set=len(ticket_numbers) > 1)
            try:
                return [generator.generate(n) for n in ticket_numbers]
            except TicketGenerationError as exc:
                logger.info(
                    "Tickets %s-%s attempt %s/%s failed: %s",
                    ticket_numbers[0],
                    ticket_numbers[-1],
                    attempt,
                    attempts,
                    exc.message,
                )
                last_error = exc

        raise TicketGenerationError(
            message=f"Could not generate tickets {ticket_numbers[0]}-{ticket_numbers[-1]} after {attempts} attempts",
            details={
                "ticket_numbers": list(ticket_numbers),
                "last_error": last_error.details if last_error is not None else None,
            },
        )

    def generate_set(
        self,
        session: Session,
        set_name: str,
        count: int,
        progress: Callable[[int], None] | None = None,
        *,
        unique_group: int = 1,
    ) -> list[Ticket]:
        """Generate and persist tickets ``1..count`` for a new set.

        With ``unique_group`` > 1, each consecutive block of that many tickets
        (3 for half sheets) shares no numbers. Blocks of 5 or 6 rarely fit the
        column pools and usually exhaust the retries.
        """

        if count < 1:
            raise ValidationError(message="Invalid count", details={"count": ["Must be >= 1"]})
        if not 1 <= unique_group <= MAX_UNIQUE_GROUP:
            raise ValidationError(
                message="Invalid unique_group",
                details={"unique_group": [f"Must be within 1..{MAX_UNIQUE_GROUP}"]},
            )
        self._ensure_empty(session, set_name)

        tickets: list[TicketData] = []
        for start in range(1, int(count) + 1, unique_group):
            block = list(range(start, min(start + unique_group, int(count) + 1)))
            tickets.extend(self._generate_group(block))
            if progress is not None:
                progress(len(block))

        rows = self._repo.add_many(session, set_name, tickets)
        logger.info("Generated %s tickets for set %s", len(rows), set_name)
        return rows

    def import_set(self, session: Session, loader: TicketSetLoader, set_name: str, max_tickets: int) -> list[Ticket]:
        """Persist a ticket set file, rejecting it if any ticket is malformed."""

        self._ensure_empty(session, set_name)
        tickets = loader.load(set_name, max_tickets)
        if not tickets:
            raise ValidationError(message=f"Ticket set {set_name!r} holds no complete tickets")

        bad = {}
        for ticket in tickets:
            problems = validate_ticket(ticket)
            if problems:
                bad[str(ticket.ticket_number)] = problems
        if bad:
            raise ValidationError(message=f"Ticket set {set_name!r} has malformed tickets", details=bad)

        rows = self._repo.add_many(session, set_name, tickets)
        logger.info("Imported %s tickets into set %s", len(rows), set_name)
        return rows
