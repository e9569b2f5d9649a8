"""Load pre-printed ticket sets from JSON files.

A set file is a JSON array with one entry per ticket row::

    {"setId": 1, "ticketId": 7, "rowId": 2, "numbers": [0, 14, 0, 33, ...]}

``numbers`` holds the 9 grid cells of the row, with 0 marking a blank cell.
Files live either in a local directory (``<dir>/<set>.json``) or under an
http(s) base URL (``<url>/<set>.json``).
"""

from __future__ import annotations

import json
import logging
import pathlib
from collections import defaultdict
from threading import Lock
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from tambola.errors import NotFoundError, ValidationError
from tambola.services.ticket_generator import ROWS, TicketData

logger = logging.getLogger(__name__)

CacheKey = tuple[str, str, int]


def _build_http_session(retries: int = 3, backoff_factor: float = 0.3) -> requests.Session:
    """Create a requests session with retry/backoff for transient network errors."""

    retry = Retry(
        total=retries,
        connect=retries,
        read=retries,
        status=retries,
        backoff_factor=backoff_factor,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=("GET",),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)

    session = requests.Session()
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def _is_url(source: str) -> bool:
    return source.startswith("http://") or source.startswith("https://")


def parse_ticket_rows(rows: list[dict[str, Any]], max_tickets: int) -> list[TicketData]:
    """Group raw set rows into tickets numbered ``1..max_tickets``.

    Tickets that do not have exactly three rows are dropped with a warning.
    """

    grouped: dict[int, list[tuple[int, list[int]]]] = defaultdict(list)
    for row in rows:
        try:
            ticket_id = int(row["ticketId"])
            row_id = int(row.get("rowId") or 0)
            numbers = [int(n) for n in (row.get("numbers") or [])]
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise ValidationError(message="Malformed ticket set row", details={"row": row}) from exc
        if ticket_id <= max_tickets:
            grouped[ticket_id].append((row_id, [n for n in numbers if n != 0]))

    tickets: list[TicketData] = []
    for ticket_id in sorted(grouped):
        ticket_rows = sorted(grouped[ticket_id], key=lambda r: r[0])
        if len(ticket_rows) != ROWS:
            logger.warning("Ticket %s has %s rows; skipping", ticket_id, len(ticket_rows))
            continue
        tickets.append(TicketData.from_rows(ticket_id, [cells for _, cells in ticket_rows]))

    return tickets


class TicketSetLoader:
    """Fetch, parse and cache ticket sets."""

    def __init__(self, source: str, http: requests.Session | None = None, timeout_seconds: float = 10.0) -> None:
        self._source = str(source)
        self._http = http
        self._timeout = timeout_seconds
        self._lock = Lock()
        self._cache: dict[CacheKey, list[TicketData]] = {}

    def _fetch_rows(self, set_name: str) -> list[dict[str, Any]]:
        if _is_url(self._source):
            if self._http is None:
                self._http = _build_http_session()
            url = f"{self._source.rstrip('/')}/{set_name}.json"
            resp = self._http.get(url, timeout=self._timeout)
            if resp.status_code == 404:
                raise NotFoundError(message=f"Ticket set {set_name!r} not found", details={"url": url})
            resp.raise_for_status()
            payload = resp.json()
        else:
            path = pathlib.Path(self._source) / f"{set_name}.json"
            if not path.is_file():
                raise NotFoundError(message=f"Ticket set {set_name!r} not found", details={"path": str(path)})
            payload = json.loads(path.read_text(encoding="utf-8"))

        if not isinstance(payload, list):
            raise ValidationError(message=f"Ticket set {set_name!r} must be a JSON array")
        return payload

    def load(self, set_name: str, max_tickets: int = 100) -> list[TicketData]:
        key: CacheKey = (self._source, set_name, int(max_tickets))
        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                return cached

            logger.info("Loading ticket set %s (max %s) from %s", set_name, max_tickets, self._source)
            rows = self._fetch_rows(set_name)
            tickets = parse_ticket_rows(rows, int(max_tickets))
            logger.info("Loaded %s ticket rows into %s tickets", len(rows), len(tickets))
            self._cache[key] = tickets
            return tickets

    def get_ticket(self, set_name: str, ticket_number: int, max_tickets: int = 100) -> TicketData:
        tickets = self.load(set_name, max_tickets)
        for ticket in tickets:
            if ticket.ticket_number == int(ticket_number):
                return ticket
        raise NotFoundError(
            message=f"Ticket {ticket_number} not found in {set_name} (max: {max_tickets})",
            details={
                "available": [tickets[0].ticket_number, tickets[-1].ticket_number] if tickets else [],
            },
        )

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()
        logger.info("Ticket set cache cleared")
