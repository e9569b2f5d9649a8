"""Import a pre-printed ticket set file into the database.

The source is a directory containing `<set>.json` or an http(s) base URL
serving it.

Usage:
  python scripts/import_ticket_set.py --set set-1 --source ./tickets --max 100
  python scripts/import_ticket_set.py --set set-2 --source https://example.org/tickets
"""

from __future__ import annotations

import argparse
import logging
import os
import pathlib
from collections.abc import Sequence

from dotenv import load_dotenv

from tambola import models  # noqa: F401  (registers tables)
from tambola.config import resolve_database_url
from tambola.db import create_app_engine, create_session_factory
from tambola.errors import AppError
from tambola.models.base import Base
from tambola.services.ticket_service import TicketService
from tambola.services.ticket_set_loader import TicketSetLoader

logger = logging.getLogger(__name__)


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Load a ticket set file into the tickets table")
    parser.add_argument("--set", dest="set_name", type=str, required=True)
    parser.add_argument("--source", dest="source", type=str, default=None, help="Directory or base URL")
    parser.add_argument("--max", dest="max_tickets", type=int, default=100)
    parser.add_argument("--timeout", dest="timeout_seconds", type=float, default=10.0)
    parser.add_argument("--database-url", dest="database_url", type=str, default=None)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    load_dotenv()
    env_local = pathlib.Path(".env.local")
    if env_local.exists():
        load_dotenv(dotenv_path=env_local, override=True)

    source = args.source or os.getenv("TICKET_SETS_SOURCE", "./tickets")
    engine = create_app_engine(args.database_url or resolve_database_url())
    Base.metadata.create_all(bind=engine)
    session_factory = create_session_factory(engine)

    loader = TicketSetLoader(source, timeout_seconds=args.timeout_seconds)
    with session_factory() as db:
        try:
            tickets = TicketService().import_set(db, loader, args.set_name, args.max_tickets)
        except AppError as exc:
            db.rollback()
            logger.error("%s (%s)", exc.message, exc.details)
            return 1
        db.commit()

    logger.info("Imported %s tickets into set %s", len(tickets), args.set_name)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
