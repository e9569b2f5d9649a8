"""Generate a ticket set and store it in the database.

Usage:
  python scripts/generate_tickets.py --set default --count 100
  python scripts/generate_tickets.py --set evening --count 600 --seed 42
  python scripts/generate_tickets.py --set strips --count 60 --unique-group 3
"""

from __future__ import annotations

import argparse
import logging
import pathlib
import random
from collections.abc import Sequence

from dotenv import load_dotenv
from tqdm import tqdm

from tambola import models  # noqa: F401  (registers tables)
from tambola.config import resolve_database_url
from tambola.db import create_app_engine, create_session_factory
from tambola.errors import AppError
from tambola.models.base import Base
from tambola.services.ticket_service import TicketService

logger = logging.getLogger(__name__)


def _get_database_url() -> str:
    """Resolve DB URL from env, defaulting to the local SQLite db."""

    load_dotenv()
    p = pathlib.Path(".env.local")
    if p.exists():
        load_dotenv(dotenv_path=p, override=True)

    return resolve_database_url()


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Generate housie tickets into the tickets table")
    parser.add_argument("--set", dest="set_name", type=str, default="default")
    parser.add_argument("--count", dest="count", type=int, default=100)
    parser.add_argument("--seed", dest="seed", type=int, default=None, help="Seed for reproducible sets")
    parser.add_argument(
        "--unique-group",
        dest="unique_group",
        type=int,
        default=1,
        help="Consecutive tickets that share no numbers (3 = half sheet); failed blocks are redrawn",
    )
    parser.add_argument(
        "--retries",
        dest="retries",
        type=int,
        default=10,
        help="Attempts per block when --unique-group > 1",
    )
    parser.add_argument(
        "--database-url",
        dest="database_url",
        type=str,
        default=None,
        help="Override DB connection string (e.g. sqlite:///./tambola.db)",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    if args.count < 1:
        raise SystemExit("--count must be >= 1")

    database_url = str(args.database_url) if args.database_url else _get_database_url()
    engine = create_app_engine(database_url)
    Base.metadata.create_all(bind=engine)
    session_factory = create_session_factory(engine)

    rng = random.Random(args.seed) if args.seed is not None else None
    service = TicketService(max_retries=args.retries, rng=rng)

    with session_factory() as db, tqdm(total=args.count, desc="Generating") as bar:
        try:
            tickets = service.generate_set(
                db, args.set_name, args.count, progress=bar.update, unique_group=args.unique_group
            )
        except AppError as exc:
            db.rollback()
            logger.error("%s", exc.message)
            return 1
        db.commit()

    logger.info("Stored %s tickets in set %s", len(tickets), args.set_name)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
