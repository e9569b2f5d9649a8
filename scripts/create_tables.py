"""Create (or reset) the game tables.

Usage:
  python scripts/create_tables.py
  python scripts/create_tables.py --database-url sqlite:///./tambola.db --reset
"""

from __future__ import annotations

import argparse
import pathlib

from dotenv import load_dotenv

from tambola import models  # noqa: F401  (registers tables)
from tambola.config import resolve_database_url
from tambola.db import create_app_engine
from tambola.models.base import Base

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]


def main() -> int:
    load_dotenv()
    env_local = PROJECT_ROOT / ".env.local"
    if env_local.exists():
        load_dotenv(dotenv_path=env_local, override=True)

    parser = argparse.ArgumentParser(description="Create Tambola tables in the configured database")
    parser.add_argument("--database-url", default=None, help="Override DATABASE_URL")
    parser.add_argument("--reset", action="store_true", help="Drop games, bookings, winners and tickets first")
    args = parser.parse_args()

    engine = create_app_engine(args.database_url or resolve_database_url())
    if args.reset:
        Base.metadata.drop_all(bind=engine)
        print("Dropped existing tables.")
    Base.metadata.create_all(bind=engine)

    print(f"Tables ready: {', '.join(sorted(Base.metadata.tables))}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
