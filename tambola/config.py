"""Environment-based configuration."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from sqlalchemy.engine import URL

SQLITE_FALLBACK_URL = "sqlite:///./tambola.db"


def _int_env(name: str, default: int, environ: Mapping[str, str] | None = None) -> int:
    raw = (os.environ if environ is None else environ).get(name)
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


def resolve_database_url(environ: Mapping[str, str] | None = None) -> str:
    """Pick the game database.

    ``DATABASE_URL`` wins. Otherwise a Postgres URL is assembled when
    ``PGHOST``, ``PGUSER`` and ``PGDATABASE`` are all set, and a local SQLite
    file is used as a last resort.
    """

    env = os.environ if environ is None else environ
    if env.get("DATABASE_URL"):
        return env["DATABASE_URL"]

    if not all(env.get(k) for k in ("PGHOST", "PGUSER", "PGDATABASE")):
        return SQLITE_FALLBACK_URL

    sslmode = env.get("PGSSLMODE", "require")
    return URL.create(
        drivername="postgresql+psycopg2",
        username=env["PGUSER"],
        password=env.get("PGPASSWORD"),
        host=env["PGHOST"],
        port=_int_env("PGPORT", 5432, env),
        database=env["PGDATABASE"],
        query={"sslmode": sslmode} if sslmode else {},
    ).render_as_string(hide_password=False)


@dataclass(frozen=True)
class BaseConfig:
    APP_ENV: str = os.getenv("APP_ENV", "development")
    SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret")
    DATABASE_URL: str = resolve_database_url()
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Directory or http(s) base URL holding <set>.json ticket set files.
    TICKET_SETS_SOURCE: str = os.getenv("TICKET_SETS_SOURCE", "./tickets")

    # Game defaults used when a host leaves a setting blank.
    DEFAULT_MAX_TICKETS: int = _int_env("DEFAULT_MAX_TICKETS", 100)
    DEFAULT_CALLING_DELAY: int = _int_env("DEFAULT_CALLING_DELAY", 5)
    TICKET_GENERATION_RETRIES: int = _int_env("TICKET_GENERATION_RETRIES", 10)

    # Seconds between background calls regardless of the game setting (tests).
    CALLER_DELAY_OVERRIDE: float | None = None


@dataclass(frozen=True)
class DevelopmentConfig(BaseConfig):
    DEBUG: bool = True


@dataclass(frozen=True)
class ProductionConfig(BaseConfig):
    DEBUG: bool = False


def get_config() -> type[BaseConfig]:
    """Resolve configuration class based on APP_ENV."""

    if os.getenv("APP_ENV", "development").lower().strip() == "production":
        return ProductionConfig
    return DevelopmentConfig
