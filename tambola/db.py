"""SQLAlchemy engine + session management.

Uses a session-per-request pattern. Background number callers open their own
sessions from the same factory.
"""

from __future__ import annotations

from typing import Any

from flask import Flask, g
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from tambola.models.base import Base


def create_app_engine(database_url: str) -> Engine:
    url = make_url(database_url)

    connect_args: dict[str, Any] = {}
    if url.get_backend_name() == "sqlite":
        # Caller threads share the engine with request threads.
        connect_args["check_same_thread"] = False

    engine = create_engine(database_url, pool_pre_ping=True, future=True, connect_args=connect_args)
    if url.get_backend_name() == "sqlite":
        _enable_sqlite_savepoints(engine)
    return engine


def _enable_sqlite_savepoints(engine: Engine) -> None:
    # pysqlite defers BEGIN on its own, which breaks SAVEPOINT; let SQLAlchemy emit it.
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db(app: Flask) -> None:
    """Initialize database engine and per-request sessions."""

    # Import models so they register with Base.metadata
    from tambola import models  # noqa: F401

    engine = create_app_engine(str(app.config["DATABASE_URL"]))
    session_factory = create_session_factory(engine)

    # Create tables on startup (production would use migrations).
    Base.metadata.create_all(bind=engine)

    app.extensions["engine"] = engine
    app.extensions["session_factory"] = session_factory

    @app.before_request
    def _open_session() -> None:
        g.db = session_factory()  # type: ignore[attr-defined]

    @app.teardown_request
    def _close_session(exc: BaseException | None) -> None:
        session: Session | None = getattr(g, "db", None)
        if session is None:
            return

        try:
            if exc is None:
                session.commit()
            else:
                session.rollback()
        finally:
            session.close()


def get_session() -> Session:
    """Get the current request's SQLAlchemy session."""

    session: Session | None = getattr(g, "db", None)
    if session is None:
        raise RuntimeError("Database session not initialized")
    return session
