from __future__ import annotations

import pytest

from tambola import create_app
from tambola.db import create_app_engine, create_session_factory
from tambola.models.base import Base


@pytest.fixture()
def app(tmp_path):
    app = create_app(
        {
            "TESTING": True,
            "DATABASE_URL": f"sqlite:///{tmp_path / 'app.db'}",
            "TICKET_SETS_SOURCE": str(tmp_path / "sets"),
            "CALLER_DELAY_OVERRIDE": 0,
        }
    )
    yield app
    app.extensions["number_callers"].stop_all(timeout=10)
    app.extensions["engine"].dispose()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def session_factory(tmp_path):
    from tambola import models  # noqa: F401

    engine = create_app_engine(f"sqlite:///{tmp_path / 'service.db'}")
    Base.metadata.create_all(bind=engine)
    yield create_session_factory(engine)
    engine.dispose()


@pytest.fixture()
def session(session_factory):
    with session_factory() as s:
        yield s
