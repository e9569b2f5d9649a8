from tambola.config import SQLITE_FALLBACK_URL, resolve_database_url


def test_explicit_database_url_wins():
    env = {"DATABASE_URL": "sqlite:///games.db", "PGHOST": "db", "PGUSER": "u", "PGDATABASE": "d"}
    assert resolve_database_url(env) == "sqlite:///games.db"


def test_postgres_url_from_pg_variables():
    env = {"PGHOST": "db.local", "PGUSER": "host", "PGPASSWORD": "pw", "PGDATABASE": "tambola", "PGPORT": "6543"}
    url = resolve_database_url(env)

    assert url.startswith("postgresql+psycopg2://host:pw@db.local:6543/tambola")
    assert "sslmode=require" in url


def test_bad_port_falls_back_to_default():
    env = {"PGHOST": "db", "PGUSER": "u", "PGDATABASE": "d", "PGPORT": "abc", "PGSSLMODE": ""}
    assert resolve_database_url(env) == "postgresql+psycopg2://u@db:5432/d"


def test_sqlite_fallback_when_incomplete():
    assert resolve_database_url({"PGHOST": "db"}) == SQLITE_FALLBACK_URL
