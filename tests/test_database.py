from sqlalchemy import inspect, text
import pytest

from database import Database


@pytest.fixture
def database():
    db = Database("sqlite://")
    yield db
    db.dispose()


def test_database_connection(database):
    """Überprüft, ob eine Verbindung zur Datenbank besteht."""
    with database.engine.connect() as conn:
        assert conn.execute(text("SELECT 1")).scalar() == 1
    assert database.ping() is True


def test_required_tables_exist(database):
    database.create_all()
    tables = inspect(database.engine).get_table_names()

    required = ["admins", "authors", "books", "qr_codes", "qr_scans"]
    missing = [t for t in required if t not in tables]
    assert not missing, f"❌ Fehlende Tabellen: {missing}"


def test_ping_gives_up_after_retries(tmp_path):
    unreachable = Database(f"sqlite:///{tmp_path}/missing/dir/db.sqlite")
    assert unreachable.ping(attempts=2, base_delay=0) is False
    unreachable.dispose()
