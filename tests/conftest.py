import sys, os
from dataclasses import replace

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import ASGITransport

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

# Modul-Import von main.py baut eine App aus der Umgebung → hier auf Test-Werte festlegen
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SESSION_SECRET", "test-session-secret-0123456789-abcdefghijkl")

from auth_utils import hash_password
from config import Settings
from main import create_app
from models.admin import Admin
from models.author import Author
from models.book import Book
from models.qrcode import QRCode

TEST_SECRET = "test-session-secret-0123456789-abcdefghijkl"


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite://",
        session_secret=TEST_SECRET,
        app_base_url="http://testserver",
        app_env="test",
    )


@pytest.fixture
def app(settings, monkeypatch):
    application = create_app(settings)
    database = application.state.db
    dispose = database.dispose
    # Lifespan-Ende einzelner Clients schließt die gemeinsame In-Memory-DB nicht;
    # aufgeräumt wird erst hier, nach allen Sessions
    monkeypatch.setattr(database, "dispose", lambda: None)
    yield application
    dispose()


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def other_client(app):
    """Zweiter Browser mit eigener Cookie-Dose."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db(app):
    session = app.state.db.session()
    try:
        yield session
    finally:
        session.close()


@pytest_asyncio.fixture
async def async_client(app):
    transport = ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_admin(db):
    def _make(email="admin@test.com", password="admin-pass", name="Test Admin"):
        admin = Admin(email=email, password=hash_password(password), name=name)
        db.add(admin)
        db.commit()
        return admin

    return _make


@pytest.fixture
def make_author(db):
    def _make(email="author@test.com", password="author-pass", name="Test Author", is_active=True):
        author = Author(email=email, password=hash_password(password), name=name, is_active=is_active)
        db.add(author)
        db.commit()
        return author

    return _make


@pytest.fixture
def make_qr(db):
    """Buch + QR-Code für einen vorhandenen Autor."""
    def _make(author, title="Book", name="Website", qr_type="URL", content="https://example.com"):
        book = Book(title=title, author_id=author.id)
        db.add(book)
        db.flush()
        qr = QRCode(name=name, type=qr_type, content=content, book_id=book.id)
        db.add(qr)
        db.commit()
        return qr

    return _make


def signin(client, email, password, user_type="author"):
    return client.post(
        "/api/auth/signin",
        json={"email": email, "password": password, "userType": user_type},
    )


@pytest.fixture
def admin_client(client, make_admin):
    make_admin()
    assert signin(client, "admin@test.com", "admin-pass", "admin").status_code == 200
    return client


@pytest.fixture
def author(make_author):
    return make_author()


@pytest.fixture
def author_client(client, author):
    assert signin(client, "author@test.com", "author-pass").status_code == 200
    return client


@pytest.fixture
def production_settings(settings):
    return replace(settings, app_env="production")
