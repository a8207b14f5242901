from __future__ import annotations

from dataclasses import replace

import pytest
from sqlalchemy.exc import OperationalError

import auth_utils
from auth_utils import generate_random_password, normalize_role, verify_credentials
from conftest import signin


def test_author_signin_sets_session_cookie(client, author):
    res = signin(client, "author@test.com", "author-pass")
    assert res.status_code == 200
    assert res.json()["user"] == {
        "id": author.id,
        "name": "Test Author",
        "email": "author@test.com",
        "role": "author",
    }
    assert "qrcoder_session" in res.cookies


def test_admin_signin(client, make_admin):
    admin = make_admin()
    res = signin(client, "ADMIN@test.com ", "admin-pass", "admin")
    assert res.status_code == 200
    assert res.json()["user"]["id"] == admin.id
    assert res.json()["user"]["role"] == "admin"


def test_unknown_email_and_wrong_password_are_indistinguishable(client, author):
    unknown = signin(client, "nobody@test.com", "author-pass")
    wrong = signin(client, "author@test.com", "wrong")
    assert unknown.status_code == wrong.status_code == 401
    assert unknown.json() == wrong.json() == {"error": "Invalid credentials"}


def test_inactive_author_cannot_sign_in(client, make_author):
    make_author(email="off@test.com", password="secret", is_active=False)
    res = signin(client, "off@test.com", "secret")
    assert res.status_code == 401
    assert res.json() == {"error": "Invalid credentials"}


def test_author_credentials_do_not_work_as_admin(client, author):
    assert signin(client, "author@test.com", "author-pass", "admin").status_code == 401


def test_missing_fields_are_rejected_generically(client):
    res = client.post("/api/auth/signin", json={})
    assert res.status_code == 401


def test_session_endpoint_and_signout(client, author):
    assert client.get("/api/auth/session").status_code == 401

    signin(client, "author@test.com", "author-pass")
    res = client.get("/api/auth/session")
    assert res.status_code == 200
    assert res.json()["user"]["email"] == "author@test.com"

    assert client.post("/api/auth/signout").status_code == 200
    assert client.get("/api/auth/session").status_code == 401


def test_bearer_token_is_accepted(client, other_client, author):
    token = signin(client, "author@test.com", "author-pass").cookies["qrcoder_session"]
    res = other_client.get("/api/auth/session", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 200


@pytest.mark.parametrize("user_type, role", [("admin", "admin"), ("author", "author"), (None, "author"), ("ADMIN", "admin"), ("editor", "author")])
def test_normalize_role(user_type, role):
    assert normalize_role(user_type) == role


def test_generate_random_password():
    password = generate_random_password()
    assert len(password) == 8
    assert password.isalnum()


def _db_down(*args, **kwargs):
    raise OperationalError("SELECT 1", {}, Exception("connection refused"))


def test_demo_fallback_only_when_enabled(db, settings, monkeypatch):
    monkeypatch.setattr(auth_utils, "_lookup_identity", _db_down)

    with pytest.raises(OperationalError):
        verify_credentials(db, "admin@example.com", "admin123", "admin", settings)

    demo = replace(settings, demo_mode=True)
    identity = verify_credentials(db, "admin@example.com", "admin123", "admin", demo)
    assert identity is not None
    assert identity.role == "admin"
    assert verify_credentials(db, "admin@example.com", "wrong", "admin", demo) is None
    assert verify_credentials(db, "author@example.com", "author123", "author", demo).role == "author"
