from __future__ import annotations

import time
from dataclasses import replace

import pytest
from itsdangerous import URLSafeTimedSerializer

from utils.session_tokens import (
    SESSION_SALT,
    Identity,
    SessionExpired,
    SessionInvalid,
    decode_token,
    issue_token,
)

AUTHOR = Identity(id="a-1", name="Ann", email="ann@test.com", role="author")


def test_issue_and_decode(settings):
    token = issue_token(AUTHOR, settings)
    assert decode_token(token, settings) == AUTHOR


def test_impersonation_claim_survives(settings):
    identity = replace(AUTHOR, impersonated_by="admin-1")
    decoded = decode_token(issue_token(identity, settings), settings)
    assert decoded.impersonated_by == "admin-1"
    assert decoded.as_dict()["impersonatedBy"] == "admin-1"


def test_expired_token(settings, monkeypatch):
    real_time = time.time()
    monkeypatch.setattr(time, "time", lambda: real_time - settings.session_max_age - 60)
    token = issue_token(AUTHOR, settings)
    monkeypatch.undo()

    with pytest.raises(SessionExpired):
        decode_token(token, settings)


def test_tampered_token(settings):
    token = issue_token(AUTHOR, settings)
    tampered = ("x" if token[0] != "x" else "y") + token[1:]
    with pytest.raises(SessionInvalid):
        decode_token(tampered, settings)


def test_token_signed_with_other_secret(settings):
    token = issue_token(AUTHOR, replace(settings, session_secret="another-secret-another-secret-xx"))
    with pytest.raises(SessionInvalid):
        decode_token(token, settings)


def test_unknown_role_is_rejected(settings):
    forged = URLSafeTimedSerializer(settings.session_secret, salt=SESSION_SALT).dumps(
        {"sub": "x", "role": "superuser", "name": "", "email": ""}
    )
    with pytest.raises(SessionInvalid):
        decode_token(forged, settings)
