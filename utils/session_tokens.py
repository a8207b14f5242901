# =============================================================================
# 🔑 utils/session_tokens.py
# -----------------------------------------------------------------------------
# Signierte, zeitlich begrenzte Sitzungstoken (itsdangerous).
# Das Token trägt {sub, role, name, email} und ist für den Client opak.
# Jede Anfrage prüft Signatur UND Ablauf neu.
# -----------------------------------------------------------------------------
# Projekt: QRCoder
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from config import Settings

SESSION_SALT = "qrcoder-session"
ROLES = ("admin", "author")


@dataclass(frozen=True)
class Identity:
    id: str
    name: str
    email: str
    role: str
    impersonated_by: Optional[str] = None

    def as_dict(self) -> dict:
        data = {"id": self.id, "name": self.name, "email": self.email, "role": self.role}
        if self.impersonated_by:
            data["impersonatedBy"] = self.impersonated_by
        return data


class SessionError(Exception):
    """Token vorhanden, aber nicht verwendbar."""

    reason = "SessionError"


class SessionExpired(SessionError):
    reason = "SessionExpired"


class SessionInvalid(SessionError):
    reason = "SessionError"


def _serializer(settings: Settings) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(settings.session_secret, salt=SESSION_SALT)


def issue_token(identity: Identity, settings: Settings) -> str:
    payload = {
        "sub": identity.id,
        "role": identity.role,
        "name": identity.name,
        "email": identity.email,
    }
    if identity.impersonated_by:
        payload["imp"] = identity.impersonated_by
    return _serializer(settings).dumps(payload)


def decode_token(token: str, settings: Settings) -> Identity:
    """Liefert die Identität oder wirft SessionExpired / SessionInvalid."""
    try:
        payload = _serializer(settings).loads(token, max_age=settings.session_max_age)
    except SignatureExpired as exc:
        raise SessionExpired(str(exc)) from exc
    except BadSignature as exc:
        raise SessionInvalid(str(exc)) from exc

    if not isinstance(payload, dict) or payload.get("role") not in ROLES or not payload.get("sub"):
        raise SessionInvalid("malformed session payload")

    return Identity(
        id=str(payload["sub"]),
        name=str(payload.get("name") or ""),
        email=str(payload.get("email") or ""),
        role=payload["role"],
        impersonated_by=payload.get("imp"),
    )


def token_from_request(request, settings: Settings) -> Optional[str]:
    """Cookie zuerst, danach 'Authorization: Bearer …' für API-Clients."""
    token = request.cookies.get(settings.session_cookie_name)
    if token:
        return token
    auth_header = request.headers.get("authorization", "")
    scheme, _, value = auth_header.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return None


def set_session_cookie(response, token: str, settings: Settings) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_max_age,
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
        path="/",
    )


def clear_session_cookie(response, settings: Settings) -> None:
    response.delete_cookie(key=settings.session_cookie_name, path="/")
