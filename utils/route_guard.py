# =============================================================================
# 🚦 utils/route_guard.py
# -----------------------------------------------------------------------------
# Middleware für die Seitenbereiche /admin, /author und /login.
# Fehler beim Prüfen des Tokens verlassen die Middleware nie: sie führen
# zurück zum Login, mit ?error=… um "Sitzungsfehler" von "keine Sitzung"
# zu unterscheiden.
# -----------------------------------------------------------------------------
# Projekt: QRCoder
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import RedirectResponse

from utils.session_tokens import (
    Identity,
    SessionError,
    clear_session_cookie,
    decode_token,
    token_from_request,
)

logger = logging.getLogger("qrcoder.guard")

LOGIN_PATH = "/login"
ROLE_PREFIXES = {"/admin": "admin", "/author": "author"}
ROLE_HOME = {"admin": "/admin", "author": "/author"}


@dataclass(frozen=True)
class GuardDecision:
    redirect_to: Optional[str] = None
    clear_cookie: bool = False

    @property
    def allowed(self) -> bool:
        return self.redirect_to is None


PASS = GuardDecision()


def _under(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix + "/")


def decide(path: str, identity: Optional[Identity], error: Optional[SessionError] = None) -> GuardDecision:
    """Reine Entscheidungsfunktion – ohne I/O, damit sie direkt testbar ist."""
    for prefix, role in ROLE_PREFIXES.items():
        if not _under(path, prefix):
            continue
        if error is not None:
            return GuardDecision(redirect_to=f"{LOGIN_PATH}?error={error.reason}", clear_cookie=True)
        if identity is None or identity.role != role:
            return GuardDecision(redirect_to=LOGIN_PATH)
        return PASS

    if path == LOGIN_PATH:
        if identity is not None:
            return GuardDecision(redirect_to=ROLE_HOME[identity.role])
        if error is not None:
            return GuardDecision(clear_cookie=True)

    return PASS


def _is_guarded(path: str) -> bool:
    return path == LOGIN_PATH or any(_under(path, prefix) for prefix in ROLE_PREFIXES)


class RouteGuardMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if not _is_guarded(path):
            return await call_next(request)

        settings = request.app.state.settings
        identity: Optional[Identity] = None
        error: Optional[SessionError] = None
        token = token_from_request(request, settings)
        if token:
            try:
                identity = decode_token(token, settings)
            except SessionError as exc:
                error = exc
            except Exception as exc:  # niemals an der Middleware vorbei
                logger.exception("Token-Prüfung fehlgeschlagen")
                error = SessionError(str(exc))

        decision = decide(path, identity, error)
        if decision.allowed:
            response = await call_next(request)
        else:
            logger.debug("🚦 %s → %s", path, decision.redirect_to)
            response = RedirectResponse(decision.redirect_to, status_code=307)

        if decision.clear_cookie:
            clear_session_cookie(response, settings)
        return response
