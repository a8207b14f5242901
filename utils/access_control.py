from __future__ import annotations

from typing import Callable, Optional

from fastapi import Depends, Request

from utils.errors import Forbidden, Unauthorized
from utils.session_tokens import Identity, SessionError, decode_token, token_from_request


def session_identity(request: Request) -> Optional[Identity]:
    """Identität aus Cookie/Bearer oder None (auch bei ungültigem Token)."""
    settings = request.app.state.settings
    token = token_from_request(request, settings)
    if not token:
        return None
    try:
        return decode_token(token, settings)
    except SessionError:
        return None


def current_identity(identity: Optional[Identity] = Depends(session_identity)) -> Identity:
    if identity is None:
        raise Unauthorized()
    return identity


def require_roles(*roles: str) -> Callable[..., Identity]:
    """
    Einziger Autorisierungs-Baustein für API-Endpunkte:
    keine Sitzung → 401, falsche Rolle → 403, sonst die geprüfte Identität.
    """
    allowed = frozenset(roles)

    def dependency(identity: Identity = Depends(current_identity)) -> Identity:
        if allowed and identity.role not in allowed:
            raise Forbidden()
        return identity

    dependency.__name__ = f"require_roles_{'_'.join(sorted(allowed)) or 'any'}"
    return dependency


admin_required = require_roles("admin")
author_required = require_roles("author")
