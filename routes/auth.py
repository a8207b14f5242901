# =============================================================================
# 🔐 routes/auth.py
# -----------------------------------------------------------------------------
# Anmeldung, Abmeldung und Sitzungsabfrage (JSON-API).
# Fehlermeldungen beim Login sind absichtlich generisch: ob die E-Mail
# existiert, das Passwort falsch ist oder der Autor gesperrt ist, bleibt
# für den Client ununterscheidbar.
# -----------------------------------------------------------------------------
# Projekt: QRCoder
# =============================================================================

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from auth_utils import verify_credentials
from database import get_db
from utils.access_control import current_identity
from utils.session_tokens import Identity, clear_session_cookie, issue_token, set_session_cookie

router = APIRouter(prefix="/api/auth", tags=["Auth"])


class SignInIn(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    user_type: Optional[str] = Field(default=None, alias="userType")


@router.post("/signin")
def signin(payload: SignInIn, request: Request, db: Session = Depends(get_db)):
    settings = request.app.state.settings
    identity = verify_credentials(db, payload.email or "", payload.password or "", payload.user_type, settings)
    if identity is None:
        return JSONResponse({"error": "Invalid credentials"}, status_code=401)

    response = JSONResponse({"user": identity.as_dict()})
    set_session_cookie(response, issue_token(identity, settings), settings)
    return response


@router.post("/signout")
def signout(request: Request):
    response = JSONResponse({"message": "Signed out"})
    clear_session_cookie(response, request.app.state.settings)
    return response


@router.get("/session")
def session(identity: Identity = Depends(current_identity)):
    return {"user": identity.as_dict()}
