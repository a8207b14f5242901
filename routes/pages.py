# =============================================================================
# 🖥️ routes/pages.py
# -----------------------------------------------------------------------------
# Schlanke HTML-Hüllen für Login, Admin- und Autorenbereich.
# Der Zugriff wird vorher von der RouteGuardMiddleware geprüft; die Seiten
# selbst laden ihre Daten über die JSON-API.
# -----------------------------------------------------------------------------
# Projekt: QRCoder
# =============================================================================

from __future__ import annotations

from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from utils.access_control import session_identity

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))

router = APIRouter(tags=["Pages"], include_in_schema=False)

LOGIN_ERRORS = {
    "SessionExpired": "Your session has expired. Please sign in again.",
    "SessionError": "Your session could not be verified. Please sign in again.",
}


@router.get("/")
def index():
    return RedirectResponse("/login", status_code=307)


@router.get("/login", response_class=HTMLResponse)
def login_page(request: Request, error: Optional[str] = None):
    return templates.TemplateResponse(
        request,
        "login.html",
        {"error_message": LOGIN_ERRORS.get(error or "")},
    )


# ---------------------------------------------------------------------
# 🛡️ Admin-Bereich
# ---------------------------------------------------------------------
@router.get("/admin", response_class=HTMLResponse)
@router.get("/admin/{section:path}", response_class=HTMLResponse)
def admin_page(request: Request, section: str = ""):
    return templates.TemplateResponse(
        request,
        "admin.html",
        {"user": session_identity(request), "section": section or "dashboard"},
    )


# ---------------------------------------------------------------------
# ✍️ Autoren-Bereich
# ---------------------------------------------------------------------
@router.get("/author", response_class=HTMLResponse)
@router.get("/author/{section:path}", response_class=HTMLResponse)
def author_page(request: Request, section: str = ""):
    return templates.TemplateResponse(
        request,
        "author.html",
        {"user": session_identity(request), "section": section or "dashboard"},
    )
