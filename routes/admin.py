# =============================================================================
# 🛡️ routes/admin.py
# -----------------------------------------------------------------------------
# Admin-API: Autorenverwaltung, Dashboard, Berichte, Diagnose.
# Jede Route dieses Routers verlangt die Rolle "admin" (router-weit).
# -----------------------------------------------------------------------------
# Projekt: QRCoder
# =============================================================================

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from config import environment_summary
from database import get_db
from utils import author_service, report_service
from utils.access_control import admin_required
from utils.session_tokens import Identity, issue_token, set_session_cookie

logger = logging.getLogger("qrcoder.admin")

router = APIRouter(
    prefix="/api/admin",
    tags=["Admin"],
    dependencies=[Depends(admin_required)],
)


class AuthorCreateIn(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class AuthorUpdateIn(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    is_active: Optional[bool] = Field(default=None, alias="isActive")


class ToggleStatusIn(BaseModel):
    is_active: Optional[bool] = Field(default=None, alias="isActive")


class ResetPasswordIn(BaseModel):
    new_password: Optional[str] = Field(default=None, alias="newPassword")


# -------------------------------------------------------------------------
# 👥 Autoren
# -------------------------------------------------------------------------
@router.get("/authors")
def list_authors(db: Session = Depends(get_db)):
    return author_service.list_authors(db)


@router.post("/authors", status_code=201)
def create_author(
    payload: AuthorCreateIn,
    db: Session = Depends(get_db),
    admin: Identity = Depends(admin_required),
):
    author = author_service.create_author(db, payload.name, payload.email, payload.password)
    logger.info("👥 Admin %s hat Autor %s angelegt", admin.id, author["id"])
    return author


@router.get("/authors/{author_id}")
def get_author(author_id: str, db: Session = Depends(get_db)):
    return author_service.get_author(db, author_id)


@router.patch("/authors/{author_id}")
def update_author(author_id: str, payload: AuthorUpdateIn, db: Session = Depends(get_db)):
    return author_service.update_author(db, author_id, payload.name, payload.email, payload.is_active)


@router.patch("/authors/{author_id}/toggle-status")
def toggle_status(
    author_id: str,
    payload: Optional[ToggleStatusIn] = Body(default=None),
    db: Session = Depends(get_db),
):
    is_active = payload.is_active if payload else None
    return author_service.set_author_status(db, author_id, is_active)


@router.post("/authors/{author_id}/reset-password")
def reset_password(
    author_id: str,
    payload: Optional[ResetPasswordIn] = Body(default=None),
    db: Session = Depends(get_db),
    admin: Identity = Depends(admin_required),
):
    requested = payload.new_password if payload else None
    author, password = author_service.reset_author_password(db, author_id, requested)
    logger.info("🔑 Admin %s hat das Passwort von Autor %s zurückgesetzt", admin.id, author.id)
    body = {"message": "Password reset successfully", "authorId": author.id}
    if not requested:
        # Generiertes Passwort wird genau einmal ausgeliefert
        body["newPassword"] = password
    return body


@router.post("/authors/{author_id}/impersonate")
def impersonate(
    author_id: str,
    request: Request,
    db: Session = Depends(get_db),
    admin: Identity = Depends(admin_required),
):
    author = author_service.impersonation_target(db, author_id)
    settings = request.app.state.settings
    identity = Identity(
        id=author.id,
        name=author.name,
        email=author.email,
        role="author",
        impersonated_by=admin.id,
    )
    logger.warning("🎭 Admin %s übernimmt die Sitzung von Autor %s", admin.id, author.id)

    response = JSONResponse({
        "message": "Impersonation started",
        "authorId": author.id,
        "authorName": author.name,
    })
    set_session_cookie(response, issue_token(identity, settings), settings)
    return response


# -------------------------------------------------------------------------
# 📊 Dashboard & Berichte
# -------------------------------------------------------------------------
@router.get("/dashboard")
def dashboard(db: Session = Depends(get_db)):
    return report_service.admin_dashboard(db)


@router.get("/reports")
def reports(range: Optional[str] = None, author: Optional[str] = None, db: Session = Depends(get_db)):
    return report_service.admin_report(db, range, author)


@router.get("/reports/export")
def export_report(range: Optional[str] = None, author: Optional[str] = None, db: Session = Depends(get_db)):
    content = report_service.admin_export_csv(db, range, author)
    filename = report_service.export_filename("admin", range)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/diagnostics")
def diagnostics(request: Request):
    settings = request.app.state.settings
    summary = environment_summary(settings)
    summary["environment"] = settings.app_env
    summary["database"] = "connected" if request.app.state.db.ping(attempts=1) else "unreachable"
    return summary
