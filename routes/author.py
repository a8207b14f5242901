# =============================================================================
# ✍️ routes/author.py
# -----------------------------------------------------------------------------
# Autoren-API: Bücher, QR-Codes, Profil, Dashboard, Berichte.
# Alle Abfragen laufen über die ID aus der Sitzung; fremde IDs → 404.
# -----------------------------------------------------------------------------
# Projekt: QRCoder
# =============================================================================

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from database import get_db
from utils import author_service, book_service, qr_service, report_service
from utils.access_control import author_required
from utils.qr_generator import generate_qr_png, public_qr_url
from utils.session_tokens import Identity

router = APIRouter(
    prefix="/api/author",
    tags=["Author"],
    dependencies=[Depends(author_required)],
)


class BookIn(BaseModel):
    title: Optional[str] = None
    isbn: Optional[str] = None
    description: Optional[str] = None


class QRCodeIn(BaseModel):
    name: Optional[str] = None
    type: Optional[str] = None
    content: Optional[str] = None
    book_id: Optional[str] = Field(default=None, alias="bookId")


class ProfileIn(BaseModel):
    name: Optional[str] = None


class PasswordChangeIn(BaseModel):
    current_password: Optional[str] = Field(default=None, alias="currentPassword")
    new_password: Optional[str] = Field(default=None, alias="newPassword")


# -------------------------------------------------------------------------
# 📚 Bücher
# -------------------------------------------------------------------------
@router.get("/books")
def list_books(db: Session = Depends(get_db), me: Identity = Depends(author_required)):
    return book_service.list_books(db, me.id)


@router.post("/books", status_code=201)
def create_book(payload: BookIn, db: Session = Depends(get_db), me: Identity = Depends(author_required)):
    return book_service.create_book(db, me.id, payload.title, payload.isbn, payload.description)


@router.get("/books/{book_id}")
def get_book(book_id: str, db: Session = Depends(get_db), me: Identity = Depends(author_required)):
    return book_service.get_book(db, book_id, me.id)


@router.put("/books/{book_id}")
def update_book(
    book_id: str,
    payload: BookIn,
    db: Session = Depends(get_db),
    me: Identity = Depends(author_required),
):
    return book_service.update_book(db, book_id, me.id, payload.title, payload.isbn, payload.description)


@router.delete("/books/{book_id}")
def delete_book(book_id: str, db: Session = Depends(get_db), me: Identity = Depends(author_required)):
    book_service.delete_book(db, book_id, me.id)
    return {"message": "Book deleted successfully"}


# -------------------------------------------------------------------------
# 🔗 QR-Codes
# -------------------------------------------------------------------------
@router.get("/qr-codes")
def list_qr_codes(db: Session = Depends(get_db), me: Identity = Depends(author_required)):
    return qr_service.list_qr_codes(db, me.id)


@router.post("/qr-codes", status_code=201)
def create_qr_code(payload: QRCodeIn, db: Session = Depends(get_db), me: Identity = Depends(author_required)):
    return qr_service.create_qr_code(db, me.id, payload.name, payload.type, payload.content, payload.book_id)


@router.get("/qr-codes/{qr_id}")
def get_qr_code(qr_id: str, db: Session = Depends(get_db), me: Identity = Depends(author_required)):
    return qr_service.get_qr_code(db, qr_id, me.id)


@router.put("/qr-codes/{qr_id}")
def update_qr_code(
    qr_id: str,
    payload: QRCodeIn,
    db: Session = Depends(get_db),
    me: Identity = Depends(author_required),
):
    return qr_service.update_qr_code(
        db, qr_id, me.id, payload.name, payload.type, payload.content, payload.book_id
    )


@router.delete("/qr-codes/{qr_id}")
def delete_qr_code(qr_id: str, db: Session = Depends(get_db), me: Identity = Depends(author_required)):
    qr_service.delete_qr_code(db, qr_id, me.id)
    return {"message": "QR code deleted successfully"}


@router.get("/qr-codes/{qr_id}/image")
def qr_code_image(
    qr_id: str,
    request: Request,
    size: int = 600,
    db: Session = Depends(get_db),
    me: Identity = Depends(author_required),
):
    qr = qr_service.get_owned_qr(db, qr_id, me.id)
    base_url = request.app.state.settings.app_base_url or str(request.base_url)
    png = generate_qr_png(public_qr_url(base_url, qr.id), size=max(120, min(size, 2000)))
    return Response(
        content=png,
        media_type="image/png",
        headers={"Content-Disposition": f'inline; filename="qr-{qr.id}.png"'},
    )


# -------------------------------------------------------------------------
# 👤 Profil
# -------------------------------------------------------------------------
@router.get("/profile")
def get_profile(db: Session = Depends(get_db), me: Identity = Depends(author_required)):
    return author_service.get_profile(db, me.id)


@router.put("/profile")
def update_profile(payload: ProfileIn, db: Session = Depends(get_db), me: Identity = Depends(author_required)):
    return author_service.update_profile(db, me.id, payload.name)


@router.post("/password")
def change_password(
    payload: PasswordChangeIn,
    db: Session = Depends(get_db),
    me: Identity = Depends(author_required),
):
    author_service.change_password(db, me.id, payload.current_password, payload.new_password)
    return {"message": "Password updated successfully"}


# -------------------------------------------------------------------------
# 📊 Dashboard & Berichte
# -------------------------------------------------------------------------
@router.get("/dashboard")
def dashboard(db: Session = Depends(get_db), me: Identity = Depends(author_required)):
    return report_service.author_dashboard(db, me.id)


@router.get("/reports")
def reports(range: Optional[str] = None, db: Session = Depends(get_db), me: Identity = Depends(author_required)):
    return report_service.author_report(db, me.id, range)


@router.get("/reports/export")
def export_report(
    range: Optional[str] = None,
    db: Session = Depends(get_db),
    me: Identity = Depends(author_required),
):
    content = report_service.author_export_csv(db, me.id, range)
    filename = report_service.export_filename("author", range)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
