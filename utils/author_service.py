# =============================================================================
# ✍️ utils/author_service.py
# -----------------------------------------------------------------------------
# Autorenverwaltung (Admin) und Profilpflege (Autor selbst).
# Gleichzeitige Profil-/Passwortänderungen desselben Autors: last-write-wins.
# -----------------------------------------------------------------------------
# Projekt: QRCoder
# =============================================================================

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from auth_utils import generate_random_password, hash_password, verify_password
from models.author import Author
from models.book import Book
from models.qr_scan import QRScan
from models.qrcode import QRCode
from utils.errors import Conflict, Forbidden, NotFound, ValidationFailed

logger = logging.getLogger("qrcoder.authors")


def _iso(ts) -> Optional[str]:
    return ts.isoformat() if ts else None


def _author_counts(db: Session, author_ids: Iterable[str]) -> Dict[str, Dict[str, int]]:
    ids = list(author_ids)
    counts: Dict[str, Dict[str, int]] = {aid: {"books": 0, "qrCodes": 0, "scans": 0} for aid in ids}
    if not ids:
        return counts

    for aid, n in (
        db.query(Book.author_id, func.count(Book.id))
        .filter(Book.author_id.in_(ids))
        .group_by(Book.author_id)
    ):
        counts[aid]["books"] = n

    for aid, n in (
        db.query(Book.author_id, func.count(QRCode.id))
        .select_from(Book)
        .join(QRCode, QRCode.book_id == Book.id)
        .filter(Book.author_id.in_(ids))
        .group_by(Book.author_id)
    ):
        counts[aid]["qrCodes"] = n

    for aid, n in (
        db.query(Book.author_id, func.count(QRScan.id))
        .select_from(Book)
        .join(QRCode, QRCode.book_id == Book.id)
        .join(QRScan, QRScan.qr_code_id == QRCode.id)
        .filter(Book.author_id.in_(ids))
        .group_by(Book.author_id)
    ):
        counts[aid]["scans"] = n

    return counts


def serialize_author(author: Author, counts: Optional[Dict[str, int]] = None) -> Dict[str, Any]:
    return {
        "id": author.id,
        "name": author.name,
        "email": author.email,
        "isActive": bool(author.is_active),
        "createdAt": _iso(author.created_at),
        "updatedAt": _iso(author.updated_at),
        "_count": counts or {"books": 0, "qrCodes": 0, "scans": 0},
    }


def _with_counts(db: Session, author: Author) -> Dict[str, Any]:
    return serialize_author(author, _author_counts(db, [author.id])[author.id])


def _get_author(db: Session, author_id: str) -> Author:
    author = db.get(Author, author_id)
    if not author:
        raise NotFound("Author not found")
    return author


def _normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def _ensure_email_free(db: Session, email: str, exclude_id: Optional[str] = None) -> None:
    query = db.query(Author.id).filter(Author.email == email)
    if exclude_id:
        query = query.filter(Author.id != exclude_id)
    if query.first():
        raise Conflict("Author with this email already exists")


# -------------------------------------------------------------------------
# 👥 Admin-Operationen
# -------------------------------------------------------------------------
def list_authors(db: Session) -> list[Dict[str, Any]]:
    authors = db.query(Author).order_by(Author.created_at.desc()).all()
    counts = _author_counts(db, [a.id for a in authors])
    return [serialize_author(a, counts[a.id]) for a in authors]


def get_author(db: Session, author_id: str) -> Dict[str, Any]:
    return _with_counts(db, _get_author(db, author_id))


def create_author(db: Session, name: Optional[str], email: Optional[str], password: Optional[str]) -> Dict[str, Any]:
    name = (name or "").strip()
    email = _normalize_email(email)
    if not name or not email or not password:
        raise ValidationFailed("All fields are required")

    _ensure_email_free(db, email)
    author = Author(name=name, email=email, password=hash_password(password), is_active=True)
    db.add(author)
    db.commit()
    logger.info("🆕 Autor angelegt: %s (%s)", author.id, author.email)
    return _with_counts(db, author)


def update_author(
    db: Session,
    author_id: str,
    name: Optional[str] = None,
    email: Optional[str] = None,
    is_active: Optional[bool] = None,
) -> Dict[str, Any]:
    author = _get_author(db, author_id)
    if name is not None:
        if not name.strip():
            raise ValidationFailed("Name must not be empty")
        author.name = name.strip()
    if email is not None:
        normalized = _normalize_email(email)
        if not normalized:
            raise ValidationFailed("Email must not be empty")
        _ensure_email_free(db, normalized, exclude_id=author.id)
        author.email = normalized
    if is_active is not None:
        author.is_active = is_active
    db.commit()
    return _with_counts(db, author)


def set_author_status(db: Session, author_id: str, is_active: Optional[bool] = None) -> Dict[str, Any]:
    """Setzt den Status explizit, oder schaltet ihn um wenn keiner angegeben ist."""
    author = _get_author(db, author_id)
    author.is_active = (not author.is_active) if is_active is None else is_active
    db.commit()
    logger.info("🔁 Autor %s ist jetzt %s", author.id, "aktiv" if author.is_active else "gesperrt")
    return _with_counts(db, author)


def reset_author_password(db: Session, author_id: str, new_password: Optional[str] = None) -> Tuple[Author, str]:
    author = _get_author(db, author_id)
    password = new_password or generate_random_password()
    author.password = hash_password(password)
    db.commit()
    logger.info("🔑 Passwort für Autor %s zurückgesetzt", author.id)
    return author, password


def impersonation_target(db: Session, author_id: str) -> Author:
    author = _get_author(db, author_id)
    if not author.is_active:
        raise Forbidden("Author account is inactive")
    return author


# -------------------------------------------------------------------------
# 👤 Profil des angemeldeten Autors
# -------------------------------------------------------------------------
def get_profile(db: Session, author_id: str) -> Dict[str, Any]:
    return serialize_author(_get_author(db, author_id))


def update_profile(db: Session, author_id: str, name: Optional[str]) -> Dict[str, Any]:
    if not name or not name.strip():
        raise ValidationFailed("Name is required")
    author = _get_author(db, author_id)
    author.name = name.strip()
    db.commit()
    return serialize_author(author)


def change_password(db: Session, author_id: str, current_password: Optional[str], new_password: Optional[str]) -> None:
    if not current_password or not new_password:
        raise ValidationFailed("Current and new password are required")
    author = _get_author(db, author_id)
    if not verify_password(current_password, author.password):
        raise ValidationFailed("Current password is incorrect")
    author.password = hash_password(new_password)
    db.commit()
