# =============================================================================
# 🔗 utils/qr_service.py
# -----------------------------------------------------------------------------
# QR-Codes der Autoren und die öffentliche Scan-Erfassung.
#
# Scan-Ablauf (öffentlich, ohne Login):
#   1. QR-Code inkl. Buch und Autor laden, sonst 404 (kein Scan)
#   2. IP aus X-Forwarded-For (erster Eintrag) → X-Real-IP → "unknown"
#   3. Land/Stadt: Platzhalter "Unknown" (keine Geolokalisierung)
#   4. Genau ein QRScan pro Auflösung, ohne Deduplizierung
#   5. Inhalt zurückgeben – erst NACH erfolgreichem Commit
# -----------------------------------------------------------------------------
# Projekt: QRCoder
# =============================================================================

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Mapping, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from models.book import Book
from models.qr_scan import QRScan, UNKNOWN_LOCATION
from models.qrcode import QR_TYPES, QRCode
from utils.errors import NotFound, ValidationFailed

logger = logging.getLogger("qrcoder.scan")

UNKNOWN_IP = "unknown"
RECENT_SCANS_LIMIT = 10


class ScanRecordingError(RuntimeError):
    """Scan konnte nicht gespeichert werden; die Auflösung endet mit 500."""


# -------------------------------------------------------------------------
# 🧮 Hilfsfunktionen
# -------------------------------------------------------------------------
def scan_counts(db: Session, qr_ids: Iterable[str]) -> Dict[str, int]:
    ids = list(qr_ids)
    if not ids:
        return {}
    rows = (
        db.query(QRScan.qr_code_id, func.count(QRScan.id))
        .filter(QRScan.qr_code_id.in_(ids))
        .group_by(QRScan.qr_code_id)
        .all()
    )
    return {qr_id: n for qr_id, n in rows}


def serialize_scan(scan: QRScan) -> Dict[str, Any]:
    return {
        "id": scan.id,
        "qrCodeId": scan.qr_code_id,
        "scannedAt": scan.scanned_at.isoformat() if scan.scanned_at else None,
        "ipAddress": scan.ip_address,
        "userAgent": scan.user_agent,
        "country": scan.country,
        "city": scan.city,
    }


def serialize_qr(qr: QRCode, scan_count: int = 0, include_book: bool = False) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "id": qr.id,
        "name": qr.name,
        "type": qr.type,
        "content": qr.content,
        "bookId": qr.book_id,
        "createdAt": qr.created_at.isoformat() if qr.created_at else None,
        "updatedAt": qr.updated_at.isoformat() if qr.updated_at else None,
        "_count": {"scans": scan_count},
    }
    if include_book and qr.book is not None:
        data["book"] = {"id": qr.book.id, "title": qr.book.title, "authorId": qr.book.author_id}
    return data


def _validate_fields(name: Optional[str], qr_type: Optional[str], content: Optional[str]) -> str:
    if not name or not name.strip() or not qr_type or not content:
        raise ValidationFailed("All fields are required")
    normalized = qr_type.strip().upper()
    if normalized not in QR_TYPES:
        raise ValidationFailed("Invalid QR code type")
    return normalized


def _owned_book(db: Session, book_id: Optional[str], author_id: str) -> Book:
    book = db.query(Book).filter(Book.id == book_id, Book.author_id == author_id).first()
    if not book:
        raise NotFound("Book not found")
    return book


def get_owned_qr(db: Session, qr_id: str, author_id: str) -> QRCode:
    qr = (
        db.query(QRCode)
        .join(Book, QRCode.book_id == Book.id)
        .options(joinedload(QRCode.book))
        .filter(QRCode.id == qr_id, Book.author_id == author_id)
        .first()
    )
    if not qr:
        raise NotFound("QR code not found")
    return qr


# -------------------------------------------------------------------------
# ✍️ Autor-Operationen
# -------------------------------------------------------------------------
def list_qr_codes(db: Session, author_id: str) -> list[Dict[str, Any]]:
    qr_codes = (
        db.query(QRCode)
        .join(Book, QRCode.book_id == Book.id)
        .options(joinedload(QRCode.book))
        .filter(Book.author_id == author_id)
        .order_by(QRCode.created_at.desc())
        .all()
    )
    counts = scan_counts(db, [qr.id for qr in qr_codes])
    return [serialize_qr(qr, counts.get(qr.id, 0), include_book=True) for qr in qr_codes]


def get_qr_code(db: Session, qr_id: str, author_id: str) -> Dict[str, Any]:
    qr = get_owned_qr(db, qr_id, author_id)
    data = serialize_qr(qr, scan_counts(db, [qr.id]).get(qr.id, 0), include_book=True)
    recent = (
        db.query(QRScan)
        .filter(QRScan.qr_code_id == qr.id)
        .order_by(QRScan.scanned_at.desc())
        .limit(RECENT_SCANS_LIMIT)
        .all()
    )
    data["scans"] = [serialize_scan(s) for s in recent]
    return data


def create_qr_code(
    db: Session,
    author_id: str,
    name: Optional[str],
    qr_type: Optional[str],
    content: Optional[str],
    book_id: Optional[str],
) -> Dict[str, Any]:
    if not book_id:
        raise ValidationFailed("All fields are required")
    normalized_type = _validate_fields(name, qr_type, content)
    book = _owned_book(db, book_id, author_id)

    qr = QRCode(name=name.strip(), type=normalized_type, content=content, book_id=book.id)
    db.add(qr)
    db.commit()
    logger.info("🔗 QR-Code %s (%s) für Buch %s angelegt", qr.id, qr.type, book.id)
    return serialize_qr(qr, 0, include_book=True)


def update_qr_code(
    db: Session,
    qr_id: str,
    author_id: str,
    name: Optional[str] = None,
    qr_type: Optional[str] = None,
    content: Optional[str] = None,
    book_id: Optional[str] = None,
) -> Dict[str, Any]:
    qr = get_owned_qr(db, qr_id, author_id)
    normalized_type = _validate_fields(
        name if name is not None else qr.name,
        qr_type if qr_type is not None else qr.type,
        content if content is not None else qr.content,
    )
    if book_id is not None and book_id != qr.book_id:
        qr.book_id = _owned_book(db, book_id, author_id).id
    if name is not None:
        qr.name = name.strip()
    qr.type = normalized_type
    if content is not None:
        qr.content = content
    db.commit()
    db.refresh(qr)
    return serialize_qr(qr, scan_counts(db, [qr.id]).get(qr.id, 0), include_book=True)


def delete_qr_code(db: Session, qr_id: str, author_id: str) -> None:
    qr = get_owned_qr(db, qr_id, author_id)
    db.delete(qr)
    db.commit()


# -------------------------------------------------------------------------
# 📲 Öffentliche Scan-Erfassung
# -------------------------------------------------------------------------
def client_ip(headers: Mapping[str, str]) -> str:
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return headers.get("x-real-ip") or UNKNOWN_IP


def scan_descriptor(qr: QRCode) -> Dict[str, Any]:
    return {
        "id": qr.id,
        "name": qr.name,
        "type": qr.type,
        "content": qr.content,
        "book": {
            "title": qr.book.title,
            "author": {"name": qr.book.author.name},
        },
    }


def resolve_scan(db: Session, qr_id: str, headers: Mapping[str, str]) -> Dict[str, Any]:
    """Löst einen QR-Code öffentlich auf und schreibt genau einen Scan."""
    qr: Optional[QRCode] = (
        db.query(QRCode)
        .options(joinedload(QRCode.book).joinedload(Book.author))
        .filter(QRCode.id == qr_id)
        .first()
    )
    if not qr:
        raise NotFound("QR code not found")

    scan = QRScan(
        qr_code_id=qr.id,
        ip_address=client_ip(headers),
        user_agent=headers.get("user-agent"),
        country=UNKNOWN_LOCATION,
        city=UNKNOWN_LOCATION,
    )
    try:
        db.add(scan)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("❌ Scan für QR-Code %s nicht gespeichert: %s", qr.id, exc)
        raise ScanRecordingError(f"Scan for QR code {qr.id} could not be recorded") from exc
    logger.info("📲 Scan %s für QR-Code %s erfasst", scan.id, qr.id)
    return scan_descriptor(qr)
