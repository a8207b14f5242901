# =============================================================================
# 📚 utils/book_service.py
# -----------------------------------------------------------------------------
# Bücher eines Autors. Fremde Bücher werden wie nicht vorhandene behandelt
# (404 statt 403), damit ihre Existenz nicht bestätigt wird.
# -----------------------------------------------------------------------------
# Projekt: QRCoder
# =============================================================================

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session, selectinload

from models.book import Book
from utils.errors import NotFound, ValidationFailed
from utils.qr_service import scan_counts, serialize_qr

logger = logging.getLogger("qrcoder.books")


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def serialize_book(book: Book, counts: Dict[str, int]) -> Dict[str, Any]:
    qr_codes = [serialize_qr(qr, counts.get(qr.id, 0)) for qr in book.qr_codes]
    return {
        "id": book.id,
        "title": book.title,
        "isbn": book.isbn,
        "description": book.description,
        "authorId": book.author_id,
        "createdAt": book.created_at.isoformat() if book.created_at else None,
        "updatedAt": book.updated_at.isoformat() if book.updated_at else None,
        "qrCodes": qr_codes,
        "_count": {
            "qrCodes": len(qr_codes),
            "scans": sum(qr["_count"]["scans"] for qr in qr_codes),
        },
    }


def _serialize_many(db: Session, books: list[Book]) -> list[Dict[str, Any]]:
    counts = scan_counts(db, [qr.id for book in books for qr in book.qr_codes])
    return [serialize_book(book, counts) for book in books]


def get_owned_book(db: Session, book_id: str, author_id: str) -> Book:
    book = (
        db.query(Book)
        .options(selectinload(Book.qr_codes))
        .filter(Book.id == book_id, Book.author_id == author_id)
        .first()
    )
    if not book:
        raise NotFound("Book not found")
    return book


def list_books(db: Session, author_id: str) -> list[Dict[str, Any]]:
    books = (
        db.query(Book)
        .options(selectinload(Book.qr_codes))
        .filter(Book.author_id == author_id)
        .order_by(Book.created_at.desc())
        .all()
    )
    return _serialize_many(db, books)


def get_book(db: Session, book_id: str, author_id: str) -> Dict[str, Any]:
    return _serialize_many(db, [get_owned_book(db, book_id, author_id)])[0]


def create_book(
    db: Session,
    author_id: str,
    title: Optional[str],
    isbn: Optional[str] = None,
    description: Optional[str] = None,
) -> Dict[str, Any]:
    title = _clean(title)
    if not title:
        raise ValidationFailed("Title is required")

    book = Book(title=title, isbn=_clean(isbn), description=_clean(description), author_id=author_id)
    db.add(book)
    db.commit()
    logger.info("📚 Buch %s für Autor %s angelegt", book.id, author_id)
    return serialize_book(book, {})


def update_book(
    db: Session,
    book_id: str,
    author_id: str,
    title: Optional[str],
    isbn: Optional[str] = None,
    description: Optional[str] = None,
) -> Dict[str, Any]:
    title = _clean(title)
    if not title:
        raise ValidationFailed("Title is required")

    book = get_owned_book(db, book_id, author_id)
    book.title = title
    book.isbn = _clean(isbn)
    book.description = _clean(description)
    db.commit()
    return _serialize_many(db, [book])[0]


def delete_book(db: Session, book_id: str, author_id: str) -> None:
    book = get_owned_book(db, book_id, author_id)
    db.delete(book)
    db.commit()
    logger.info("🗑️ Buch %s gelöscht", book_id)
