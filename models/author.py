# =============================================================================
# ✍️ models/author.py
# -----------------------------------------------------------------------------
# Autor-Konten. Werden von einem Admin angelegt; is_active=False sperrt den
# Login, die Daten bleiben für Admins sichtbar.
# -----------------------------------------------------------------------------
# Projekt: QRCoder
# =============================================================================

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, List

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base
from models.base import utc_now

if TYPE_CHECKING:
    from models.book import Book


class Author(Base):
    __tablename__ = "authors"

    # =========================================================================
    # 🧩 Basisinformationen
    # =========================================================================
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email: Mapped[str] = mapped_column(String(200), unique=True, index=True)
    password: Mapped[str] = mapped_column(String(255))  # bcrypt-Hash
    name: Mapped[str] = mapped_column(String(200))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    # =========================================================================
    # 🕒 Zeitstempel
    # =========================================================================
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    # =========================================================================
    # 🔗 Beziehungen
    # =========================================================================
    books: Mapped[List["Book"]] = relationship(
        "Book",
        back_populates="author",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Author(id={self.id}, email='{self.email}', active={self.is_active})>"
