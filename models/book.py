# =============================================================================
# 📚 models/book.py
# -----------------------------------------------------------------------------
# Bücher eines Autors. ISBN ist optional und bewusst NICHT eindeutig.
# -----------------------------------------------------------------------------
# Projekt: QRCoder
# =============================================================================

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base
from models.base import utc_now

if TYPE_CHECKING:
    from models.author import Author
    from models.qrcode import QRCode


class Book(Base):
    __tablename__ = "books"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title: Mapped[str] = mapped_column(String(255))
    isbn: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    author_id: Mapped[str] = mapped_column(ForeignKey("authors.id", ondelete="CASCADE"), index=True)
    author: Mapped["Author"] = relationship("Author", back_populates="books")

    qr_codes: Mapped[List["QRCode"]] = relationship(
        "QRCode",
        back_populates="book",
        cascade="all, delete-orphan",
        order_by="QRCode.created_at.desc()",
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    def __repr__(self) -> str:
        return f"<Book(id={self.id}, title='{self.title}', author_id={self.author_id})>"
