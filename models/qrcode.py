# =============================================================================
# 📦 models/qrcode.py
# -----------------------------------------------------------------------------
# QR-Code eines Buchs. Der Inhalt ('content') wird je nach Typ interpretiert:
#   URL / VIDEO / IMAGE → Link,  TEXT → Klartext.
# Eine typabhängige Validierung findet serverseitig NICHT statt.
# -----------------------------------------------------------------------------
# Projekt: QRCoder
# =============================================================================

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, List

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base
from models.base import utc_now

if TYPE_CHECKING:
    from models.book import Book
    from models.qr_scan import QRScan


QR_TYPES = ("URL", "VIDEO", "TEXT", "IMAGE")


class QRCode(Base):
    __tablename__ = "qr_codes"

    # ---------------------------------------------------------------------
    # 🧾 Basisattribute
    # ---------------------------------------------------------------------
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(255))
    type: Mapped[str] = mapped_column(String(10))  # URL, VIDEO, TEXT, IMAGE
    content: Mapped[str] = mapped_column(Text)

    # ---------------------------------------------------------------------
    # 🔗 Beziehungen
    # ---------------------------------------------------------------------
    book_id: Mapped[str] = mapped_column(ForeignKey("books.id", ondelete="CASCADE"), index=True)
    book: Mapped["Book"] = relationship("Book", back_populates="qr_codes")

    scans: Mapped[List["QRScan"]] = relationship(
        "QRScan",
        back_populates="qr_code",
        cascade="all, delete-orphan",
    )

    # ---------------------------------------------------------------------
    # 🕒 Zeitstempel
    # ---------------------------------------------------------------------
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    def __repr__(self) -> str:
        return f"<QRCode(id={self.id}, type='{self.type}', book_id={self.book_id})>"
