# =============================================================================
# 🛡️ models/admin.py
# -----------------------------------------------------------------------------
# Administrator-Konten. Werden nur über Seed / init_db.py angelegt,
# es gibt weder Selbstregistrierung noch einen Lösch-Pfad in der App.
# -----------------------------------------------------------------------------
# Projekt: QRCoder
# =============================================================================

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from database import Base
from models.base import utc_now


class Admin(Base):
    __tablename__ = "admins"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email: Mapped[str] = mapped_column(String(200), unique=True, index=True)
    password: Mapped[str] = mapped_column(String(255))  # bcrypt-Hash
    name: Mapped[str] = mapped_column(String(200))

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    def __repr__(self) -> str:
        return f"<Admin(id={self.id}, email='{self.email}')>"
