# =============================================================================
# 📊 models/qr_scan.py
# -----------------------------------------------------------------------------
# Enthält das SQLAlchemy-Modell für QR-Code-Scans.
# Jeder Datensatz entspricht genau einer öffentlichen Auflösung eines QR-Codes.
# Append-only: Scans werden in der App nie geändert oder gelöscht.
# -----------------------------------------------------------------------------
# Projekt: QRCoder
# =============================================================================

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from database import Base
from models.base import utc_now

# Geolokalisierung ist nicht implementiert – fester Platzhalter
UNKNOWN_LOCATION = "Unknown"


class QRScan(Base):
    __tablename__ = "qr_scans"

    # ---------------------------------------------------------------------
    # 🔹 Primär- & Fremdschlüssel
    # ---------------------------------------------------------------------
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    qr_code_id = Column(String(36), ForeignKey("qr_codes.id", ondelete="CASCADE"), nullable=False, index=True)

    # ---------------------------------------------------------------------
    # 🔹 Scan-Informationen
    # ---------------------------------------------------------------------
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(512), nullable=True)
    country = Column(String(100), nullable=False, default=UNKNOWN_LOCATION)
    city = Column(String(100), nullable=False, default=UNKNOWN_LOCATION)

    # ---------------------------------------------------------------------
    # 🔹 Zeitstempel (UTC-aware)
    # ---------------------------------------------------------------------
    scanned_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)

    # ---------------------------------------------------------------------
    # 🔹 Beziehungen
    # ---------------------------------------------------------------------
    qr_code = relationship("QRCode", back_populates="scans")

    def __repr__(self):
        return (
            f"<QRScan(id={self.id}, qr_code_id={self.qr_code_id}, "
            f"ip='{self.ip_address}', scanned_at={self.scanned_at})>"
        )
