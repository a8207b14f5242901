# =============================================================================
# 📦 models/__init__.py
# -----------------------------------------------------------------------------
# Registriert alle Modelle an Base.metadata
# =============================================================================

from .admin import Admin
from .author import Author
from .book import Book
from .qrcode import QRCode, QR_TYPES
from .qr_scan import QRScan

__all__ = [
    "Admin",
    "Author",
    "Book",
    "QRCode",
    "QRScan",
    "QR_TYPES",
]
