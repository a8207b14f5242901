# =============================================================================
# 🌱 seeds/demo_seed.py
# -----------------------------------------------------------------------------
# Beispieldaten für lokale Entwicklung:
#   1 Admin, 1 Autor, 1 Buch, 4 QR-Codes (je Typ einer), 50 Scans der
#   letzten 30 Tage.
# Zugangsdaten entsprechen den Demo-Logins (admin123 / author123).
# -----------------------------------------------------------------------------
# Projekt: QRCoder
# =============================================================================

from __future__ import annotations

import random
from datetime import timedelta
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from auth_utils import hash_password
from config import Settings
from database import Database
from init_db import create_admin
from models.author import Author
from models.base import utc_now
from models.book import Book
from models.qr_scan import QRScan
from models.qrcode import QRCode

DEMO_ADMIN = ("admin@example.com", "admin123", "Admin User")
DEMO_AUTHOR = ("author@example.com", "author123", "Demo Author")

SAMPLE_QR_CODES = [
    ("Introduction Video", "VIDEO", "https://www.youtube.com/watch?v=dQw4w9WgXcQ"),
    ("Author Website", "URL", "https://example.com"),
    (
        "Chapter 1 Summary",
        "TEXT",
        "This chapter introduces the fundamental concepts of QR codes and their "
        "applications in modern technology.",
    ),
    ("Diagram 1.1", "IMAGE", "https://images.unsplash.com/photo-1553406830-ef2513450d76?w=500&h=300&fit=crop"),
]

SAMPLE_COUNTRIES = ["United States", "Canada", "United Kingdom", "Germany", "France"]
SAMPLE_CITIES = ["New York", "Toronto", "London", "Berlin", "Paris"]
SAMPLE_USER_AGENT = "Mozilla/5.0 (iPhone; CPU iPhone OS 14_7_1 like Mac OS X) AppleWebKit/605.1.15"


def seed_demo(db: Session, scans: int = 50, rng: Optional[random.Random] = None) -> dict:
    """Erstellt die Demo-Daten, falls der Demo-Autor noch nicht existiert."""
    rng = rng or random.Random()
    create_admin(db, *DEMO_ADMIN)

    email, password, name = DEMO_AUTHOR
    if db.query(Author).filter(Author.email == email).first():
        return {"created": False}

    author = Author(email=email, password=hash_password(password), name=name, is_active=True)
    book = Book(
        title="The Complete Guide to QR Codes",
        isbn="978-0-123456-78-9",
        description="A comprehensive guide to understanding and implementing QR codes in modern applications.",
        author=author,
    )
    qr_codes = [QRCode(name=n, type=t, content=c, book=book) for n, t, c in SAMPLE_QR_CODES]
    db.add_all([author, book, *qr_codes])
    db.flush()

    now = utc_now()
    for _ in range(scans):
        db.add(QRScan(
            qr_code_id=rng.choice(qr_codes).id,
            user_agent=SAMPLE_USER_AGENT,
            ip_address=f"192.168.1.{rng.randint(0, 254)}",
            country=rng.choice(SAMPLE_COUNTRIES),
            city=rng.choice(SAMPLE_CITIES),
            scanned_at=now - timedelta(days=rng.randint(0, 29)),
        ))
    db.commit()
    return {"created": True, "book": book.title, "qrCodes": len(qr_codes), "scans": scans}


# -----------------------------------------------------------------------------
# 🏁 Direkter Startpunkt
# -----------------------------------------------------------------------------
if __name__ == "__main__":
    print("🌱 Seeding database ...")
    database = Database(Settings.from_env().database_url)
    database.create_all()
    with database.session() as session:
        try:
            result = seed_demo(session)
        except SQLAlchemyError as e:
            session.rollback()
            print(f"❌ Fehler beim Seeding: {e}")
            raise
    database.dispose()
    if result["created"]:
        print(f"📚 Buch: \"{result['book']}\" · 🔗 {result['qrCodes']} QR-Codes · 📈 {result['scans']} Scans")
    else:
        print("ℹ️ Demo-Daten existieren bereits.")
    print("👤 Admin: admin@example.com / admin123")
    print("✍️ Author: author@example.com / author123")
    print("🏁 Fertig.")
