# =============================================================================
# 🧩 init_db.py
# -----------------------------------------------------------------------------
# Initialisiert die Datenbank für QRCoder:
#   - Erstellt alle Tabellen (Admin, Author, Book, QRCode, QRScan)
#   - Legt einen Admin an (einziger Weg, Admins zu erzeugen)
#
# Aufruf:
#   ADMIN_EMAIL=admin@example.com ADMIN_PASSWORD=... ADMIN_NAME="Admin" python init_db.py
# -----------------------------------------------------------------------------
# Projekt: QRCoder
# =============================================================================

from __future__ import annotations

import os
import sys

from sqlalchemy.orm import Session

from auth_utils import hash_password
from config import Settings
from database import Database
from models.admin import Admin


def create_admin(db: Session, email: str, password: str, name: str) -> Admin:
    """Legt den Admin an, falls es die E-Mail noch nicht gibt (idempotent)."""
    email = email.strip().lower()
    existing = db.query(Admin).filter(Admin.email == email).first()
    if existing:
        return existing

    admin = Admin(email=email, password=hash_password(password), name=name.strip() or "Admin")
    db.add(admin)
    db.commit()
    return admin


def main() -> int:
    settings = Settings.from_env()
    database = Database(settings.database_url)

    # 🔹 Schritt 1 – Tabellen anlegen
    print("🛠️ Erstelle Tabellen in der Datenbank...")
    database.create_all()
    print("✅ Tabellen wurden erfolgreich erstellt.\n")

    # 🔹 Schritt 2 – Admin anlegen
    email = os.getenv("ADMIN_EMAIL", "").strip()
    password = os.getenv("ADMIN_PASSWORD", "")
    name = os.getenv("ADMIN_NAME", "Admin")
    if not email or not password:
        print("ℹ️ ADMIN_EMAIL / ADMIN_PASSWORD nicht gesetzt – kein Admin angelegt.")
        database.dispose()
        return 0

    with database.session() as db:
        admin = create_admin(db, email, password, name)
        print(f"👤 Admin bereit: {admin.email} ({admin.id})")

    database.dispose()
    print("🏁 Fertig.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
