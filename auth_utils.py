# =============================================================================
# 🔐 auth_utils.py
# -----------------------------------------------------------------------------
# Passwort-Hashing (passlib/bcrypt) und Prüfung von Zugangsdaten für
# Admins und Autoren. Alle Fehlschläge sind für den Aufrufer gleich:
# es gibt nur "ungültige Zugangsdaten", nie "E-Mail unbekannt".
# -----------------------------------------------------------------------------
# Projekt: QRCoder
# =============================================================================

from __future__ import annotations

import logging
import secrets
import string
from typing import Optional

from passlib.hash import bcrypt
from sqlalchemy.orm import Session

from config import Settings
from database import CONNECTIVITY_ERRORS
from models.admin import Admin
from models.author import Author
from utils.session_tokens import Identity

logger = logging.getLogger("qrcoder.auth")

# ⚠️ Nur aktiv mit DEMO_MODE=true UND nicht erreichbarer Datenbank.
DEMO_IDENTITIES = {
    ("admin", "admin@example.com"): ("admin123", Identity(
        id="demo-admin", name="Demo Admin", email="admin@example.com", role="admin",
    )),
    ("author", "author@example.com"): ("author123", Identity(
        id="demo-author", name="Demo Author", email="author@example.com", role="author",
    )),
}

_PASSWORD_ALPHABET = string.ascii_letters + string.digits


# ---------------------------------------------------------------------
# 🔐 Passwort-Hash
# ---------------------------------------------------------------------
def hash_password(password: str) -> str:
    return bcrypt.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    """Gesalzener bcrypt-Vergleich; kaputte Hashes zählen als Fehlschlag."""
    try:
        return bcrypt.verify(password, hashed)
    except ValueError:
        return False


def generate_random_password(length: int = 8) -> str:
    return "".join(secrets.choice(_PASSWORD_ALPHABET) for _ in range(length))


def normalize_role(user_type: Optional[str]) -> str:
    # Alles außer "admin" wird wie ein Autor behandelt
    return "admin" if (user_type or "").strip().lower() == "admin" else "author"


# ---------------------------------------------------------------------
# ✅ Zugangsdaten prüfen
# ---------------------------------------------------------------------
def _lookup_identity(db: Session, email: str, password: str, role: str) -> Optional[Identity]:
    if role == "admin":
        admin = db.query(Admin).filter(Admin.email == email).first()
        if not admin or not verify_password(password, admin.password):
            return None
        return Identity(id=admin.id, name=admin.name, email=admin.email, role="admin")

    author = db.query(Author).filter(Author.email == email).first()
    if not author or not author.is_active:
        return None
    if not verify_password(password, author.password):
        return None
    return Identity(id=author.id, name=author.name, email=author.email, role="author")


def _demo_identity(email: str, password: str, role: str) -> Optional[Identity]:
    entry = DEMO_IDENTITIES.get((role, email))
    if entry and secrets.compare_digest(entry[0], password):
        return entry[1]
    return None


def verify_credentials(
    db: Session,
    email: str,
    password: str,
    user_type: Optional[str],
    settings: Settings,
) -> Optional[Identity]:
    """Liefert die minimale Identität oder None."""
    role = normalize_role(user_type)
    email = (email or "").strip().lower()
    if not email or not password:
        return None

    try:
        identity = _lookup_identity(db, email, password, role)
    except CONNECTIVITY_ERRORS:
        if not settings.demo_mode:
            raise
        db.rollback()
        logger.warning("⚠️ Datenbank nicht erreichbar – Demo-Login wird geprüft (DEMO_MODE aktiv)")
        identity = _demo_identity(email, password, role)
        if identity:
            logger.warning("⚠️ Demo-Identität '%s' angemeldet", identity.id)
        return identity

    if identity:
        logger.info("[LOGIN] %s %s erfolgreich angemeldet", role, identity.id)
    else:
        logger.info("[LOGIN] Fehlgeschlagener %s-Login", role)
    return identity
