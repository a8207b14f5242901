# =============================================================================
# 🗄️ database.py
# -----------------------------------------------------------------------------
# SQLAlchemy-Datenbankschicht für QRCoder.
# Kein globaler Engine mehr: create_app() baut ein Database-Objekt, legt es
# auf app.state ab und schließt es beim Herunterfahren wieder.
# -----------------------------------------------------------------------------
# Projekt: QRCoder
# =============================================================================

from __future__ import annotations

import logging
import time
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger("qrcoder.database")

# 🔹 Basisklasse für alle SQLAlchemy-Modelle
Base = declarative_base()

# Fehler, die bedeuten: Datenbank nicht erreichbar
CONNECTIVITY_ERRORS = (OperationalError, InterfaceError)


class Database:
    """Besitzt Engine und Session-Factory; Lebenszyklus gehört dem Aufrufer."""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.engine: Engine = self._build_engine(url, echo)
        self.session_factory = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self.engine,
        )

    @staticmethod
    def _build_engine(url: str, echo: bool) -> Engine:
        parsed = make_url(url)
        if parsed.get_backend_name() == "sqlite":
            # In-Memory-SQLite muss über alle Threads dieselbe Verbindung teilen
            kwargs: dict = {"connect_args": {"check_same_thread": False}}
            if parsed.database in (None, "", ":memory:"):
                kwargs["poolclass"] = StaticPool
            return create_engine(url, echo=echo, **kwargs)

        # pool_pre_ping = erkennt unterbrochene Verbindungen
        # pool_recycle = hält MySQL-Verbindungen frisch
        return create_engine(url, echo=echo, pool_pre_ping=True, pool_recycle=280)

    def create_all(self) -> None:
        import models  # noqa: F401  (registriert alle Tabellen an Base.metadata)

        Base.metadata.create_all(bind=self.engine)

    def session(self) -> Session:
        return self.session_factory()

    def ping(self, attempts: int = 3, base_delay: float = 0.2) -> bool:
        """SELECT 1 mit begrenzter Wiederholung und exponentiellem Backoff."""
        for attempt in range(attempts):
            try:
                with self.engine.connect() as conn:
                    conn.execute(text("SELECT 1"))
                return True
            except CONNECTIVITY_ERRORS as exc:
                logger.warning("⚠️ Datenbank nicht erreichbar (Versuch %s/%s): %s", attempt + 1, attempts, exc)
                if attempt + 1 < attempts:
                    time.sleep(base_delay * (2 ** attempt))
        return False

    def dispose(self) -> None:
        self.engine.dispose()


# 🔹 Dependency für FastAPI
def get_db(request: Request) -> Iterator[Session]:
    """
    Erstellt eine neue Datenbank-Session pro Anfrage und schließt sie automatisch.
    """
    db = request.app.state.db.session()
    try:
        yield db
    finally:
        db.close()
