# =============================================================================
# 🔄 Öffentlicher QR-Code-Resolver (QRCoder)
# -----------------------------------------------------------------------------
#       GET /api/qr/{id}   → JSON-Beschreibung, erfasst einen Scan
#       GET /qr/{id}       → Besucherseite, erfasst einen Scan
#
# Kein Login nötig. Unbekannte IDs liefern 404 und schreiben nichts.
# =============================================================================

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from database import get_db
from utils.errors import NotFound
from utils.qr_service import resolve_scan

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))

router = APIRouter(tags=["QR-Resolver"])


@router.get("/api/qr/{qr_id}")
def resolve_api(qr_id: str, request: Request, db: Session = Depends(get_db)):
    return resolve_scan(db, qr_id, request.headers)


@router.get("/qr/{qr_id}", response_class=HTMLResponse)
def resolve_page(qr_id: str, request: Request, db: Session = Depends(get_db)):
    """Besucherseite: URL leitet weiter, Video/Bild werden eingebettet, Text angezeigt."""
    try:
        qr = resolve_scan(db, qr_id, request.headers)
    except NotFound:
        return templates.TemplateResponse(request, "qr.html", {"qr": None}, status_code=404)
    return templates.TemplateResponse(request, "qr.html", {"qr": qr})
