from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger("qrcoder.health")

router = APIRouter(tags=["Health"])


@router.get("/api/health")
def health(request: Request):
    """Datenbank-Ping mit begrenzten Wiederholungen; 503 wenn sie nicht antwortet."""
    timestamp = datetime.now(timezone.utc).isoformat()
    if request.app.state.db.ping():
        return {"status": "healthy", "database": "connected", "timestamp": timestamp}

    logger.error("❌ Health-Check: Datenbank nicht erreichbar")
    return JSONResponse(
        {
            "status": "degraded",
            "database": "disconnected",
            "error": "Database connection failed",
            "timestamp": timestamp,
        },
        status_code=503,
    )
