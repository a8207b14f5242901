# =============================================================================
# 🚀 QRCoder – Hauptapplikation (main.py)
# -----------------------------------------------------------------------------
# create_app(settings) baut eine vollständige App:
#   Konfiguration → Logging → Datenbank → Middleware → Router → Fehlerhandler
# Tests rufen create_app() mit eigenen Settings auf; der Server nutzt `app`.
# =============================================================================

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from sqlalchemy.exc import IntegrityError

from config import Settings, ensure_valid_environment
from database import CONNECTIVITY_ERRORS, Database
from utils.errors import AppError
from utils.route_guard import RouteGuardMiddleware

logger = logging.getLogger("qrcoder")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _configure_logging(settings: Settings) -> None:
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
    logging.getLogger("qrcoder").setLevel(settings.log_level)
    if settings.generated_secret:
        logger.warning("⚠️ Kein SESSION_SECRET gesetzt – temporärer Schlüssel, Sitzungen überleben keinen Neustart")


# -------------------------------------------------------------------------
# ❗ Fehlerhandler
# -------------------------------------------------------------------------
def _register_error_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        return JSONResponse({"error": message}, status_code=400)

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        logger.warning("⚠️ Integritätsverletzung bei %s %s: %s", request.method, request.url.path, exc.orig)
        return JSONResponse({"error": "Conflict"}, status_code=409)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("❌ Unerwarteter Fehler bei %s %s", request.method, request.url.path)
        body = {"error": "Internal server error"}
        if not settings.is_production:
            body["details"] = str(exc)
        return JSONResponse(body, status_code=500)


# -------------------------------------------------------------------------
# 🏗️ App-Factory
# -------------------------------------------------------------------------
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    _configure_logging(settings)
    ensure_valid_environment(settings)

    db = Database(settings.database_url)
    try:
        db.create_all()
    except CONNECTIVITY_ERRORS as exc:
        # App startet trotzdem; /api/health meldet "degraded"
        logger.error("❌ Tabellen konnten nicht angelegt werden: %s", exc)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("🚀 QRCoder gestartet (%s)", settings.app_env)
        yield
        app.state.db.dispose()
        logger.info("🛑 Datenbankverbindungen geschlossen")

    app = FastAPI(title="QRCoder", version="1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.db = db

    app.add_middleware(RouteGuardMiddleware)
    _register_error_handlers(app, settings)

    from routes import admin, auth, author, health, pages, qr_resolve

    app.include_router(auth.router)
    app.include_router(admin.router)
    app.include_router(author.router)
    app.include_router(qr_resolve.router)
    app.include_router(health.router)
    app.include_router(pages.router)

    @app.get("/.well-known/appspecific/com.chrome.devtools.json", include_in_schema=False)
    def chrome_devtools_probe() -> Response:
        return Response(status_code=204)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000)
