"""FastAPI application wiring for the account service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Response
from fastapi.staticfiles import StaticFiles
from psycopg_pool import ConnectionPool

from .api.contacts import router as contacts_router
from .api.errors import register_exception_handlers
from .api.routes import router as users_router
from .bootstrap import install_services
from .config import get_settings
from .mail import SmtpMailer
from .repository import AccountRepository, ContactRepository

# fails at import when JWT_SECRET is missing
settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialise shared resources (Postgres pool, services) for the app lifecycle."""
    pool = ConnectionPool(settings.database_url, open=False)
    pool.open()
    app.state.pool = pool
    install_services(
        app,
        settings,
        accounts=AccountRepository(pool),
        contacts=ContactRepository(pool),
        mailer=SmtpMailer.from_settings(settings),
    )
    logger.info("%s %s ready", settings.app_name, settings.version)
    try:
        yield
    finally:
        pool.close()


app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)
register_exception_handlers(app)


@app.get("/healthz", tags=["health"])
def healthz() -> dict[str, str]:
    """Return a minimal readiness indicator used by orchestration systems."""
    return {"status": "ok"}


app.include_router(users_router)
app.include_router(contacts_router)
app.mount("/avatars", StaticFiles(directory=settings.avatars_dir, check_dir=False), name="avatars")


# Prometheus metrics endpoint for Prometheus scrapes
try:
    from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

    @app.get("/metrics")
    def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
except ImportError:  # pragma: no cover - metrics are optional in dev
    logger.info("prometheus_client not installed, /metrics disabled")
