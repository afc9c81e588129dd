# meetings_attendance/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from meetings_attendance.api.routes import attendance, health, sessions, users
from meetings_attendance.core.config import get_settings
from meetings_attendance.core.logging import configure_logging
from meetings_attendance.db.session import init_db_for_startup

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    if settings.AUTO_CREATE_SCHEMA:
        await init_db_for_startup()
        logger.info("Database schema ready")
    yield


def create_app() -> FastAPI:
    """
    Application factory for the Meetings Attendance service.
    """
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_NAME,
        description=(
            "Reconciles Microsoft Teams and Zoom attendance reports with local\n"
            "user accounts: fetches participants, matches them by email, keeps\n"
            "per-user attendance records (with manual overrides) and evaluates\n"
            "attendance-based completion."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    # Routers
    app.include_router(health.router)
    app.include_router(sessions.router)
    app.include_router(users.router)
    app.include_router(attendance.router)

    return app


app = create_app()
