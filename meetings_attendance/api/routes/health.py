# meetings_attendance/api/routes/health.py
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from meetings_attendance.adapters.factory import get_supported_platforms
from meetings_attendance.core.config import Settings, get_settings


router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    """
    Response schema for the health check endpoint.
    """

    status: str = Field(..., examples=["ok"])
    app_name: str = Field(..., examples=["Meetings Attendance"])
    environment: str = Field(..., examples=["local"])
    timestamp_utc: datetime = Field(
        ...,
        description="Server-side timestamp (UTC) at which this health check was generated.",
    )


class PlatformsResponse(BaseModel):
    platforms: list[str] = Field(..., examples=[["teams", "zoom"]])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check for the Meetings Attendance service",
    description=(
        "Lightweight liveness endpoint. It does **not** touch the database or "
        "the meeting platforms, so it stays reliable when those are degraded."
    ),
)
async def health_check(settings: Settings = Depends(get_settings)) -> HealthResponse:
    return HealthResponse(
        status="ok",
        app_name=settings.APP_NAME,
        environment=settings.APP_ENV,
        timestamp_utc=datetime.now(tz=timezone.utc),
    )


@router.get(
    "/platforms",
    response_model=PlatformsResponse,
    tags=["Sessions"],
    summary="List supported meeting platforms",
)
async def list_platforms() -> PlatformsResponse:
    """
    Platforms a session can be configured with, for populating forms.
    """
    return PlatformsResponse(platforms=get_supported_platforms())
