# meetings_attendance/adapters/factory.py
from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

import httpx

from meetings_attendance.adapters.base import PlatformAdapter
from meetings_attendance.adapters.teams import TeamsAdapter, TeamsCredentials
from meetings_attendance.adapters.zoom import ZoomAdapter, ZoomCredentials
from meetings_attendance.core.config import Settings, get_settings
from meetings_attendance.core.errors import InvalidDataError
from meetings_attendance.schemas.meeting_session import Platform

AdapterBuilder = Callable[[Any, Settings, Optional[httpx.AsyncClient]], PlatformAdapter]


def _build_teams(
    session: Any,
    settings: Settings,
    http_client: Optional[httpx.AsyncClient],
) -> PlatformAdapter:
    return TeamsAdapter(
        session,
        TeamsCredentials(
            tenant_id=settings.TEAMS_TENANT_ID,
            client_id=settings.TEAMS_CLIENT_ID,
            client_secret=settings.TEAMS_CLIENT_SECRET,
        ),
        http_client=http_client,
        timeout_seconds=settings.HTTP_TIMEOUT_SECONDS,
    )


def _build_zoom(
    session: Any,
    settings: Settings,
    http_client: Optional[httpx.AsyncClient],
) -> PlatformAdapter:
    return ZoomAdapter(
        session,
        ZoomCredentials(
            client_id=settings.ZOOM_CLIENT_ID,
            client_secret=settings.ZOOM_CLIENT_SECRET,
            account_id=settings.ZOOM_ACCOUNT_ID,
        ),
        http_client=http_client,
        timeout_seconds=settings.HTTP_TIMEOUT_SECONDS,
    )


_BUILDERS: Dict[Platform, AdapterBuilder] = {
    Platform.TEAMS: _build_teams,
    Platform.ZOOM: _build_zoom,
}


def get_supported_platforms() -> List[str]:
    """
    Names of the platforms an adapter exists for, e.g. for form dropdowns.
    """
    return [platform.value for platform in Platform]


def is_platform_supported(platform: Optional[str]) -> bool:
    if not platform:
        return False
    return platform.strip().lower() in get_supported_platforms()


def create_adapter(
    session: Any,
    settings: Optional[Settings] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> PlatformAdapter:
    """
    Build the adapter for `session.platform`.

    Raises InvalidDataError for an empty or unsupported platform; the
    adapter constructor raises ConfigurationError when credentials are
    missing.
    """
    raw_platform = (getattr(session, "platform", None) or "").strip().lower()
    if not raw_platform:
        raise InvalidDataError("The session has no meeting platform configured.")

    try:
        platform = Platform(raw_platform)
    except ValueError:
        raise InvalidDataError(
            f"Unsupported meeting platform '{raw_platform}'. "
            f"Supported: {', '.join(get_supported_platforms())}."
        ) from None

    builder = _BUILDERS[platform]
    return builder(session, settings or get_settings(), http_client)
