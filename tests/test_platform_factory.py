# tests/test_platform_factory.py
from types import SimpleNamespace

import pytest

from meetings_attendance.adapters.factory import (
    create_adapter,
    get_supported_platforms,
    is_platform_supported,
)
from meetings_attendance.adapters.teams import TeamsAdapter
from meetings_attendance.adapters.zoom import ZoomAdapter
from meetings_attendance.core.config import Settings
from meetings_attendance.core.errors import ConfigurationError, InvalidDataError


def _session(platform, meeting_id="85746065432"):
    return SimpleNamespace(
        platform=platform,
        meeting_url="https://teams.microsoft.com/l/meetup-join/19%3ameeting_abc/0",
        meeting_id=meeting_id,
    )


def test_supported_platforms_listing():
    assert get_supported_platforms() == ["teams", "zoom"]


@pytest.mark.parametrize(
    "name, expected",
    [("teams", True), ("ZOOM", True), (" Teams ", True), ("webex", False), ("", False), (None, False)],
)
def test_is_platform_supported(name, expected):
    assert is_platform_supported(name) is expected


def test_platform_name_is_case_insensitive(platform_settings):
    adapter = create_adapter(_session("TEAMS"), settings=platform_settings)
    assert isinstance(adapter, TeamsAdapter)


def test_zoom_session_gets_zoom_adapter(platform_settings):
    adapter = create_adapter(_session("zoom"), settings=platform_settings)
    assert isinstance(adapter, ZoomAdapter)
    assert adapter.credentials.account_id == "zoom-account"


def test_unknown_platform_raises_invalid_data(platform_settings):
    with pytest.raises(InvalidDataError) as exc_info:
        create_adapter(_session("webex"), settings=platform_settings)
    assert "webex" in exc_info.value.message


@pytest.mark.parametrize("platform", ["", None, "   "])
def test_empty_platform_raises_invalid_data(platform, platform_settings):
    with pytest.raises(InvalidDataError):
        create_adapter(_session(platform), settings=platform_settings)


def test_missing_credentials_surface_as_configuration_error():
    """
    Settings without any Zoom credentials: the adapter refuses to build.
    """
    settings = Settings(APP_ENV="test", ZOOM_CLIENT_ID=None, ZOOM_CLIENT_SECRET=None, ZOOM_ACCOUNT_ID=None)
    with pytest.raises(ConfigurationError):
        create_adapter(_session("zoom"), settings=settings)
