# tests/conftest.py
import os
import tempfile

# Settings are cached on first import, so the environment must be prepared
# before anything from the application is imported.
_TMP_DIR = tempfile.mkdtemp(prefix="meetings_attendance_tests_")
os.environ["DB_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TMP_DIR, 'app.db')}"
os.environ["APP_ENV"] = "test"
os.environ["AUTO_CREATE_SCHEMA"] = "false"
for _key in (
    "OPERATOR_API_KEY",
    "TEAMS_TENANT_ID",
    "TEAMS_CLIENT_ID",
    "TEAMS_CLIENT_SECRET",
    "ZOOM_CLIENT_ID",
    "ZOOM_CLIENT_SECRET",
    "ZOOM_ACCOUNT_ID",
):
    os.environ.pop(_key, None)

from typing import Any, Dict, List, Tuple  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from meetings_attendance.core.config import Settings, get_settings  # noqa: E402
from meetings_attendance.db.session import (  # noqa: E402
    build_engine,
    build_sessionmaker,
    get_db,
    reset_schema_sync,
)
from meetings_attendance.main import create_app  # noqa: E402
from meetings_attendance.models.meeting_session import MeetingSession  # noqa: E402
from meetings_attendance.models.user import LocalUser  # noqa: E402


class RecordingAuditSink:
    """
    In-memory audit sink capturing every emitted event.
    """

    def __init__(self) -> None:
        self.events: List[Tuple[str, Dict[str, Any]]] = []

    def emit(self, action: str, payload: Dict[str, Any]) -> None:
        self.events.append((action, dict(payload)))


class BrokenAuditSink:
    def emit(self, action: str, payload: Dict[str, Any]) -> None:
        raise ConnectionError("audit backend unavailable")


@pytest.fixture
def platform_settings() -> Settings:
    """
    Settings with credentials configured for both platforms.
    """
    return Settings(
        APP_ENV="test",
        TEAMS_TENANT_ID="tenant-123",
        TEAMS_CLIENT_ID="teams-client",
        TEAMS_CLIENT_SECRET="teams-secret",
        ZOOM_CLIENT_ID="zoom-client",
        ZOOM_CLIENT_SECRET="zoom-secret",
        ZOOM_ACCOUNT_ID="zoom-account",
    )


@pytest.fixture
def db_url(tmp_path) -> str:
    """
    Fresh SQLite database file with the full schema, per test.
    """
    url = f"sqlite+aiosqlite:///{tmp_path / 'attendance.db'}"
    reset_schema_sync(url)
    return url


@pytest_asyncio.fixture
async def db_session(db_url):
    engine = build_engine(db_url)
    session_factory = build_sessionmaker(engine)
    async with session_factory() as session:
        yield session
    await engine.dispose()


@pytest_asyncio.fixture
async def teams_session(db_session) -> MeetingSession:
    session = MeetingSession(
        name="Week 1 lecture",
        platform="teams",
        meeting_url="https://teams.microsoft.com/l/meetup-join/19%3ameeting_abc/0",
        meeting_id="",
        organizer_email="organizer@example.edu",
        expected_duration=3600,
        required_attendance=75,
        completion_attendance=True,
        status="open",
    )
    db_session.add(session)
    await db_session.commit()
    await db_session.refresh(session)
    return session


@pytest_asyncio.fixture
async def local_users(db_session) -> Dict[str, int]:
    """
    Two directory users; returns email -> id.
    """
    users = [
        LocalUser(email="alice@x.com", full_name="Alice"),
        LocalUser(email="bob@x.com", full_name="Bob"),
    ]
    db_session.add_all(users)
    await db_session.commit()
    return {u.email: u.id for u in users}


@pytest.fixture
def app(db_url, platform_settings):
    application = create_app()

    session_factory = build_sessionmaker(build_engine(db_url))

    async def _override_get_db():
        async with session_factory() as session:
            yield session

    application.dependency_overrides[get_db] = _override_get_db
    application.dependency_overrides[get_settings] = lambda: platform_settings
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app) -> TestClient:
    """
    TestClient bound to a per-test database.
    """
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def audit_sink() -> RecordingAuditSink:
    return RecordingAuditSink()


@pytest.fixture
def broken_audit_sink() -> BrokenAuditSink:
    return BrokenAuditSink()
