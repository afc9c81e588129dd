# meetings_attendance/db/session.py
from collections.abc import AsyncGenerator

from sqlalchemy import create_engine as create_sync_engine
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from meetings_attendance.core.config import get_settings
from meetings_attendance.db.base import Base

# Import ORM models so that Base.metadata is aware of them before create_all.
from meetings_attendance.models.user import LocalUser  # noqa: F401
from meetings_attendance.models.meeting_session import MeetingSession  # noqa: F401
from meetings_attendance.models.attendance import AttendanceRecord, AttendanceReport  # noqa: F401

settings = get_settings()


def build_engine(db_url: str) -> AsyncEngine:
    """
    Create an async engine for the given URL.

    File-backed SQLite uses NullPool so connections are never shared across
    event loops (TestClient runs its own loop).
    """
    kwargs = {"echo": False, "future": True}
    if db_url.startswith("sqlite"):
        kwargs["poolclass"] = NullPool
    return create_async_engine(db_url, **kwargs)


def build_sessionmaker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=bind,
        autoflush=False,
        expire_on_commit=False,
        class_=AsyncSession,
    )


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    """
    SQLite ignores ON DELETE CASCADE unless foreign keys are switched on
    per connection.
    """
    module = type(dbapi_connection).__module__
    if "sqlite" not in module:
        return
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# ---------------------------------------------------------------------------
# Main application engine + session
# ---------------------------------------------------------------------------
engine = build_engine(settings.DB_URL)
AsyncSessionLocal = build_sessionmaker(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides an async SQLAlchemy session.

    The session is automatically closed when the request is completed.
    """
    async with AsyncSessionLocal() as session:
        yield session


async def init_db_for_startup() -> None:
    """
    Create any missing tables for the configured database.

    Safe to call from application startup; existing tables are left alone.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# ---------------------------------------------------------------------------
# TESTS / TOOLING: reset schema using a SYNC engine
# ---------------------------------------------------------------------------

def build_sync_db_url(async_url: str) -> str:
    """
    Convert an async driver URL to its synchronous counterpart, e.g.
    'sqlite+aiosqlite:///x.db' -> 'sqlite:///x.db' or
    'postgresql+asyncpg://...' -> 'postgresql://...'.
    """
    for driver in ("+aiosqlite", "+asyncpg"):
        if driver in async_url:
            return async_url.replace(driver, "")
    return async_url


def reset_schema_sync(db_url: str) -> None:
    """
    Run drop_all + create_all using a synchronous SQLAlchemy engine.

    Used by the test suite to prepare a database outside of any event loop.
    """
    sync_engine = create_sync_engine(build_sync_db_url(db_url), future=True)

    with sync_engine.begin() as conn:
        Base.metadata.drop_all(bind=conn)
        Base.metadata.create_all(bind=conn)

    sync_engine.dispose()
