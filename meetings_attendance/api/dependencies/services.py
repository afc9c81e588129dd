# meetings_attendance/api/dependencies/services.py
from collections.abc import AsyncGenerator

import httpx
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from meetings_attendance.core.config import Settings, get_settings
from meetings_attendance.db.session import get_db
from meetings_attendance.services.attendance_store import AttendanceStore
from meetings_attendance.services.audit import AuditSink, LoggingAuditSink
from meetings_attendance.services.user_directory import SqlUserDirectory

_audit_sink = LoggingAuditSink()


async def get_http_client(
    settings: Settings = Depends(get_settings),
) -> AsyncGenerator[httpx.AsyncClient, None]:
    """
    Outbound client for Graph / Zoom calls, scoped to one request.
    """
    async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as client:
        yield client


def get_audit_sink() -> AuditSink:
    return _audit_sink


def get_store(db: AsyncSession = Depends(get_db)) -> AttendanceStore:
    return AttendanceStore(db)


def get_user_directory(db: AsyncSession = Depends(get_db)) -> SqlUserDirectory:
    return SqlUserDirectory(db)
