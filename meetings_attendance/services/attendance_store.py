# meetings_attendance/services/attendance_store.py
from __future__ import annotations

from typing import List, Optional, Tuple

from sqlalchemy import and_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from meetings_attendance.models.attendance import (
    UNASSIGNED_USER_ID,
    AttendanceRecord,
    AttendanceReport,
)
from meetings_attendance.models.meeting_session import MeetingSession
from meetings_attendance.models.user import LocalUser

ReportRow = Tuple[AttendanceRecord, Optional[AttendanceReport], Optional[LocalUser]]


class AttendanceStore:
    """
    Persistence collaborator for the reconciliation core.

    Every write commits on its own: a sync that dies half-way leaves the
    participants processed so far stored, and re-running it is safe.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_session(self, session_id: int) -> Optional[MeetingSession]:
        return await self.db.get(MeetingSession, session_id)

    async def get_record(self, record_id: int) -> Optional[AttendanceRecord]:
        return await self.db.get(AttendanceRecord, record_id)

    async def get_record_by_key(
        self,
        session_id: int,
        platform_user_id: str,
    ) -> Optional[AttendanceRecord]:
        stmt = select(AttendanceRecord).where(
            AttendanceRecord.session_id == session_id,
            AttendanceRecord.platform_user_id == platform_user_id,
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_record_for_user(
        self,
        session_id: int,
        user_id: int,
    ) -> Optional[AttendanceRecord]:
        stmt = (
            select(AttendanceRecord)
            .where(
                AttendanceRecord.session_id == session_id,
                AttendanceRecord.user_id == user_id,
            )
            .order_by(AttendanceRecord.id)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def list_unassigned(self, session_id: int) -> List[AttendanceRecord]:
        stmt = (
            select(AttendanceRecord)
            .where(
                AttendanceRecord.session_id == session_id,
                AttendanceRecord.user_id == UNASSIGNED_USER_ID,
            )
            .order_by(AttendanceRecord.id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_assigned_user_ids(self, session_id: int) -> List[int]:
        stmt = (
            select(AttendanceRecord.user_id)
            .where(
                AttendanceRecord.session_id == session_id,
                AttendanceRecord.user_id != UNASSIGNED_USER_ID,
            )
            .distinct()
            .order_by(AttendanceRecord.user_id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_report_rows(self, session_id: int) -> List[ReportRow]:
        """
        Records of a session joined with their timing snapshot and, when
        assigned, the local user.
        """
        stmt = (
            select(AttendanceRecord, AttendanceReport, LocalUser)
            .outerjoin(AttendanceReport, AttendanceReport.record_id == AttendanceRecord.id)
            .outerjoin(
                LocalUser,
                and_(
                    LocalUser.id == AttendanceRecord.user_id,
                    AttendanceRecord.user_id != UNASSIGNED_USER_ID,
                ),
            )
            .where(AttendanceRecord.session_id == session_id)
            .order_by(AttendanceRecord.id)
        )
        result = await self.db.execute(stmt)
        return [tuple(row) for row in result.all()]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def insert_record(
        self,
        record: AttendanceRecord,
        report: AttendanceReport,
    ) -> AttendanceRecord:
        """
        Insert a new record together with its first-seen timing snapshot.
        """
        try:
            self.db.add(record)
            await self.db.flush()
            report.record_id = record.id
            self.db.add(report)
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise
        return record

    async def save(self, record: AttendanceRecord) -> AttendanceRecord:
        try:
            self.db.add(record)
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise
        return record
