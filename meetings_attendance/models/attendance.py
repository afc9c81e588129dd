# meetings_attendance/models/attendance.py
from typing import Optional

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)

from meetings_attendance.db.base import Base, utcnow

UNASSIGNED_USER_ID = 0


class AttendanceRecord(Base):
    """
    Attendance of one platform participant in one meeting session.

    (session_id, platform_user_id) is the natural key: a re-sync updates the
    existing row instead of inserting a new one. `user_id` stores 0 for a
    participant that has not been linked to a local user yet; Python code
    should go through `assigned_user_id` instead.
    """

    __tablename__ = "attendance_records"

    id = Column(Integer, primary_key=True, index=True)

    session_id = Column(
        Integer,
        ForeignKey("meeting_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    user_id = Column(Integer, nullable=False, default=UNASSIGNED_USER_ID, index=True)
    platform_user_id = Column(String(255), nullable=False)

    attendance_duration = Column(Integer, nullable=False, default=0)
    actual_attendance = Column(Float, nullable=False, default=0.0)
    completion_met = Column(Boolean, nullable=False, default=False)

    role = Column(String(64), nullable=False, default="Attendee")
    manually_assigned = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint(
            "session_id",
            "platform_user_id",
            name="uq_attendance_records_session_platform_user",
        ),
    )

    @property
    def assigned_user_id(self) -> Optional[int]:
        if not self.user_id:
            return None
        return self.user_id

    @assigned_user_id.setter
    def assigned_user_id(self, value: Optional[int]) -> None:
        self.user_id = value if value else UNASSIGNED_USER_ID

    def __repr__(self) -> str:
        return (
            f"<AttendanceRecord id={self.id} session_id={self.session_id} "
            f"platform_user_id={self.platform_user_id} user_id={self.user_id}>"
        )


class AttendanceReport(Base):
    """
    Timing snapshot taken the first time a participant is seen.

    Written once alongside its AttendanceRecord and never regenerated.
    """

    __tablename__ = "attendance_reports"

    id = Column(Integer, primary_key=True, index=True)

    record_id = Column(
        Integer,
        ForeignKey("attendance_records.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )

    report_id = Column(String(255), nullable=False)
    join_time = Column(Integer, nullable=False, default=0)
    leave_time = Column(Integer, nullable=False, default=0)
    attendance_duration = Column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<AttendanceReport id={self.id} record_id={self.record_id}>"
