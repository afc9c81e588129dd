# meetings_attendance/models/meeting_session.py
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Integer,
    String,
)

from meetings_attendance.db.base import Base, utcnow


class MeetingSession(Base):
    """
    One configured meeting whose attendance is tracked.

    The reconciliation core only reads this row; it is owned by the session
    API (create / update / close / delete).
    """

    __tablename__ = "meeting_sessions"

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, nullable=True, index=True)
    name = Column(String(255), nullable=False)

    platform = Column(String(32), nullable=False)
    meeting_url = Column(String(1333), nullable=False)
    meeting_id = Column(String(255), nullable=False, default="")
    organizer_email = Column(String(254), nullable=False)

    expected_duration = Column(Integer, nullable=False, default=0)
    required_attendance = Column(Integer, nullable=False, default=75)
    completion_attendance = Column(Boolean, nullable=False, default=False)

    status = Column(String(16), nullable=False, default="open")
    start_datetime = Column(Integer, nullable=False, default=0)
    end_datetime = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return (
            f"<MeetingSession id={self.id} platform={self.platform} "
            f"status={self.status}>"
        )
