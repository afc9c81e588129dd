# meetings_attendance/db/base.py
from datetime import datetime, timezone

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models in the Meetings Attendance service.
    """
    pass


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)
