# meetings_attendance/models/user.py
from sqlalchemy import Column, Integer, String

from meetings_attendance.db.base import Base


class LocalUser(Base):
    """
    Local account that attendance records can be linked to.

    Emails are stored lower-cased and trimmed so the directory lookup can use
    plain equality.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(254), nullable=False, unique=True, index=True)
    full_name = Column(String(255), nullable=False, default="")

    def __repr__(self) -> str:
        return f"<LocalUser id={self.id} email={self.email}>"
