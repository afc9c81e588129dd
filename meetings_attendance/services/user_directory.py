# meetings_attendance/services/user_directory.py
from __future__ import annotations

from typing import Optional, Protocol

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from meetings_attendance.models.user import LocalUser


class UserDirectory(Protocol):
    async def find_user_by_email(self, email: Optional[str]) -> Optional[int]:
        ...


class SqlUserDirectory:
    """
    Exact email lookup against the local `users` table.

    Matching is case-insensitive and ignores surrounding whitespace; there is
    no fuzzy or domain-level matching. An empty email never matches.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def find_user_by_email(self, email: Optional[str]) -> Optional[int]:
        if not email:
            return None

        email_lower = email.strip().lower()
        if not email_lower:
            return None

        stmt = (
            select(LocalUser.id)
            .where(func.lower(LocalUser.email) == email_lower)
            .order_by(LocalUser.id)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_user(self, user_id: int) -> Optional[LocalUser]:
        return await self.db.get(LocalUser, user_id)
