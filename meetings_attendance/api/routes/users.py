# meetings_attendance/api/routes/users.py
from http import HTTPStatus

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from meetings_attendance.db.session import get_db
from meetings_attendance.models.user import LocalUser
from meetings_attendance.schemas.user import LocalUserCreate, LocalUserRead

router = APIRouter(prefix="/users", tags=["Users"])


@router.post(
    "",
    response_model=LocalUserRead,
    status_code=HTTPStatus.CREATED,
    summary="Register a local user",
    description=(
        "Add an account to the local user directory. Attendance participants "
        "are matched against these emails (case-insensitive, exact)."
    ),
)
async def create_user(
    payload: LocalUserCreate,
    db: AsyncSession = Depends(get_db),
) -> LocalUserRead:
    existing = await db.execute(select(LocalUser).where(LocalUser.email == payload.email))
    if existing.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail=f"User with email '{payload.email}' already exists.",
        )

    user = LocalUser(email=payload.email, full_name=payload.full_name)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return LocalUserRead.model_validate(user)


@router.get(
    "",
    response_model=list[LocalUserRead],
    summary="List local users",
)
async def list_users(db: AsyncSession = Depends(get_db)) -> list[LocalUserRead]:
    result = await db.execute(select(LocalUser).order_by(LocalUser.id))
    return [LocalUserRead.model_validate(u) for u in result.scalars().all()]
