# meetings_attendance/api/routes/sessions.py
from http import HTTPStatus

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from meetings_attendance.adapters.factory import get_supported_platforms, is_platform_supported
from meetings_attendance.db.session import get_db
from meetings_attendance.models.meeting_session import MeetingSession
from meetings_attendance.schemas.meeting_session import (
    MeetingSessionCreate,
    MeetingSessionRead,
    MeetingSessionUpdate,
    SessionStatus,
)

router = APIRouter(prefix="/sessions", tags=["Sessions"])


def _check_platform(platform: str) -> str:
    if not is_platform_supported(platform):
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail=(
                f"Unsupported platform '{platform}'. "
                f"Supported: {', '.join(get_supported_platforms())}."
            ),
        )
    return platform.strip().lower()


async def _get_session_or_404(db: AsyncSession, session_id: int) -> MeetingSession:
    session = await db.get(MeetingSession, session_id)
    if session is None:
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND,
            detail=f"Session with id {session_id} not found.",
        )
    return session


@router.post(
    "",
    response_model=MeetingSessionRead,
    status_code=HTTPStatus.CREATED,
    summary="Create a tracked meeting session",
    description=(
        "Register a Teams or Zoom meeting whose attendance should be tracked.\n\n"
        "`name`, `platform`, `meeting_url` and `organizer_email` are required. "
        "Zoom sessions also need `meeting_id`; Teams sessions can derive it "
        "from a `meetup-join` URL. New sessions start with an open register."
    ),
)
async def create_session(
    payload: MeetingSessionCreate,
    db: AsyncSession = Depends(get_db),
) -> MeetingSessionRead:
    data = payload.model_dump()
    data["platform"] = _check_platform(payload.platform)

    session = MeetingSession(**data, status=SessionStatus.OPEN.value)
    db.add(session)
    await db.commit()
    await db.refresh(session)

    return MeetingSessionRead.model_validate(session)


@router.get(
    "",
    response_model=list[MeetingSessionRead],
    summary="List tracked meeting sessions",
)
async def list_sessions(
    status: SessionStatus | None = Query(
        default=None,
        description="Only return sessions with this register status.",
    ),
    course_id: int | None = Query(default=None, description="Only sessions of this course."),
    db: AsyncSession = Depends(get_db),
) -> list[MeetingSessionRead]:
    stmt = select(MeetingSession)
    if status is not None:
        stmt = stmt.where(MeetingSession.status == status.value)
    if course_id is not None:
        stmt = stmt.where(MeetingSession.course_id == course_id)
    stmt = stmt.order_by(MeetingSession.id)

    result = await db.execute(stmt)
    return [MeetingSessionRead.model_validate(s) for s in result.scalars().all()]


@router.get(
    "/{session_id}",
    response_model=MeetingSessionRead,
    summary="Get a session by ID",
)
async def get_session(
    session_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
) -> MeetingSessionRead:
    session = await _get_session_or_404(db, session_id)
    return MeetingSessionRead.model_validate(session)


@router.patch(
    "/{session_id}",
    response_model=MeetingSessionRead,
    summary="Update a session",
    description="Partially update a session. Only provided fields are changed.",
)
async def update_session(
    payload: MeetingSessionUpdate,
    session_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
) -> MeetingSessionRead:
    session = await _get_session_or_404(db, session_id)

    update_data = payload.model_dump(exclude_unset=True)
    for field in ("name", "platform", "meeting_url", "organizer_email"):
        if field in update_data and update_data[field] is None:
            raise HTTPException(
                status_code=HTTPStatus.UNPROCESSABLE_ENTITY,
                detail=f"Field '{field}' is required and cannot be cleared.",
            )
    if "platform" in update_data:
        update_data["platform"] = _check_platform(update_data["platform"])

    for field, value in update_data.items():
        setattr(session, field, value)

    await db.commit()
    await db.refresh(session)
    return MeetingSessionRead.model_validate(session)


@router.delete(
    "/{session_id}",
    status_code=HTTPStatus.NO_CONTENT,
    summary="Delete a session and all of its attendance data",
)
async def delete_session(
    session_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
) -> None:
    await _get_session_or_404(db, session_id)
    # Records and timing reports go with it (ON DELETE CASCADE).
    await db.execute(delete(MeetingSession).where(MeetingSession.id == session_id))
    await db.commit()


async def _set_status(db: AsyncSession, session_id: int, status: SessionStatus) -> MeetingSessionRead:
    session = await _get_session_or_404(db, session_id)
    session.status = status.value
    await db.commit()
    await db.refresh(session)
    return MeetingSessionRead.model_validate(session)


@router.post(
    "/{session_id}/close",
    response_model=MeetingSessionRead,
    summary="Close the attendance register",
    description="A closed register can no longer be synced until it is reopened.",
)
async def close_register(
    session_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
) -> MeetingSessionRead:
    return await _set_status(db, session_id, SessionStatus.CLOSED)


@router.post(
    "/{session_id}/reopen",
    response_model=MeetingSessionRead,
    summary="Reopen the attendance register",
)
async def reopen_register(
    session_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_db),
) -> MeetingSessionRead:
    return await _set_status(db, session_id, SessionStatus.OPEN)
