# meetings_attendance/api/routes/attendance.py
import logging
from http import HTTPStatus

import httpx
from fastapi import APIRouter, Depends, HTTPException, Path, Query
from fastapi.responses import JSONResponse

from meetings_attendance.adapters.factory import create_adapter
from meetings_attendance.api.dependencies.operator_auth import verify_operator_api_key
from meetings_attendance.api.dependencies.services import (
    get_audit_sink,
    get_http_client,
    get_store,
    get_user_directory,
)
from meetings_attendance.core.config import Settings, get_settings
from meetings_attendance.core.errors import (
    AttendanceError,
    AuthenticationError,
    ConfigurationError,
    FormatError,
    InvalidDataError,
    NotFoundError,
)
from meetings_attendance.models.meeting_session import MeetingSession
from meetings_attendance.schemas.attendance import (
    AttendanceRecordRead,
    AttendanceReportEntry,
    AttendanceReportSummary,
    CompletionResult,
    ManualAssignRequest,
    SyncErrorResponse,
    SyncStats,
)
from meetings_attendance.schemas.meeting_session import SessionStatus
from meetings_attendance.services.attendance_store import AttendanceStore
from meetings_attendance.services.attendance_sync import AttendanceSynchronizer
from meetings_attendance.services.audit import AuditSink
from meetings_attendance.services.completion import (
    evaluate_completion,
    evaluate_session_completion,
)
from meetings_attendance.services.user_directory import SqlUserDirectory

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Attendance"])

ERROR_STATUS = {
    ConfigurationError: HTTPStatus.INTERNAL_SERVER_ERROR,
    AuthenticationError: HTTPStatus.BAD_GATEWAY,
    FormatError: HTTPStatus.BAD_GATEWAY,
    InvalidDataError: HTTPStatus.BAD_REQUEST,
    NotFoundError: HTTPStatus.NOT_FOUND,
}


def status_for(exc: AttendanceError) -> HTTPStatus:
    for error_type, status_code in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return status_code
    return HTTPStatus.INTERNAL_SERVER_ERROR


async def _get_session_or_404(store: AttendanceStore, session_id: int) -> MeetingSession:
    session = await store.get_session(session_id)
    if session is None:
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND,
            detail=f"Session with id {session_id} not found.",
        )
    return session


@router.post(
    "/sessions/{session_id}/sync",
    response_model=SyncStats,
    dependencies=[Depends(verify_operator_api_key)],
    summary="Fetch the platform attendance report and reconcile it",
    description=(
        "Downloads the Teams / Zoom attendance report for the session, matches "
        "each participant to a local user by exact email and creates or updates "
        "their attendance record. Manual assignments are never reset to "
        "unassigned.\n\n"
        "On failure the response body still carries the statistics gathered "
        "before the abort."
    ),
    responses={
        400: {"model": SyncErrorResponse, "description": "Unsupported platform or meeting id."},
        409: {"description": "The attendance register is closed."},
        500: {"model": SyncErrorResponse, "description": "Platform credentials missing."},
        502: {"model": SyncErrorResponse, "description": "Platform API rejected the request."},
    },
)
async def sync_session_attendance(
    session_id: int = Path(..., ge=1),
    start_time: int | None = Query(
        default=None,
        ge=0,
        description="Window start (unix seconds). Defaults to the session start.",
    ),
    end_time: int | None = Query(
        default=None,
        ge=0,
        description="Window end (unix seconds). Defaults to the session end.",
    ),
    store: AttendanceStore = Depends(get_store),
    directory: SqlUserDirectory = Depends(get_user_directory),
    audit: AuditSink = Depends(get_audit_sink),
    http_client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
):
    session = await _get_session_or_404(store, session_id)
    if session.status == SessionStatus.CLOSED.value:
        raise HTTPException(
            status_code=HTTPStatus.CONFLICT,
            detail="The attendance register for this session is closed.",
        )

    synchronizer: AttendanceSynchronizer | None = None
    try:
        adapter = create_adapter(session, settings=settings, http_client=http_client)
        synchronizer = AttendanceSynchronizer(session, adapter, store, directory, audit)
        return await synchronizer.sync(
            start_time if start_time is not None else session.start_datetime,
            end_time if end_time is not None else session.end_datetime,
        )
    except AttendanceError as exc:
        if exc.stats is not None:
            stats = exc.stats
        elif synchronizer is not None:
            stats = synchronizer.stats
        else:
            stats = SyncStats(errors=[exc.message])
        logger.warning("Attendance sync for session %s failed: %s", session_id, exc.message)
        body = SyncErrorResponse(detail=exc.message, stats=stats)
        return JSONResponse(status_code=status_for(exc), content=body.model_dump())


@router.get(
    "/sessions/{session_id}/unassigned",
    response_model=list[AttendanceRecordRead],
    summary="List attendance records without a local user",
)
async def list_unassigned_records(
    session_id: int = Path(..., ge=1),
    store: AttendanceStore = Depends(get_store),
    directory: SqlUserDirectory = Depends(get_user_directory),
) -> list[AttendanceRecordRead]:
    session = await _get_session_or_404(store, session_id)
    synchronizer = AttendanceSynchronizer(session, None, store, directory)
    records = await synchronizer.list_unassigned()
    return [AttendanceRecordRead.model_validate(r) for r in records]


@router.post(
    "/attendance/{record_id}/assign",
    response_model=AttendanceRecordRead,
    dependencies=[Depends(verify_operator_api_key)],
    summary="Manually link an attendance record to a local user",
    description=(
        "Assigns the participant to `user_id` and marks the record as manually "
        "assigned, so later syncs without an email match keep this user."
    ),
)
async def assign_record(
    payload: ManualAssignRequest,
    record_id: int = Path(..., ge=1),
    store: AttendanceStore = Depends(get_store),
    directory: SqlUserDirectory = Depends(get_user_directory),
) -> AttendanceRecordRead:
    record = await store.get_record(record_id)
    if record is None:
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND,
            detail=f"Attendance record {record_id} not found.",
        )
    if await directory.get_user(payload.user_id) is None:
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND,
            detail=f"User with id {payload.user_id} not found.",
        )

    session = await _get_session_or_404(store, record.session_id)
    synchronizer = AttendanceSynchronizer(session, None, store, directory)
    try:
        updated = await synchronizer.manual_assign(record_id, payload.user_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=HTTPStatus.NOT_FOUND, detail=exc.message) from exc
    return AttendanceRecordRead.model_validate(updated)


@router.post(
    "/sessions/{session_id}/completion/{user_id}",
    response_model=CompletionResult,
    dependencies=[Depends(verify_operator_api_key)],
    summary="Evaluate attendance-based completion for one user",
)
async def check_user_completion(
    session_id: int = Path(..., ge=1),
    user_id: int = Path(..., ge=1),
    store: AttendanceStore = Depends(get_store),
    audit: AuditSink = Depends(get_audit_sink),
) -> CompletionResult:
    session = await _get_session_or_404(store, session_id)
    return await evaluate_completion(store, session, user_id, audit)


@router.post(
    "/sessions/{session_id}/completion",
    response_model=list[CompletionResult],
    dependencies=[Depends(verify_operator_api_key)],
    summary="Evaluate attendance-based completion for every assigned user",
)
async def check_session_completion(
    session_id: int = Path(..., ge=1),
    store: AttendanceStore = Depends(get_store),
    audit: AuditSink = Depends(get_audit_sink),
) -> list[CompletionResult]:
    session = await _get_session_or_404(store, session_id)
    return await evaluate_session_completion(store, session, audit)


@router.get(
    "/sessions/{session_id}/report",
    response_model=AttendanceReportSummary,
    summary="Attendance report for a session",
    description=(
        "Every attendance record of the session with its linked user, "
        "duration, completion percentage and first-seen join/leave times."
    ),
)
async def session_report(
    session_id: int = Path(..., ge=1),
    store: AttendanceStore = Depends(get_store),
) -> AttendanceReportSummary:
    session = await _get_session_or_404(store, session_id)
    rows = await store.list_report_rows(session_id)

    entries: list[AttendanceReportEntry] = []
    for record, report, user in rows:
        entries.append(
            AttendanceReportEntry(
                record_id=record.id,
                user_id=record.user_id,
                user_email=user.email if user else None,
                user_full_name=user.full_name if user else None,
                platform_user_id=record.platform_user_id,
                attendance_duration=record.attendance_duration,
                actual_attendance=record.actual_attendance,
                completion_met=record.completion_met,
                role=record.role,
                manually_assigned=record.manually_assigned,
                join_time=report.join_time if report else 0,
                leave_time=report.leave_time if report else 0,
            )
        )

    return AttendanceReportSummary(
        session_id=session.id,
        platform=session.platform,
        status=session.status,
        total_records=len(entries),
        assigned_count=sum(1 for e in entries if e.user_id != 0),
        unassigned_count=sum(1 for e in entries if e.user_id == 0),
        completion_met_count=sum(1 for e in entries if e.completion_met),
        entries=entries,
    )
