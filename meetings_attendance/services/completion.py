# meetings_attendance/services/completion.py
from __future__ import annotations

import logging
from typing import Any, List, Optional

from meetings_attendance.schemas.attendance import CompletionResult
from meetings_attendance.services.attendance_store import AttendanceStore
from meetings_attendance.services.audit import AuditSink

logger = logging.getLogger(__name__)


def attendance_percentage(duration_seconds: int, expected_seconds: int) -> float:
    """
    Attended share of the expected duration, in percent, rounded to 2 places.
    Returns 0.0 when no expected duration is configured.
    """
    if expected_seconds <= 0:
        return 0.0
    return round(100.0 * duration_seconds / expected_seconds, 2)


async def evaluate_completion(
    store: AttendanceStore,
    session: Any,
    user_id: int,
    audit: Optional[AuditSink] = None,
) -> CompletionResult:
    """
    Recompute attendance-based completion for one user of a session.

    Rules
    -----
    - No attendance record for the user        => not met, nothing stored.
    - expected_duration <= 0                   => not met (no division by zero).
    - completion_attendance switched off       => not met; the percentage is
      still stored for reporting.
    - Otherwise percentage = 100 * duration / expected (2 decimals) and the
      requirement is met iff percentage >= required_attendance.

    The percentage and flag are always recomputed and written back. A
    `completion_updated` audit event is emitted when the flag turns on.
    """
    session_id = session.id
    required = int(session.required_attendance or 0)
    expected = int(session.expected_duration or 0)

    record = await store.get_record_for_user(session_id, user_id)
    if record is None:
        return CompletionResult(
            session_id=session_id,
            user_id=user_id,
            has_record=False,
            completion_enabled=bool(session.completion_attendance),
            required_attendance=required,
        )

    was_met = bool(record.completion_met)
    percentage = attendance_percentage(record.attendance_duration, expected)
    enabled = bool(session.completion_attendance)
    completion_met = enabled and expected > 0 and percentage >= required

    record.actual_attendance = percentage
    record.completion_met = completion_met
    await store.save(record)

    if completion_met and not was_met and audit is not None:
        try:
            audit.emit(
                "completion_updated",
                {
                    "session_id": session_id,
                    "user_id": user_id,
                    "attendance_duration": record.attendance_duration,
                    "actual_attendance": percentage,
                },
            )
        except Exception:
            logger.exception("Failed to emit completion_updated audit event")

    return CompletionResult(
        session_id=session_id,
        user_id=user_id,
        has_record=True,
        completion_enabled=enabled,
        attendance_duration=record.attendance_duration,
        percentage=percentage,
        required_attendance=required,
        completion_met=completion_met,
    )


async def evaluate_session_completion(
    store: AttendanceStore,
    session: Any,
    audit: Optional[AuditSink] = None,
) -> List[CompletionResult]:
    """
    Run `evaluate_completion` for every user with an assigned record.
    """
    user_ids = await store.list_assigned_user_ids(session.id)
    results = []
    for user_id in user_ids:
        results.append(await evaluate_completion(store, session, user_id, audit))
    return results
