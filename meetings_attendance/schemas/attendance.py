# meetings_attendance/schemas/attendance.py
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class NormalizedParticipant(BaseModel):
    """
    Platform-independent view of one attendance-report participant.

    Built by a PlatformAdapter from a raw API record; never persisted as-is.
    """

    email: str | None = Field(
        None,
        description="Lower-cased, trimmed email, or None when the platform has none.",
        examples=["alice@example.edu"],
    )
    platform_user_id: str = Field(
        "",
        description="Platform identifier of the participant. Empty means unusable.",
        examples=["8b081ef6-4792-4def-b2c9-c363a1bf41d5"],
    )
    duration_seconds: int = Field(0, ge=0, examples=[2700])
    join_time: int = Field(0, description="Unix seconds, 0 = unknown.")
    leave_time: int = Field(0, description="Unix seconds, 0 = unknown.")
    role: str = Field("Attendee", examples=["Presenter"])


class SyncStats(BaseModel):
    """
    Counters produced by one AttendanceSynchronizer.sync() call.

    processed == matched + unassigned + number of skipped participants.
    """

    processed: int = Field(0, description="Participants returned by the platform.")
    matched: int = Field(0, description="Participants linked to a local user by email.")
    unassigned: int = Field(0, description="Participants stored without a local user.")
    errors: list[str] = Field(
        default_factory=list,
        description="Human-readable errors, in the order they happened.",
    )
    notes: list[str] = Field(
        default_factory=list,
        description="Informational messages that are not errors.",
    )


class SyncErrorResponse(BaseModel):
    """
    Error body returned when a sync aborts; still carries the partial counters.
    """

    detail: str
    stats: SyncStats


class AttendanceRecordRead(BaseModel):
    """
    Public representation of an AttendanceRecord row.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., examples=[1])
    session_id: int = Field(..., examples=[7])
    user_id: int = Field(..., description="Local user id, 0 when unassigned.", examples=[0])
    platform_user_id: str
    attendance_duration: int = Field(..., description="Seconds attended.", examples=[2700])
    actual_attendance: float = Field(..., description="Attendance percentage.", examples=[75.0])
    completion_met: bool
    role: str
    manually_assigned: bool


class ManualAssignRequest(BaseModel):
    user_id: int = Field(..., gt=0, description="Local user to link the record to.", examples=[12])


class CompletionResult(BaseModel):
    """
    Outcome of evaluating attendance-based completion for one user.
    """

    session_id: int
    user_id: int
    has_record: bool = Field(..., description="False when the user never attended.")
    completion_enabled: bool = Field(
        True, description="False when attendance-based completion is switched off for the session."
    )
    attendance_duration: int = 0
    percentage: float = 0.0
    required_attendance: int = 0
    completion_met: bool = False


class AttendanceReportEntry(BaseModel):
    """
    One row of the session attendance report.
    """

    record_id: int
    user_id: int
    user_email: str | None = None
    user_full_name: str | None = None
    platform_user_id: str
    attendance_duration: int
    actual_attendance: float
    completion_met: bool
    role: str
    manually_assigned: bool
    join_time: int = 0
    leave_time: int = 0


class AttendanceReportSummary(BaseModel):
    session_id: int
    platform: str
    status: str
    total_records: int
    assigned_count: int
    unassigned_count: int
    completion_met_count: int
    entries: list[AttendanceReportEntry]
