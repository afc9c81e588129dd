# meetings_attendance/schemas/meeting_session.py
from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Platform(str, Enum):
    """
    Closed set of meeting platforms with an attendance adapter.
    """

    TEAMS = "teams"
    ZOOM = "zoom"


class SessionStatus(str, Enum):
    """
    Lifecycle of a session's attendance register.
    """

    OPEN = "open"
    CLOSED = "closed"


# --------------------------------------------------------------------------
# Base schema shared by create/read
# --------------------------------------------------------------------------

class MeetingSessionBase(BaseModel):
    """
    Shared fields used by MeetingSessionCreate and MeetingSessionRead.
    """

    name: str = Field(
        ...,
        min_length=1,
        description="Human-readable name of the tracked meeting.",
        examples=["Week 3 live lecture"],
    )
    course_id: int | None = Field(
        default=None,
        description="Host course the session belongs to (if any).",
        examples=[42],
    )
    platform: str = Field(
        ...,
        min_length=1,
        description="Meeting platform: 'teams' or 'zoom'.",
        examples=["teams"],
    )
    meeting_url: str = Field(
        ...,
        min_length=1,
        description="Join URL of the meeting.",
        examples=["https://teams.microsoft.com/l/meetup-join/19%3ameeting_abc/0"],
    )
    meeting_id: str = Field(
        default="",
        description=(
            "Explicit platform meeting id. Required for Zoom; for Teams it is "
            "parsed from the join URL when omitted."
        ),
        examples=["85746065432"],
    )
    organizer_email: str = Field(
        ...,
        min_length=1,
        description="Email of the meeting organizer.",
        examples=["organizer@example.edu"],
    )
    expected_duration: int = Field(
        default=0,
        ge=0,
        description="Expected meeting length in seconds.",
        examples=[3600],
    )
    required_attendance: int = Field(
        default=75,
        ge=0,
        le=100,
        description="Attendance percentage a user needs to complete the activity.",
        examples=[75],
    )
    completion_attendance: bool = Field(
        default=False,
        description="Whether attendance-based completion is enabled.",
    )
    start_datetime: int = Field(
        default=0,
        ge=0,
        description="Scheduled start (unix seconds, 0 = unset).",
    )
    end_datetime: int = Field(
        default=0,
        ge=0,
        description="Scheduled end (unix seconds, 0 = unset).",
    )


class MeetingSessionCreate(MeetingSessionBase):
    """
    Schema for creating a new session. New sessions always start 'open'.
    """
    pass


class MeetingSessionUpdate(BaseModel):
    """
    Schema for updating a session.
    All fields are optional; only provided fields are updated, but the
    required fields cannot be blanked.
    """

    name: str | None = Field(default=None, min_length=1)
    course_id: int | None = Field(default=None)
    platform: str | None = Field(default=None, min_length=1)
    meeting_url: str | None = Field(default=None, min_length=1)
    meeting_id: str | None = Field(default=None)
    organizer_email: str | None = Field(default=None, min_length=1)
    expected_duration: int | None = Field(default=None, ge=0)
    required_attendance: int | None = Field(default=None, ge=0, le=100)
    completion_attendance: bool | None = Field(default=None)
    start_datetime: int | None = Field(default=None, ge=0)
    end_datetime: int | None = Field(default=None, ge=0)


class MeetingSessionRead(MeetingSessionBase):
    """
    Response schema for reading a session, including DB-generated fields.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Auto-incremented session ID.", examples=[7])
    status: SessionStatus = Field(..., description="Register status.", examples=["open"])
    created_at: datetime | None = Field(None)
    updated_at: datetime | None = Field(None)
