# meetings_attendance/core/errors.py
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from meetings_attendance.schemas.attendance import SyncStats


class AttendanceError(RuntimeError):
    """
    Base class for every failure raised by the reconciliation core.

    When a sync aborts, the synchronizer attaches the statistics gathered so
    far to `stats` before re-raising, so callers can still show them.
    """

    def __init__(self, message: str, *, stats: Optional["SyncStats"] = None) -> None:
        super().__init__(message)
        self.message = message
        self.stats = stats


class ConfigurationError(AttendanceError):
    """Required platform credentials or meeting identifiers are missing."""


class AuthenticationError(AttendanceError):
    """The OAuth token exchange did not yield an access token."""


class FormatError(AttendanceError):
    """The platform API answered with an unexpected payload shape."""


class InvalidDataError(AttendanceError):
    """Unsupported platform or a meeting id that cannot be resolved."""


class NotFoundError(AttendanceError):
    """A referenced attendance record, session or user does not exist."""


class ParticipantValidationError(AttendanceError):
    """
    A single participant record is unusable (e.g. no platform user id).

    Recorded in the sync statistics and skipped; never aborts the batch.
    """
