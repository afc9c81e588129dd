# meetings_attendance/services/attendance_sync.py
from __future__ import annotations

import logging
import time
from typing import Any, Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from meetings_attendance.adapters.base import PlatformAdapter
from meetings_attendance.core.errors import (
    AttendanceError,
    ConfigurationError,
    NotFoundError,
    ParticipantValidationError,
)
from meetings_attendance.models.attendance import AttendanceRecord, AttendanceReport
from meetings_attendance.schemas.attendance import NormalizedParticipant, SyncStats
from meetings_attendance.services.attendance_store import AttendanceStore
from meetings_attendance.services.audit import AuditSink
from meetings_attendance.services.locks import KeyedLock, record_locks, session_locks
from meetings_attendance.services.user_directory import UserDirectory

logger = logging.getLogger(__name__)

NO_PARTICIPANTS_NOTE = "No participants found in the attendance report."
MISSING_PLATFORM_USER_ID = "Missing platform user ID for participant"


class AttendanceSynchronizer:
    """
    Reconciles a platform attendance report with local attendance records
    for one meeting session.

    Flow of `sync()`
    ----------------
    1) Ask the adapter for the raw participant list.
    2) For every participant: normalize, look up a local user by exact email,
       then upsert the AttendanceRecord keyed by (session, platform_user_id).
    3) Emit one `attendance_sync` audit event with the counters.

    Rules
    -----
    - A participant without a platform user id is reported in
      `stats.errors` and skipped; it never aborts the batch.
    - Fetch-level failures are appended to `stats.errors` and re-raised with
      the partial stats attached.
    - On update, duration and role are always refreshed. The stored user is
      replaced only by a non-null match, so a manual assignment is never
      reset to "unassigned" by a later sync.
    - The timing snapshot (AttendanceReport) is written once, on insert.

    `adapter` may be None for callers that only review or assign records;
    `sync()` then raises ConfigurationError.
    """

    def __init__(
        self,
        session: Any,
        adapter: Optional[PlatformAdapter],
        store: AttendanceStore,
        directory: UserDirectory,
        audit: Optional[AuditSink] = None,
        *,
        upsert_locks: KeyedLock = session_locks,
        assign_locks: KeyedLock = record_locks,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.session = session
        self.adapter = adapter
        self.store = store
        self.directory = directory
        self.audit = audit
        self._upsert_locks = upsert_locks
        self._assign_locks = assign_locks
        self._clock = clock

        # Read once: ORM attributes may be expired after a failed write.
        self._session_id: int = session.id
        self._platform: str = (session.platform or "").lower()

        self._stats = SyncStats()

    @property
    def stats(self) -> SyncStats:
        return self._stats

    async def sync(self, start_time: int = 0, end_time: int = 0) -> SyncStats:
        """
        Fetch the attendance report and merge it into the stored records.

        Returns the statistics for this call (also available via `stats`).
        """
        self._stats = SyncStats()
        stats = self._stats

        if self.adapter is None:
            raise ConfigurationError(
                "No platform adapter configured for this synchronizer."
            )

        logger.info(
            "Starting %s attendance sync for session %s", self._platform, self._session_id
        )

        try:
            participants = await self.adapter.fetch_attendance_data(start_time, end_time)
        except AttendanceError as exc:
            stats.errors.append(exc.message)
            exc.stats = stats
            logger.warning(
                "Attendance fetch failed for session %s: %s", self._session_id, exc
            )
            raise
        except Exception as exc:
            stats.errors.append(str(exc))
            logger.exception("Unexpected failure fetching attendance for session %s", self._session_id)
            raise

        if not participants:
            stats.notes.append(NO_PARTICIPANTS_NOTE)
            logger.info("Session %s: %s", self._session_id, NO_PARTICIPANTS_NOTE)
            return stats

        for raw in participants:
            await self._process_participant(raw)

        self._log_sync_event()

        logger.info(
            "Finished attendance sync for session %s: processed=%d matched=%d "
            "unassigned=%d errors=%d",
            self._session_id,
            stats.processed,
            stats.matched,
            stats.unassigned,
            len(stats.errors),
        )
        return stats

    async def _process_participant(self, raw: Any) -> None:
        stats = self._stats
        stats.processed += 1

        try:
            participant = self.adapter.normalize(raw)
            if not participant.platform_user_id:
                raise ParticipantValidationError(MISSING_PLATFORM_USER_ID)

            user_id = await self.directory.find_user_by_email(participant.email)
            if user_id is None:
                stats.unassigned += 1
            else:
                stats.matched += 1

            await self._upsert(participant, user_id)
        except ParticipantValidationError as exc:
            stats.errors.append(exc.message)
        except (AttendanceError, SQLAlchemyError, ValueError) as exc:
            stats.errors.append(f"Error processing participant: {exc}")
            logger.warning(
                "Failed to process participant in session %s: %s", self._session_id, exc
            )

    async def _upsert(
        self,
        participant: NormalizedParticipant,
        user_id: Optional[int],
    ) -> AttendanceRecord:
        # The existence check and the write must not interleave with another
        # sync of the same session.
        async with self._upsert_locks.hold(self._session_id):
            existing = await self.store.get_record_by_key(
                self._session_id, participant.platform_user_id
            )

            if existing is None:
                record = AttendanceRecord(
                    session_id=self._session_id,
                    platform_user_id=participant.platform_user_id,
                    attendance_duration=participant.duration_seconds,
                    actual_attendance=0.0,
                    completion_met=False,
                    role=participant.role,
                    manually_assigned=False,
                )
                record.assigned_user_id = user_id
                report = AttendanceReport(
                    report_id=f"{participant.platform_user_id}_{int(self._clock())}",
                    join_time=participant.join_time,
                    leave_time=participant.leave_time,
                    attendance_duration=participant.duration_seconds,
                )
                return await self.store.insert_record(record, report)

            if user_id is not None and user_id != existing.assigned_user_id:
                if existing.manually_assigned:
                    logger.warning(
                        "Email match for %s replaces manual assignment %s -> %s "
                        "(session %s)",
                        participant.platform_user_id,
                        existing.user_id,
                        user_id,
                        self._session_id,
                    )
                    existing.manually_assigned = False
                existing.assigned_user_id = user_id

            existing.attendance_duration = participant.duration_seconds
            existing.role = participant.role
            return await self.store.save(existing)

    def _log_sync_event(self) -> None:
        if self.audit is None:
            return

        payload = {
            "session_id": self._session_id,
            "platform": self._platform,
            "processed": self._stats.processed,
            "matched": self._stats.matched,
            "unassigned": self._stats.unassigned,
        }
        try:
            self.audit.emit("attendance_sync", payload)
        except Exception:
            # Informational only; a broken sink must not fail the sync.
            logger.exception("Failed to emit attendance_sync audit event")

    async def list_unassigned(self, session_id: Optional[int] = None) -> List[AttendanceRecord]:
        """
        Records of the session (default: the bound one) with no local user.
        """
        return await self.store.list_unassigned(session_id or self._session_id)

    async def manual_assign(self, record_id: int, user_id: int) -> AttendanceRecord:
        """
        Link a record to a local user and protect the link from being reset
        by later syncs. Re-assigning the same user is a no-op.

        Raises NotFoundError when the record does not exist in this session.
        """
        async with self._assign_locks.hold(record_id):
            record = await self.store.get_record(record_id)
            if record is None or record.session_id != self._session_id:
                raise NotFoundError(f"Attendance record {record_id} not found.")

            if record.manually_assigned and record.user_id == user_id:
                return record

            record.assigned_user_id = user_id
            record.manually_assigned = True
            logger.info(
                "Record %s in session %s manually assigned to user %s",
                record_id,
                self._session_id,
                user_id,
            )
            return await self.store.save(record)
