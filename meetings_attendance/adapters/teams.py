# meetings_attendance/adapters/teams.py
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import httpx

from meetings_attendance.adapters.base import (
    DEFAULT_ROLE,
    PlatformAdapter,
    RawParticipant,
    coerce_int,
    normalize_email,
    parse_iso_timestamp,
)
from meetings_attendance.core.errors import (
    ConfigurationError,
    FormatError,
    InvalidDataError,
)
from meetings_attendance.schemas.meeting_session import Platform

logger = logging.getLogger(__name__)

_MEETUP_JOIN_RE = re.compile(r"meetup-join/([^/]+)")


@dataclass(frozen=True)
class TeamsCredentials:
    tenant_id: Optional[str]
    client_id: Optional[str]
    client_secret: Optional[str]


class TeamsAdapter(PlatformAdapter):
    """
    Microsoft Teams attendance via Microsoft Graph (client-credentials flow).

    Graph returns `{"value": [report, ...]}` where every report carries an
    `attendanceRecords` list; records from all reports are flattened into a
    single participant list. Durations are already in seconds.
    """

    name = Platform.TEAMS.value

    scope = "https://graph.microsoft.com/.default"
    graph_base_url = "https://graph.microsoft.com/v1.0"

    def __init__(
        self,
        session: Any,
        credentials: TeamsCredentials,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout_seconds: float = 15.0,
    ) -> None:
        self.credentials = credentials
        super().__init__(
            session,
            http_client=http_client,
            timeout_seconds=timeout_seconds,
        )

    @property
    def token_url(self) -> str:
        return (
            f"https://login.microsoftonline.com/{self.credentials.tenant_id}"
            "/oauth2/v2.0/token"
        )

    def validate_configuration(self) -> None:
        self._require(
            client_id=self.credentials.client_id,
            client_secret=self.credentials.client_secret,
        )
        self._require(tenant_id=self.credentials.tenant_id)
        if not self.session.meeting_url and not self.session.meeting_id:
            raise ConfigurationError(
                "A Teams session needs either a meeting URL or a meeting id."
            )

    def resolve_meeting_id(self) -> Optional[str]:
        """
        Explicit meeting id wins; otherwise take the `meetup-join/<id>`
        segment of the join URL.
        """
        if self.session.meeting_id:
            return self.session.meeting_id

        if self.session.meeting_url:
            match = _MEETUP_JOIN_RE.search(self.session.meeting_url)
            if match:
                return match.group(1)
        return None

    async def fetch_attendance_data(
        self,
        start_time: int = 0,
        end_time: int = 0,
    ) -> List[Dict[str, Any]]:
        self.validate_configuration()

        access_token = await self._request_token(
            self.token_url,
            data={
                "client_id": self.credentials.client_id,
                "client_secret": self.credentials.client_secret,
                "scope": self.scope,
                "grant_type": "client_credentials",
            },
        )

        meeting_id = self.resolve_meeting_id()
        if not meeting_id:
            raise InvalidDataError(
                "Unable to determine the Teams meeting id from the session."
            )

        url = f"{self.graph_base_url}/me/onlineMeetings/{meeting_id}/attendanceReports"
        payload = await self._get_json(url, access_token)

        reports = payload.get("value") if isinstance(payload, dict) else None
        if not isinstance(reports, list):
            raise FormatError("Unexpected Teams attendance report format.")

        participants: List[Dict[str, Any]] = []
        for report in reports:
            if not isinstance(report, dict):
                continue
            records = report.get("attendanceRecords")
            if isinstance(records, list):
                participants.extend(rec for rec in records if isinstance(rec, dict))

        logger.debug(
            "Fetched %d Teams attendance records from %d reports",
            len(participants),
            len(reports),
        )
        return participants

    def extract_email(self, participant: RawParticipant) -> Optional[str]:
        return normalize_email(participant.get("emailAddress"))

    def extract_platform_user_id(self, participant: RawParticipant) -> str:
        value = participant.get("id")
        return str(value).strip() if value else ""

    def extract_duration(self, participant: RawParticipant) -> int:
        return coerce_int(participant.get("totalAttendanceInSeconds"))

    def extract_times(self, participant: RawParticipant) -> Tuple[int, int]:
        """
        A participant can have several disjoint intervals; join time is the
        earliest interval start and leave time the latest interval end.
        """
        intervals = participant.get("attendanceIntervals")
        if not isinstance(intervals, list):
            return 0, 0

        joins = []
        leaves = []
        for interval in intervals:
            if not isinstance(interval, dict):
                continue
            joined = parse_iso_timestamp(interval.get("joinDateTime"))
            left = parse_iso_timestamp(interval.get("leaveDateTime"))
            if joined:
                joins.append(joined)
            if left:
                leaves.append(left)

        return (min(joins) if joins else 0, max(leaves) if leaves else 0)

    def extract_role(self, participant: RawParticipant) -> str:
        role = participant.get("role")
        if isinstance(role, str) and role.strip():
            return role.strip().lower().capitalize()
        return DEFAULT_ROLE
