# meetings_attendance/adapters/zoom.py
from __future__ import annotations

import logging
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
from meetings_attendance.core.errors import AuthenticationError, FormatError
from meetings_attendance.schemas.meeting_session import Platform

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ZoomCredentials:
    client_id: Optional[str]
    client_secret: Optional[str]
    account_id: Optional[str]


class ZoomAdapter(PlatformAdapter):
    """
    Zoom attendance via the meeting participants report
    (server-to-server OAuth, `account_credentials` grant).

    Zoom reports durations in minutes; they are normalized to seconds.
    """

    name = Platform.ZOOM.value

    token_url = "https://zoom.us/oauth/token"
    api_base_url = "https://api.zoom.us/v2"

    def __init__(
        self,
        session: Any,
        credentials: ZoomCredentials,
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

    def validate_configuration(self) -> None:
        self._require(
            client_id=self.credentials.client_id,
            client_secret=self.credentials.client_secret,
            account_id=self.credentials.account_id,
        )
        self._require(meeting_id=self.session.meeting_id)

    async def fetch_attendance_data(
        self,
        start_time: int = 0,
        end_time: int = 0,
    ) -> List[Dict[str, Any]]:
        self.validate_configuration()

        access_token = await self._request_token(
            self.token_url,
            data={
                "grant_type": "account_credentials",
                "account_id": self.credentials.account_id,
            },
            auth=(self.credentials.client_id, self.credentials.client_secret),
        )

        url = f"{self.api_base_url}/report/meetings/{self.session.meeting_id}/participants"
        payload = await self._get_json(url, access_token)

        if not isinstance(payload, dict):
            raise FormatError("Unexpected Zoom attendance report format.")

        # Zoom error bodies look like {"code": 124, "message": "Invalid access token."}
        code = payload.get("code")
        if code is not None and str(code) != "200":
            raise AuthenticationError(
                f"Zoom rejected the attendance request: {payload.get('message', code)}"
            )

        participants = payload.get("participants")
        if not isinstance(participants, list):
            raise FormatError("Unexpected Zoom attendance report format.")

        logger.debug("Fetched %d Zoom participants", len(participants))
        return [p for p in participants if isinstance(p, dict)]

    def extract_email(self, participant: RawParticipant) -> Optional[str]:
        return normalize_email(participant.get("user_email"))

    def extract_platform_user_id(self, participant: RawParticipant) -> str:
        value = participant.get("id")
        return str(value).strip() if value else ""

    def extract_duration(self, participant: RawParticipant) -> int:
        return coerce_int(participant.get("duration")) * 60

    def extract_times(self, participant: RawParticipant) -> Tuple[int, int]:
        return (
            parse_iso_timestamp(participant.get("join_time")),
            parse_iso_timestamp(participant.get("leave_time")),
        )

    def extract_role(self, participant: RawParticipant) -> str:
        # The participants report carries no role information.
        return DEFAULT_ROLE
