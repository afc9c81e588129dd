# meetings_attendance/adapters/base.py
from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional, Tuple

import httpx

from meetings_attendance.core.errors import (
    AuthenticationError,
    ConfigurationError,
    FormatError,
)
from meetings_attendance.schemas.attendance import NormalizedParticipant

logger = logging.getLogger(__name__)

RawParticipant = Mapping[str, Any]

DEFAULT_ROLE = "Attendee"

# Graph emits 7 fractional digits; fromisoformat before 3.11 accepts only 3 or 6.
_FRACTION_RE = re.compile(r"\.(\d+)")


def _six_digit_fraction(match: "re.Match[str]") -> str:
    return "." + match.group(1)[:6].ljust(6, "0")


def parse_iso_timestamp(value: Any) -> int:
    """
    Parse an ISO-8601 datetime string into UTC unix seconds.

    Naive values are treated as UTC. Returns 0 when the value is missing or
    cannot be parsed.
    """
    if not value or not isinstance(value, str):
        return 0

    try:
        text = _FRACTION_RE.sub(_six_digit_fraction, value.strip().replace("Z", "+00:00"))
        dt = datetime.fromisoformat(text)
    except ValueError:
        return 0

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.astimezone(timezone.utc).timestamp())


def normalize_email(value: Any) -> Optional[str]:
    """
    Lower-case and trim an email; blank or non-string values become None.
    """
    if not isinstance(value, str):
        return None
    value = value.strip().lower()
    return value or None


def coerce_int(value: Any) -> int:
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0


class PlatformAdapter(ABC):
    """
    Bridge between one meeting platform's attendance API and the
    reconciliation core.

    Responsibilities
    ----------------
    - Check that credentials and meeting identifiers are configured.
    - Exchange client credentials for a bearer token and download the raw
      participant list for the bound session.
    - Turn a raw participant into a NormalizedParticipant through pure
      extract_* methods that never raise on missing optional fields.

    Notes
    -----
    - Tokens are fetched fresh for every fetch; nothing is cached.
    - An injected `httpx.AsyncClient` is reused as-is (its timeout applies);
      otherwise a short-lived client is opened per request.
    """

    name: str = ""

    def __init__(
        self,
        session: Any,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout_seconds: float = 15.0,
    ) -> None:
        self.session = session
        self._http_client = http_client
        self._timeout_seconds = timeout_seconds
        self.validate_configuration()

    # ------------------------------------------------------------------
    # Capability interface
    # ------------------------------------------------------------------

    @abstractmethod
    def validate_configuration(self) -> None:
        """Raise ConfigurationError when credentials or identifiers are missing."""

    @abstractmethod
    async def fetch_attendance_data(
        self,
        start_time: int = 0,
        end_time: int = 0,
    ) -> List[Dict[str, Any]]:
        """Return the raw participant records for the bound session."""

    @abstractmethod
    def extract_email(self, participant: RawParticipant) -> Optional[str]:
        ...

    @abstractmethod
    def extract_platform_user_id(self, participant: RawParticipant) -> str:
        ...

    @abstractmethod
    def extract_duration(self, participant: RawParticipant) -> int:
        ...

    @abstractmethod
    def extract_times(self, participant: RawParticipant) -> Tuple[int, int]:
        """Return (join_time, leave_time) in unix seconds, 0 when unknown."""

    @abstractmethod
    def extract_role(self, participant: RawParticipant) -> str:
        ...

    def normalize(self, participant: RawParticipant) -> NormalizedParticipant:
        join_time, leave_time = self.extract_times(participant)
        return NormalizedParticipant(
            email=self.extract_email(participant),
            platform_user_id=self.extract_platform_user_id(participant),
            duration_seconds=self.extract_duration(participant),
            join_time=join_time,
            leave_time=leave_time,
            role=self.extract_role(participant),
        )

    # ------------------------------------------------------------------
    # HTTP helpers shared by the platform implementations
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _http(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return

        async with httpx.AsyncClient(timeout=self._timeout_seconds) as client:
            yield client

    async def _request_token(
        self,
        url: str,
        *,
        data: Dict[str, str],
        auth: Optional[Tuple[str, str]] = None,
    ) -> str:
        """
        POST a form-encoded token request and return `access_token`.

        Raises AuthenticationError when the request fails or the response
        does not carry a token.
        """
        try:
            async with self._http() as client:
                resp = await client.post(url, data=data, auth=auth)
        except httpx.HTTPError as exc:
            raise AuthenticationError(
                f"{self.name} token request failed: {exc}"
            ) from exc

        try:
            payload = resp.json()
        except ValueError:
            payload = None

        access_token = payload.get("access_token") if isinstance(payload, dict) else None
        if not access_token:
            logger.warning(
                "No access token returned by %s (status=%s)", self.name, resp.status_code
            )
            raise AuthenticationError(
                f"Could not obtain a {self.name} access token "
                f"(status={resp.status_code})."
            )
        return access_token

    async def _get_json(self, url: str, access_token: str) -> Any:
        """
        Issue an authenticated GET and return the decoded JSON body.

        Status codes are not checked here: platform error bodies are
        inspected by the caller. Transport failures and non-JSON bodies
        raise FormatError.
        """
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
        }
        try:
            async with self._http() as client:
                resp = await client.get(url, headers=headers)
        except httpx.HTTPError as exc:
            raise FormatError(f"{self.name} attendance request failed: {exc}") from exc

        try:
            return resp.json()
        except ValueError as exc:
            raise FormatError(
                f"{self.name} attendance response is not valid JSON "
                f"(status={resp.status_code})."
            ) from exc

    def _require(self, **values: Any) -> None:
        missing = [key for key, value in values.items() if not value]
        if missing:
            raise ConfigurationError(
                f"Missing {self.name} configuration: {', '.join(missing)}."
            )
