# meetings_attendance/services/audit.py
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Protocol

audit_logger = logging.getLogger("meetings_attendance.audit")


class AuditSink(Protocol):
    """
    Fire-and-forget destination for sync and completion events.
    """

    def emit(self, action: str, payload: Dict[str, Any]) -> None:
        ...


class LoggingAuditSink:
    """
    Writes one JSON line per event to the `meetings_attendance.audit` logger.
    """

    def __init__(self, logger: logging.Logger = audit_logger) -> None:
        self._logger = logger

    def emit(self, action: str, payload: Dict[str, Any]) -> None:
        self._logger.info(
            "%s %s",
            action,
            json.dumps(payload, sort_keys=True, default=str),
        )
