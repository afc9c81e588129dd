# meetings_attendance/api/dependencies/operator_auth.py
from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from meetings_attendance.core.config import Settings, get_settings

OPEN_ENVIRONMENTS = ("local", "test")


async def verify_operator_api_key(
    operator_api_key: Optional[str] = Header(
        default=None,
        alias="X-Operator-Api-Key",
        description="Operator key required to sync, assign or evaluate attendance.",
    ),
    settings: Settings = Depends(get_settings),
) -> None:
    """
    Guard for the operator actions (sync, manual assignment, completion).

    - APP_ENV local/test: open unless OPERATOR_API_KEY is set, in which case
      the header must match.
    - Any other APP_ENV: OPERATOR_API_KEY must be configured (500 otherwise)
      and the header must match it (401 otherwise).
    """
    env = (settings.APP_ENV or "local").lower()
    expected = settings.OPERATOR_API_KEY

    if not expected:
        if env in OPEN_ENVIRONMENTS:
            return
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="OPERATOR_API_KEY not configured for this environment.",
        )

    if operator_api_key != expected:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing operator API key.",
        )
