"""
FastAPI dependency for session authentication.

``get_current_session`` reads ``Authorization: Bearer <token>``, verifies it
and returns the session claims; anything else is a 401.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Header, HTTPException, status

from auth.jwt import InvalidSessionToken, verify_session_token
from utils.schemas import SessionClaims

logger = logging.getLogger(__name__)


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
    )


async def get_current_session(
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> SessionClaims:
    if not authorization or not authorization.startswith("Bearer "):
        raise _unauthorized()
    token = authorization[len("Bearer "):].strip()
    if not token:
        raise _unauthorized()
    try:
        return verify_session_token(token)
    except InvalidSessionToken as exc:
        logger.debug("Rejected session token: %s", exc)
        raise _unauthorized()
