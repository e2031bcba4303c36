"""
Permanent-vs-transient classification for failed property fetches.

GA4 only reports failures as free text plus an HTTP status, so the policy is
a substring table.  Anything not listed here is treated as transient and gets
one more attempt.
"""

from __future__ import annotations

from typing import FrozenSet, Optional, Tuple

from utils.schemas import ErrorClass

# Matched case-insensitively against the error message.
PERMANENT_ERROR_MARKERS: Tuple[str, ...] = (
    "PERMISSION_DENIED",
    "UNAUTHENTICATED",
    "does not have sufficient permissions",
    "invalid authentication credentials",
    "insufficient authentication scopes",
    "access denied",
    "forbidden",
)

PERMANENT_STATUS_CODES: FrozenSet[int] = frozenset({401, 403})


def classify_error(
    message: str,
    status_code: Optional[int] = None,
    *,
    markers: Tuple[str, ...] = PERMANENT_ERROR_MARKERS,
) -> ErrorClass:
    """Return ``PERMANENT`` for auth/permission failures, ``TRANSIENT`` otherwise."""
    if status_code in PERMANENT_STATUS_CODES:
        return ErrorClass.PERMANENT

    lowered = (message or "").lower()
    if any(marker.lower() in lowered for marker in markers):
        return ErrorClass.PERMANENT
    return ErrorClass.TRANSIENT
