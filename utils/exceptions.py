"""
Exception hierarchy for credential resolution and GA4 calls.

``NoSession`` and ``RefreshInvalid`` mean the user has to sign in again.
``RemoteApiError`` describes one failed remote call and is usually turned
into a per-property failure instead of being propagated.
"""

from __future__ import annotations

from typing import Optional


class DashboardError(Exception):
    """Base exception for all dashboard backend errors."""


class NoSession(DashboardError):
    """No stored Google credentials exist for the user."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"No stored tokens for user {user_id}, re-authentication required")


class RefreshInvalid(DashboardError):
    """
    Google rejected the refresh token (revoked or expired).

    Never retried: the user must re-authenticate.
    """

    def __init__(
        self,
        message: str = "Refresh token is invalid or revoked, re-authentication required",
        status_code: Optional[int] = None,
    ):
        self.status_code = status_code
        super().__init__(message)


class RemoteApiError(DashboardError):
    """A Google API call returned a non-success response."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"RemoteApiError(status_code={self.status_code!r}, message={self.message!r})"


class OAuthCallbackError(DashboardError):
    """The Google sign-in callback could not be completed."""
