"""
BaseConnector — abstract interface for the OAuth2 identity provider.

The credential resolver only needs ``refresh_access_token``; the sign-in
routes use the rest of the flow.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from utils.schemas import CredentialRecord, RefreshedToken


class BaseConnector(ABC):
    """Abstract base for OAuth2 connectors."""

    # ── Identity ────────────────────────────────────────────────────────
    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Unique slug, e.g. 'google'."""
        ...

    @property
    @abstractmethod
    def scopes(self) -> List[str]:
        """OAuth scopes requested at sign-in."""
        ...

    # ── OAuth flow ──────────────────────────────────────────────────────

    @abstractmethod
    def get_auth_url(self, state: str) -> str:
        """
        Build the provider's OAuth2 authorization URL.

        Parameters
        ----------
        state : str
            Opaque, signed CSRF state string.
        """
        ...

    @abstractmethod
    async def handle_callback(self, code: str) -> CredentialRecord:
        """
        Exchange the authorization code for tokens and load the user profile.

        Returns a complete credential record keyed by the provider's user ID.
        """
        ...

    @abstractmethod
    async def refresh_access_token(self, refresh_token: str) -> RefreshedToken:
        """
        Exchange a refresh token for a new access token.

        Raises ``RefreshInvalid`` on any non-success response.
        """
        ...

    async def revoke_token(self, token: str) -> bool:
        """
        Revoke the token at the provider (optional).
        Returns True on success, False if unsupported or it failed.
        """
        return False

    # ── Helpers ─────────────────────────────────────────────────────────

    def is_configured(self) -> bool:
        """Return True if client ID / secret are present."""
        return True
