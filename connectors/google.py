"""
GoogleConnector — OAuth2 web flow for Google sign-in and GA4 read access.

All Google calls go through ``httpx``; nothing here caches tokens; the
token store owns them.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional
from urllib.parse import urlencode

import httpx

from connectors.base import BaseConnector
from utils.exceptions import OAuthCallbackError, RefreshInvalid, RemoteApiError
from utils.schemas import CredentialRecord, RefreshedToken

logger = logging.getLogger(__name__)

# Google OAuth2 endpoints
_GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
_GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
_GOOGLE_REVOKE_URL = "https://oauth2.googleapis.com/revoke"
_GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v3/userinfo"

_DEFAULT_EXPIRES_IN = 3600


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _json_body(response: httpx.Response) -> dict:
    """Decoded JSON object body; anything else is a failed sign-in."""
    try:
        body = response.json()
    except ValueError as exc:
        raise OAuthCallbackError("Google returned a non-JSON response") from exc
    if not isinstance(body, dict):
        raise OAuthCallbackError("Google returned an unexpected response")
    return body


class GoogleConnector(BaseConnector):
    """OAuth2 connector for Google (profile + Analytics read-only)."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._client_id = client_id
        self._client_secret = client_secret
        self._redirect_uri = redirect_uri
        self._timeout = timeout
        self._transport = transport
        self._clock = clock

    @property
    def provider_name(self) -> str:
        return "google"

    @property
    def scopes(self) -> List[str]:
        return [
            "openid",
            "email",
            "profile",
            "https://www.googleapis.com/auth/analytics.readonly",
        ]

    def is_configured(self) -> bool:
        return bool(self._client_id and self._client_secret)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    def get_auth_url(self, state: str) -> str:
        params = {
            "client_id": self._client_id,
            "redirect_uri": self._redirect_uri,
            "response_type": "code",
            "scope": " ".join(self.scopes),
            "access_type": "offline",       # gets refresh_token
            "prompt": "consent",            # force consent to always get refresh_token
            "state": state,
        }
        return f"{_GOOGLE_AUTH_URL}?{urlencode(params)}"

    async def handle_callback(self, code: str) -> CredentialRecord:
        """Exchange auth code for tokens and build the user's credential record."""
        try:
            return await self._exchange_code(code)
        except httpx.HTTPError as exc:
            logger.error("Google sign-in request failed: %s", exc)
            raise OAuthCallbackError(f"Google sign-in request failed: {exc}") from exc

    async def _exchange_code(self, code: str) -> CredentialRecord:
        async with self._client() as client:
            # 1. Exchange code for tokens
            token_resp = await client.post(
                _GOOGLE_TOKEN_URL,
                data={
                    "code": code,
                    "client_id": self._client_id,
                    "client_secret": self._client_secret,
                    "redirect_uri": self._redirect_uri,
                    "grant_type": "authorization_code",
                },
            )
            if token_resp.is_error:
                logger.error(
                    "Google token exchange failed (%d): %s",
                    token_resp.status_code, token_resp.text,
                )
                raise RemoteApiError(
                    token_resp.status_code,
                    f"Token exchange failed: {token_resp.status_code}",
                )
            token_data = _json_body(token_resp)
            access_token = token_data.get("access_token")
            if not access_token:
                raise OAuthCallbackError("Google did not return an access token")
            issued_at = self._clock()

            # 2. Fetch the profile so the record is keyed by Google user ID
            headers = {"Authorization": f"Bearer {access_token}"}
            user_resp = await client.get(_GOOGLE_USERINFO_URL, headers=headers)
            if user_resp.is_error:
                raise RemoteApiError(
                    user_resp.status_code,
                    f"Userinfo request failed: {user_resp.status_code}",
                )
            user_info = _json_body(user_resp)

        refresh_token = token_data.get("refresh_token")
        if not refresh_token:
            raise OAuthCallbackError("Google did not return a refresh token")
        if not user_info.get("sub"):
            raise OAuthCallbackError("Google profile is missing the user ID")

        return CredentialRecord(
            user_id=user_info["sub"],
            refresh_token=refresh_token,
            access_token=access_token,
            access_token_expires_at=issued_at
            + timedelta(seconds=token_data.get("expires_in", _DEFAULT_EXPIRES_IN)),
            email=user_info.get("email", ""),
            name=user_info.get("name", ""),
            picture=user_info.get("picture", ""),
        )

    async def refresh_access_token(self, refresh_token: str) -> RefreshedToken:
        """Use refresh token to get a new access token."""
        async with self._client() as client:
            resp = await client.post(
                _GOOGLE_TOKEN_URL,
                data={
                    "client_id": self._client_id,
                    "client_secret": self._client_secret,
                    "refresh_token": refresh_token,
                    "grant_type": "refresh_token",
                },
            )
        if resp.is_error:
            logger.warning("Google token refresh failed (%d): %s", resp.status_code, resp.text)
            raise RefreshInvalid(status_code=resp.status_code)

        data = resp.json()
        expires_at = self._clock() + timedelta(
            seconds=data.get("expires_in", _DEFAULT_EXPIRES_IN)
        )
        return RefreshedToken(access_token=data["access_token"], expires_at=expires_at)

    async def revoke_token(self, token: str) -> bool:
        """Revoke the token at Google."""
        try:
            async with self._client() as client:
                resp = await client.post(_GOOGLE_REVOKE_URL, params={"token": token})
        except httpx.HTTPError as exc:
            logger.warning("Token revocation request failed: %s", exc)
            return False
        return resp.status_code == 200
