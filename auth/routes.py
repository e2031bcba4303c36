"""
Auth API routes — Google sign-in, password sign-in, logout, current user.

Route prefix: /api/auth
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, Field

from api.dependencies import get_credential_resolver, get_google_connector, get_token_store
from auth.allowlist import is_email_allowed
from auth.dependencies import get_current_session
from auth.jwt import create_session_token
from auth.password import check_dashboard_password, password_login_enabled
from auth.state import InvalidOAuthState, create_state, verify_state
from config.settings import config
from connectors.google import GoogleConnector
from connectors.token_manager import CredentialResolver
from connectors.token_store import TokenStore
from utils.exceptions import DashboardError
from utils.schemas import SessionClaims

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


# ── Request / response schemas ─────────────────────────────────────────


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)


class AuthResponse(BaseModel):
    token: str
    email: str
    name: str


def _frontend_redirect(fragment: str) -> RedirectResponse:
    return RedirectResponse(
        url=f"{config.frontend_url}/#{fragment}",
        status_code=status.HTTP_302_FOUND,
    )


# ── Google OAuth ───────────────────────────────────────────────────────


@router.get("/google/authorize")
async def google_authorize(
    connector: GoogleConnector = Depends(get_google_connector),
) -> RedirectResponse:
    """Send the browser to Google's consent screen."""
    if not connector.is_configured():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Google sign-in is not configured",
        )
    return RedirectResponse(
        url=connector.get_auth_url(create_state()),
        status_code=status.HTTP_302_FOUND,
    )


@router.get("/google/callback")
async def google_callback(
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    error: Optional[str] = Query(None),
    connector: GoogleConnector = Depends(get_google_connector),
    store: TokenStore = Depends(get_token_store),
) -> RedirectResponse:
    """
    Google redirects here after consent.

    Stores the user's credentials and hands a session token to the
    dashboard through the URL fragment.
    """
    if error or not code or not state:
        logger.info("Google sign-in cancelled or incomplete: %s", error)
        return _frontend_redirect("error=oauth_failed")

    try:
        verify_state(state)
    except InvalidOAuthState as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid or expired OAuth state: {exc}",
        )

    try:
        record = await connector.handle_callback(code)
    except DashboardError as exc:
        logger.error("Google OAuth callback failed: %s", exc)
        return _frontend_redirect("error=oauth_failed")

    if not is_email_allowed(record.email):
        logger.warning("Sign-in refused for %s (not on allowlist)", record.email)
        return _frontend_redirect("error=not_authorized")

    await store.put(record.user_id, record)
    token = create_session_token(
        sub=record.user_id,
        email=record.email,
        name=record.name,
        picture=record.picture,
    )
    logger.info("Google sign-in: %s (%s)", record.email, record.user_id)
    return _frontend_redirect(f"token={token}")


# ── Password sign-in ───────────────────────────────────────────────────


@router.post("/login", response_model=AuthResponse)
async def login(req: LoginRequest) -> Dict[str, Any]:
    """
    Sign in with the shared dashboard password.

    The session has no Google credentials; analytics calls answer 401
    until the user also signs in with Google.
    """
    if not password_login_enabled():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Password sign-in is not configured",
        )
    if not check_dashboard_password(req.password) or not is_email_allowed(req.email):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    email = req.email.strip().lower()
    token = create_session_token(sub=f"password:{email}", email=email, name=email)
    logger.info("Password sign-in: %s", email)
    return {"token": token, "email": email, "name": email}


# ── Session ────────────────────────────────────────────────────────────


@router.post("/logout")
async def logout(
    session: SessionClaims = Depends(get_current_session),
    resolver: CredentialResolver = Depends(get_credential_resolver),
) -> Dict[str, str]:
    """Revoke the user's Google grant (best effort) and forget their tokens."""
    await resolver.revoke(session.sub)
    logger.info("Logout: %s", session.email)
    return {"status": "logged_out"}


@router.get("/me")
async def me(session: SessionClaims = Depends(get_current_session)) -> Dict[str, str]:
    return {"email": session.email, "name": session.name, "picture": session.picture}
