"""
Session token creation and verification.

Tokens are URL-safe base64 JSON payloads signed with HMAC-SHA256.
Secret key is loaded from ``config.jwt_secret`` (env var: ``JWT_SECRET``).
"""

from __future__ import annotations

import hashlib
import hmac
import json
import time
from base64 import urlsafe_b64decode, urlsafe_b64encode
from typing import Optional

from config.settings import config
from utils.schemas import SessionClaims

_REQUIRED_CLAIMS = ("sub", "email", "name", "picture")


class InvalidSessionToken(ValueError):
    """Token is malformed, tampered with, or expired."""


def _sign(raw: bytes, secret: str) -> str:
    return hmac.new(secret.encode(), raw, hashlib.sha256).hexdigest()


def create_session_token(
    sub: str,
    email: str,
    name: str = "",
    picture: str = "",
    *,
    secret: Optional[str] = None,
    ttl_seconds: Optional[int] = None,
    now: Optional[float] = None,
) -> str:
    """Create a signed token carrying the user's identity and expiry."""
    issued = int(now if now is not None else time.time())
    payload = {
        "sub": sub,
        "email": email,
        "name": name,
        "picture": picture,
        "iat": issued,
        "exp": issued + (ttl_seconds if ttl_seconds is not None else config.jwt_expiry_seconds),
    }
    raw = json.dumps(payload, separators=(",", ":")).encode()
    sig = _sign(raw, secret or config.jwt_secret)
    return urlsafe_b64encode(raw).decode() + "." + sig


def verify_session_token(
    token: str,
    *,
    secret: Optional[str] = None,
    now: Optional[float] = None,
) -> SessionClaims:
    """
    Verify signature and expiry and return the claims.

    Raises ``InvalidSessionToken`` on any problem.
    """
    parts = token.split(".", 1)
    if len(parts) != 2:
        raise InvalidSessionToken("bad format")
    try:
        raw = urlsafe_b64decode(parts[0].encode())
    except (ValueError, TypeError) as exc:
        raise InvalidSessionToken("bad encoding") from exc

    expected_sig = _sign(raw, secret or config.jwt_secret)
    if not hmac.compare_digest(parts[1].encode(), expected_sig.encode()):
        raise InvalidSessionToken("bad signature")

    try:
        payload = json.loads(raw)
    except ValueError as exc:
        raise InvalidSessionToken("bad payload") from exc
    if not isinstance(payload, dict):
        raise InvalidSessionToken("bad payload")

    if any(not isinstance(payload.get(claim), str) for claim in _REQUIRED_CLAIMS):
        raise InvalidSessionToken("payload is missing required fields")
    if payload.get("exp", 0) < (now if now is not None else time.time()):
        raise InvalidSessionToken("token expired")

    return SessionClaims(**{k: payload[k] for k in (*_REQUIRED_CLAIMS, "iat", "exp") if k in payload})
