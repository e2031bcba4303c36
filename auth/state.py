"""
OAuth state tokens (CSRF protection for the Google sign-in redirect).
"""

from __future__ import annotations

import hashlib
import hmac
import json
import secrets
import time
from base64 import urlsafe_b64decode, urlsafe_b64encode
from typing import Optional

from config.settings import config

_STATE_TTL = 600  # seconds


class InvalidOAuthState(ValueError):
    pass


def create_state(*, secret: Optional[str] = None, now: Optional[float] = None) -> str:
    """Create an opaque, signed state string with a nonce and expiry."""
    issued = int(now if now is not None else time.time())
    raw = json.dumps({"nonce": secrets.token_urlsafe(16), "exp": issued + _STATE_TTL}).encode()
    sig = hmac.new((secret or config.oauth_state_secret).encode(), raw, hashlib.sha256).hexdigest()[:32]
    return urlsafe_b64encode(raw).decode() + "." + sig


def verify_state(state: str, *, secret: Optional[str] = None, now: Optional[float] = None) -> None:
    """Raise ``InvalidOAuthState`` unless ``state`` is ours and unexpired."""
    parts = state.split(".", 1)
    if len(parts) != 2:
        raise InvalidOAuthState("bad format")
    try:
        raw = urlsafe_b64decode(parts[0].encode())
        payload = json.loads(raw)
    except ValueError as exc:
        raise InvalidOAuthState("bad payload") from exc
    if not isinstance(payload, dict):
        raise InvalidOAuthState("bad payload")

    expected_sig = hmac.new(
        (secret or config.oauth_state_secret).encode(), raw, hashlib.sha256
    ).hexdigest()[:32]
    if not hmac.compare_digest(parts[1].encode(), expected_sig.encode()):
        raise InvalidOAuthState("bad signature")
    if payload.get("exp", 0) < (now if now is not None else time.time()):
        raise InvalidOAuthState("state expired")
