"""
Shared dashboard password.

Password sign-in is an alternative to Google for opening the dashboard; it
never grants GA4 access by itself.  The bcrypt hash is configured as
``DASHBOARD_PASSWORD_HASH``; leaving it empty turns password sign-in off.
"""

from __future__ import annotations

import logging
from typing import Optional

import bcrypt

from config.settings import config

logger = logging.getLogger(__name__)


def password_login_enabled(password_hash: Optional[str] = None) -> bool:
    configured = password_hash if password_hash is not None else config.dashboard_password_hash
    return bool(configured)


def check_dashboard_password(password: str, password_hash: Optional[str] = None) -> bool:
    """
    True if ``password`` matches the configured dashboard hash.

    A missing or malformed hash rejects every password.
    """
    configured = password_hash if password_hash is not None else config.dashboard_password_hash
    if not password_login_enabled(configured):
        return False
    try:
        return bcrypt.checkpw(password.encode(), configured.encode())
    except ValueError:
        logger.error("DASHBOARD_PASSWORD_HASH is not a valid bcrypt hash; password sign-in disabled")
        return False
