"""
Email allowlist for the dashboard.
"""

from __future__ import annotations

from typing import Optional, Sequence

from config.settings import config


def is_email_allowed(email: str, allowed: Optional[Sequence[str]] = None) -> bool:
    """
    True if ``email`` may use the dashboard.

    An empty allowlist admits every authenticated user (personal dashboards).
    """
    allowed_list = list(allowed) if allowed is not None else config.allowed_email_list
    if not allowed_list:
        return True
    return email.strip().lower() in {a.strip().lower() for a in allowed_list}
