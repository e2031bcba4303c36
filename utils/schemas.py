"""
Pydantic schemas for the GA4 dashboard backend.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# ═══════════════════════════════════════════════════════════════════════════════
# Credentials
# ═══════════════════════════════════════════════════════════════════════════════


class CredentialRecord(BaseModel):
    """
    Stored Google OAuth credentials for one user.

    ``access_token`` and ``access_token_expires_at`` always describe the same
    token; replace them only through :meth:`with_access_token`.
    """

    user_id: str
    refresh_token: str
    access_token: str
    access_token_expires_at: datetime = Field(..., description="Absolute expiry, timezone-aware UTC")
    email: str = ""
    name: str = ""
    picture: str = ""

    def with_access_token(self, access_token: str, expires_at: datetime) -> "CredentialRecord":
        """Return a copy carrying a new access token; everything else is preserved."""
        return self.model_copy(
            update={"access_token": access_token, "access_token_expires_at": expires_at}
        )


class RefreshedToken(BaseModel):
    access_token: str
    expires_at: datetime


class SessionClaims(BaseModel):
    """Claims carried by a dashboard session token."""

    sub: str
    email: str
    name: str = ""
    picture: str = ""
    iat: int = 0
    exp: int = 0


# ═══════════════════════════════════════════════════════════════════════════════
# Report inputs
# ═══════════════════════════════════════════════════════════════════════════════


class DateRange(str, Enum):
    """Time windows offered by the dashboard."""

    LAST_7_DAYS = "7d"
    LAST_30_DAYS = "30d"
    LAST_90_DAYS = "90d"

    @property
    def days(self) -> int:
        return int(self.value[:-1])

    @property
    def start_date(self) -> str:
        """GA4 relative start date, e.g. ``7daysAgo``."""
        return f"{self.days}daysAgo"

    @property
    def end_date(self) -> str:
        return "today"


class ResourceDescriptor(BaseModel):
    """A GA4 property the user can read, plus its human label."""

    model_config = ConfigDict(frozen=True)

    resource_id: str = Field(..., description="Numeric GA4 property ID")
    display_name: str


# ═══════════════════════════════════════════════════════════════════════════════
# Parsed report data
# ═══════════════════════════════════════════════════════════════════════════════


class DailyMetric(BaseModel):
    date: str  # YYYY-MM-DD
    sessions: int = 0
    active_users: int = 0


class TrafficSource(BaseModel):
    channel: str
    sessions: int = 0


class PageMetric(BaseModel):
    path: str
    title: str = ""
    views: int = 0


class PropertyMetrics(BaseModel):
    sessions: int = 0
    active_users: int = 0
    new_users: int = 0
    screen_page_views: int = 0
    bounce_rate: float = 0.0  # 0..1, weighted by sessions
    average_session_duration: float = 0.0  # seconds, weighted by sessions
    trend: List[DailyMetric] = Field(default_factory=list)


class PropertyReport(BaseModel):
    metrics: PropertyMetrics
    sources: List[TrafficSource] = Field(default_factory=list)


class PropertyDetail(PropertyReport):
    property_id: str
    date_range: DateRange
    top_pages: List[PageMetric] = Field(default_factory=list)


# ═══════════════════════════════════════════════════════════════════════════════
# Fan-out results
# ═══════════════════════════════════════════════════════════════════════════════


class ErrorClass(str, Enum):
    """Whether a failed property fetch is worth another attempt."""

    PERMANENT = "permanent"
    TRANSIENT = "transient"


class FetchSuccess(BaseModel):
    status: Literal["success"] = "success"
    resource_id: str
    display_name: str
    data: PropertyReport

    @property
    def ok(self) -> bool:
        return True


class FetchFailure(BaseModel):
    status: Literal["failure"] = "failure"
    resource_id: str
    display_name: str
    error: str
    error_class: ErrorClass
    status_code: Optional[int] = None

    @property
    def ok(self) -> bool:
        return False


FetchResult = Annotated[Union[FetchSuccess, FetchFailure], Field(discriminator="status")]


class ReportEnvelope(BaseModel):
    """Everything one report run produced, in input order."""

    generated_at: datetime
    date_range: DateRange
    results: List[FetchResult] = Field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def error_count(self) -> int:
        return sum(1 for r in self.results if not r.ok)
