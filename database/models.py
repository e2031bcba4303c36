"""
SQLAlchemy ORM models.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class UserCredential(Base):
    """One row per Google user; token columns hold Fernet ciphertext."""

    __tablename__ = "user_credentials"

    user_id = Column(String(128), primary_key=True)
    refresh_token = Column(Text, nullable=False)
    access_token = Column(Text, nullable=False)
    access_token_expires_at = Column(DateTime(timezone=True), nullable=False)
    email = Column(String(255), nullable=False, default="")
    name = Column(String(255), nullable=False, default="")
    picture = Column(Text, nullable=False, default="")
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
