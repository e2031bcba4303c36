"""
Token store — persists one Google credential record per user.

``get`` returns ``None`` for unknown users, ``delete`` is idempotent and
``put`` replaces the whole record in a single write.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from connectors.encryption import TokenCipher
from database.models import UserCredential
from utils.schemas import CredentialRecord

logger = logging.getLogger(__name__)


class TokenStore(ABC):
    """Key-value store of credential records keyed by user ID."""

    @abstractmethod
    async def put(self, user_id: str, record: CredentialRecord) -> None:
        ...

    @abstractmethod
    async def get(self, user_id: str) -> Optional[CredentialRecord]:
        ...

    @abstractmethod
    async def delete(self, user_id: str) -> None:
        ...


class InMemoryTokenStore(TokenStore):
    """Process-local store, used for tests and local development."""

    def __init__(self) -> None:
        self._records: Dict[str, CredentialRecord] = {}

    async def put(self, user_id: str, record: CredentialRecord) -> None:
        self._records[user_id] = record.model_copy(deep=True)

    async def get(self, user_id: str) -> Optional[CredentialRecord]:
        record = self._records.get(user_id)
        return record.model_copy(deep=True) if record is not None else None

    async def delete(self, user_id: str) -> None:
        self._records.pop(user_id, None)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._records


class SqlTokenStore(TokenStore):
    """Stores records in the ``user_credentials`` table, tokens encrypted."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        cipher: TokenCipher,
    ):
        self._session_factory = session_factory
        self._cipher = cipher

    async def put(self, user_id: str, record: CredentialRecord) -> None:
        row = UserCredential(
            user_id=user_id,
            refresh_token=self._cipher.encrypt(record.refresh_token),
            access_token=self._cipher.encrypt(record.access_token),
            access_token_expires_at=record.access_token_expires_at,
            email=record.email,
            name=record.name,
            picture=record.picture,
        )
        async with self._session_factory() as session:
            try:
                await session.merge(row)
                await session.commit()
            except Exception as exc:
                logger.error("Storing credentials for user %s failed: %s", user_id, exc)
                await session.rollback()
                raise

    async def get(self, user_id: str) -> Optional[CredentialRecord]:
        async with self._session_factory() as session:
            row = await session.get(UserCredential, user_id)
            if row is None:
                return None
            return CredentialRecord(
                user_id=row.user_id,
                refresh_token=self._cipher.decrypt(row.refresh_token),
                access_token=self._cipher.decrypt(row.access_token),
                access_token_expires_at=row.access_token_expires_at,
                email=row.email or "",
                name=row.name or "",
                picture=row.picture or "",
            )

    async def delete(self, user_id: str) -> None:
        async with self._session_factory() as session:
            try:
                await session.execute(
                    delete(UserCredential).where(UserCredential.user_id == user_id)
                )
                await session.commit()
            except Exception as exc:
                logger.error("Deleting credentials for user %s failed: %s", user_id, exc)
                await session.rollback()
                raise
