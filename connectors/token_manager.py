"""
Token manager — hand out a currently-valid Google access token per user.

This is the single interface the report layer uses to get a token:

1. Look up the user's credential record.
2. If the access token is still good (minus a skew buffer), return it
   without any network call.
3. Otherwise refresh it, persist the new token + expiry together and
   return it.  A rejected refresh token deletes the record.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict

from connectors.base import BaseConnector
from connectors.token_store import TokenStore
from utils.exceptions import NoSession, RefreshInvalid
from utils.schemas import CredentialRecord

logger = logging.getLogger(__name__)

DEFAULT_SKEW_BUFFER = timedelta(minutes=5)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CredentialResolver:
    """
    Combines a :class:`TokenStore` with the connector's refresh call.

    Parameters
    ----------
    store             : where credential records live
    refresher         : connector whose ``refresh_access_token`` talks to Google
    skew_buffer       : how long before expiry a token is already treated as stale
    serialize_refresh : hold a per-user lock around check-refresh-write so at
                        most one refresh per user is in flight in this process
    """

    def __init__(
        self,
        store: TokenStore,
        refresher: BaseConnector,
        *,
        skew_buffer: timedelta = DEFAULT_SKEW_BUFFER,
        serialize_refresh: bool = False,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._store = store
        self._refresher = refresher
        self._skew_buffer = skew_buffer
        self._serialize_refresh = serialize_refresh
        self._clock = clock
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    def is_still_valid(self, record: CredentialRecord) -> bool:
        return record.access_token_expires_at - self._skew_buffer > self._clock()

    async def get_valid_access_token(self, user_id: str) -> str:
        """
        Return a usable access token for ``user_id``.

        Raises ``NoSession`` when nothing is stored and ``RefreshInvalid``
        when Google rejects the refresh token.
        """
        record = await self._store.get(user_id)
        if record is None:
            raise NoSession(user_id)

        if self.is_still_valid(record):
            return record.access_token

        if not self._serialize_refresh:
            return await self._refresh(user_id, record)

        lock = self._locks.setdefault(user_id, asyncio.Lock())
        self._lock_users[user_id] = self._lock_users.get(user_id, 0) + 1
        try:
            async with lock:
                # Another request may have refreshed while we waited.
                record = await self._store.get(user_id)
                if record is None:
                    raise NoSession(user_id)
                if self.is_still_valid(record):
                    return record.access_token
                return await self._refresh(user_id, record)
        finally:
            # Drop the lock once nobody holds or waits on it.
            self._lock_users[user_id] -= 1
            if not self._lock_users[user_id]:
                del self._lock_users[user_id]
                del self._locks[user_id]

    async def _refresh(self, user_id: str, record: CredentialRecord) -> str:
        try:
            refreshed = await self._refresher.refresh_access_token(record.refresh_token)
        except RefreshInvalid:
            logger.warning("Refresh token rejected for user %s; deleting credentials", user_id)
            await self._store.delete(user_id)
            raise

        await self._store.put(
            user_id,
            record.with_access_token(refreshed.access_token, refreshed.expires_at),
        )
        logger.info("Refreshed Google access token for user %s", user_id)
        return refreshed.access_token

    async def revoke(self, user_id: str) -> None:
        """Best-effort revocation at Google, then drop the stored record."""
        record = await self._store.get(user_id)
        if record is None:
            return
        revoked = await self._refresher.revoke_token(record.refresh_token)
        if not revoked:
            logger.info("Google did not confirm revocation for user %s", user_id)
        await self._store.delete(user_id)
