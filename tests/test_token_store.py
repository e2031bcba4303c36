"""
Tests for the token stores and at-rest encryption.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from cryptography.fernet import Fernet

from connectors.encryption import TokenCipher
from connectors.token_store import InMemoryTokenStore, SqlTokenStore
from database.models import UserCredential
from utils.schemas import CredentialRecord

EXPIRY = datetime(2026, 1, 1, 13, 0, tzinfo=timezone.utc)


def _record(access_token: str = "access-1") -> CredentialRecord:
    return CredentialRecord(
        user_id="user-1",
        refresh_token="refresh-1",
        access_token=access_token,
        access_token_expires_at=EXPIRY,
        email="ada@example.com",
        name="Ada",
        picture="",
    )


def _session_factory(session: MagicMock) -> MagicMock:
    factory = MagicMock()
    factory.return_value.__aenter__.return_value = session
    factory.return_value.__aexit__.return_value = False
    return factory


def _mock_session() -> MagicMock:
    session = MagicMock()
    session.merge = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock(return_value=None)
    return session


class TestInMemoryTokenStore:
    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self):
        store = InMemoryTokenStore()
        assert await store.get("nobody") is None

    @pytest.mark.asyncio
    async def test_put_then_get(self):
        store = InMemoryTokenStore()
        await store.put("user-1", _record())
        record = await store.get("user-1")
        assert record == _record()

    @pytest.mark.asyncio
    async def test_put_overwrites(self):
        store = InMemoryTokenStore()
        await store.put("user-1", _record("access-1"))
        await store.put("user-1", _record("access-2"))
        assert (await store.get("user-1")).access_token == "access-2"
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self):
        store = InMemoryTokenStore()
        await store.put("user-1", _record())
        await store.delete("user-1")
        await store.delete("user-1")
        assert "user-1" not in store

    @pytest.mark.asyncio
    async def test_returned_records_are_copies(self):
        store = InMemoryTokenStore()
        await store.put("user-1", _record())
        record = await store.get("user-1")
        record.access_token = "mutated"
        assert (await store.get("user-1")).access_token == "access-1"


class TestTokenCipher:
    def test_disabled_without_key(self):
        cipher = TokenCipher("")
        assert not cipher.enabled
        assert cipher.encrypt("secret") == "secret"
        assert cipher.decrypt("secret") == "secret"

    def test_encrypts_with_key(self):
        cipher = TokenCipher(Fernet.generate_key().decode())
        ciphertext = cipher.encrypt("secret")
        assert ciphertext != "secret"
        assert cipher.decrypt(ciphertext) == "secret"

    def test_plaintext_from_before_encryption_passes_through(self):
        cipher = TokenCipher(Fernet.generate_key().decode())
        assert cipher.decrypt("legacy-plaintext") == "legacy-plaintext"


class TestSqlTokenStore:
    @pytest.mark.asyncio
    async def test_put_merges_encrypted_row_and_commits(self):
        session = _mock_session()
        cipher = TokenCipher(Fernet.generate_key().decode())
        store = SqlTokenStore(_session_factory(session), cipher)

        await store.put("user-1", _record())

        row = session.merge.await_args.args[0]
        assert isinstance(row, UserCredential)
        assert row.user_id == "user-1"
        assert row.access_token != "access-1"
        assert cipher.decrypt(row.access_token) == "access-1"
        assert cipher.decrypt(row.refresh_token) == "refresh-1"
        assert row.access_token_expires_at == EXPIRY
        session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_put_rolls_back_and_reraises(self):
        session = _mock_session()
        session.commit.side_effect = RuntimeError("db down")
        store = SqlTokenStore(_session_factory(session), TokenCipher(""))

        with pytest.raises(RuntimeError):
            await store.put("user-1", _record())
        session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self):
        store = SqlTokenStore(_session_factory(_mock_session()), TokenCipher(""))
        assert await store.get("nobody") is None

    @pytest.mark.asyncio
    async def test_get_decrypts_row(self):
        cipher = TokenCipher(Fernet.generate_key().decode())
        session = _mock_session()
        session.get.return_value = UserCredential(
            user_id="user-1",
            refresh_token=cipher.encrypt("refresh-1"),
            access_token=cipher.encrypt("access-1"),
            access_token_expires_at=EXPIRY,
            email="ada@example.com",
            name="Ada",
            picture=None,
        )
        store = SqlTokenStore(_session_factory(session), cipher)

        record = await store.get("user-1")

        assert record.access_token == "access-1"
        assert record.refresh_token == "refresh-1"
        assert record.picture == ""

    @pytest.mark.asyncio
    async def test_delete_executes_and_commits(self):
        session = _mock_session()
        store = SqlTokenStore(_session_factory(session), TokenCipher(""))

        await store.delete("user-1")

        session.execute.assert_awaited_once()
        session.commit.assert_awaited_once()
