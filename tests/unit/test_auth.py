"""Unit tests for the TTL-backed authorization store.

Tests cover:
- Issuing records under the auth-session namespace
- Freshness at, before and after the TTL boundary
- Most recent record wins
- Corrupt entries and backend outages
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from courtbook.core.auth import AUTH_KEY_PREFIX, AuthorizationStore
from courtbook.core.storage import MemoryKeyValueStore
from courtbook.utils.exceptions import StorageError


@pytest.fixture
def auth_store(memory_store: MemoryKeyValueStore, clock) -> AuthorizationStore:
    return AuthorizationStore(memory_store, ttl=3600, clock=clock)


class TestIssue:
    """Tests for AuthorizationStore.issue."""

    @pytest.mark.asyncio
    async def test_issue_stores_json_record(
        self, auth_store: AuthorizationStore, memory_store, clock
    ) -> None:
        record = await auth_store.issue("user-1", "alice@example.com")

        raw = await memory_store.get(f"{AUTH_KEY_PREFIX}user-1")
        stored = json.loads(raw)
        assert stored["subject_email"] == "alice@example.com"
        assert stored["verified"] is True
        assert stored["issued_at"] == clock.now
        assert record.subject_id == "user-1"

    @pytest.mark.asyncio
    async def test_issue_writes_ttl(self, clock) -> None:
        store = MagicMock()
        store.put = AsyncMock()
        auth_store = AuthorizationStore(store, ttl=3600, clock=clock)

        await auth_store.issue("user-1", "alice@example.com")

        assert store.put.await_args.kwargs["ttl"] == 3600

    @pytest.mark.asyncio
    async def test_reissue_overwrites(self, auth_store, memory_store, clock) -> None:
        await auth_store.issue("user-1", "alice@example.com")
        clock.advance(100)
        await auth_store.issue("user-1", "alice@example.com")

        keys = await memory_store.list_keys(AUTH_KEY_PREFIX)
        assert keys == [f"{AUTH_KEY_PREFIX}user-1"]
        assert (await auth_store.current()).issued_at == clock.now


class TestCurrent:
    """Tests for AuthorizationStore.current."""

    @pytest.mark.asyncio
    async def test_no_records(self, auth_store: AuthorizationStore) -> None:
        assert await auth_store.current() is None

    @pytest.mark.asyncio
    async def test_fresh_just_before_ttl(self, auth_store, clock) -> None:
        await auth_store.issue("user-1", "alice@example.com")
        clock.advance(3599)
        record = await auth_store.current()
        assert record is not None
        assert record.subject_email == "alice@example.com"

    @pytest.mark.asyncio
    async def test_expired_after_ttl(self, clock) -> None:
        # Backend without native expiry: freshness is decided by issued_at.
        store = MemoryKeyValueStore(clock=lambda: 0.0)
        auth_store = AuthorizationStore(store, ttl=3600, clock=clock)
        await auth_store.issue("user-1", "alice@example.com")

        clock.advance(3601)

        assert await auth_store.current() is None

    @pytest.mark.asyncio
    async def test_most_recent_wins(self, auth_store, clock) -> None:
        await auth_store.issue("user-1", "alice@example.com")
        clock.advance(10)
        await auth_store.issue("user-2", "bob@example.com")

        record = await auth_store.current()

        assert record.subject_email == "bob@example.com"

    @pytest.mark.asyncio
    async def test_skips_corrupt_entry(self, auth_store, memory_store) -> None:
        await memory_store.put(f"{AUTH_KEY_PREFIX}broken", "{not json")
        await auth_store.issue("user-1", "alice@example.com")

        record = await auth_store.current()

        assert record.subject_id == "user-1"

    @pytest.mark.asyncio
    async def test_store_outage_fails_closed(self, clock) -> None:
        store = MagicMock()
        store.list_keys = AsyncMock(side_effect=StorageError("down"))
        auth_store = AuthorizationStore(store, clock=clock)

        assert await auth_store.current() is None


class TestActive:
    """Tests for AuthorizationStore.active."""

    @pytest.mark.asyncio
    async def test_lists_fresh_newest_first(self, auth_store, clock) -> None:
        await auth_store.issue("user-1", "alice@example.com")
        clock.advance(10)
        await auth_store.issue("user-2", "bob@example.com")

        records = await auth_store.active()

        assert [r.subject_id for r in records] == ["user-2", "user-1"]
