"""
Tests for Session, SessionManager and the built-in session stores.
"""

from __future__ import annotations

import asyncio
import time
from unittest.mock import AsyncMock

import pytest

from DialogRelay.session.manager import SessionManager
from DialogRelay.session.memory_store import MemorySessionStore
from DialogRelay.session.session import Session
from DialogRelay.session.sql_store import SqlSessionStore


class TestSession:
    """Test suite for Session."""

    def test_identity_cannot_be_overwritten(self):
        session = Session(id="test:1", platform="test")

        session["id"] = "other:2"
        session["platform"] = "other"
        session.update({"id": "x", "platform": "y", "name": "ann"})

        assert session.id == "test:1"
        assert session.platform == "test"
        assert session["id"] == "test:1"
        assert session["platform"] == "test"
        assert session["name"] == "ann"

    def test_identity_properties_are_read_only(self):
        session = Session(id="test:1", platform="test")

        with pytest.raises(AttributeError):
            session.id = "other"  # type: ignore[misc]
        assert session.id == "test:1"

    def test_identity_keys_cannot_be_deleted(self):
        session = Session(id="test:1", platform="test")
        del session["id"]
        assert session["id"] == "test:1"

    def test_touch_is_strictly_increasing(self):
        session = Session(id="test:1", platform="test", last_activity=time.time() + 60)
        previous = session.last_activity

        stamped = session.touch()

        assert stamped > previous
        assert session.touch() > stamped

    def test_record_round_trip(self):
        session = Session(id="test:1", platform="test", data={"user": {"id": "1"}})
        session.touch()

        restored = Session.from_record(session.to_record(), id="ignored", platform="ignored")

        assert restored.id == "test:1"
        assert restored.platform == "test"
        assert restored["user"] == {"id": "1"}
        assert restored.last_activity == session.last_activity

    def test_from_empty_record_uses_computed_identity(self):
        session = Session.from_record(None, id="test:1", platform="test")

        assert session.id == "test:1"
        assert session.platform == "test"
        assert len(session) == 0
        assert session.last_activity is None


class TestSessionManager:
    """Test suite for SessionManager."""

    @pytest.mark.asyncio
    async def test_init_runs_once(self, store):
        manager = SessionManager(store)

        await asyncio.gather(manager.init(), manager.init(), manager.init())
        await manager.init()

        assert store.init_calls == 1
        assert manager.initialized

    @pytest.mark.asyncio
    async def test_resolve_creates_new_session(self, store, connector):
        manager = SessionManager(store)

        session = await manager.resolve_session(connector, {"session": "u1"})

        assert session is not None
        assert session.id == "test:u1"
        assert session.platform == "test"
        assert session["user"] == {"id": "u1"}
        assert store.reads == ["test:u1"]

    @pytest.mark.asyncio
    async def test_resolve_reads_existing_session(self, store, connector):
        await store.write("test:u1", {"id": "test:u1", "platform": "test", "data": {"count": 3}})
        manager = SessionManager(store)

        session = await manager.resolve_session(connector, {"session": "u1"})

        assert session["count"] == 3

    @pytest.mark.asyncio
    async def test_no_session_key_means_no_session(self, store, connector):
        manager = SessionManager(store)

        session = await manager.resolve_session(connector, {"session": None})

        assert session is None
        assert store.reads == []
        assert "update_session" not in connector.calls

    @pytest.mark.asyncio
    async def test_persist_stamps_and_writes(self, store):
        manager = SessionManager(store)
        session = Session(id="test:u1", platform="test", data={"a": 1})

        assert await manager.persist(session) is True

        key, record = store.writes[0]
        assert key == "test:u1"
        assert record["data"] == {"a": 1}
        assert record["last_activity"] == session.last_activity

    @pytest.mark.asyncio
    async def test_persist_failure_is_swallowed(self):
        failing = AsyncMock(spec=MemorySessionStore)
        failing.write.side_effect = OSError("disk full")
        manager = SessionManager(failing)

        assert await manager.persist(Session(id="test:u1", platform="test")) is False
        failing.write.assert_awaited_once()


class TestMemorySessionStore:
    """Test suite for MemorySessionStore."""

    @pytest.mark.asyncio
    async def test_read_returns_copies(self):
        store = MemorySessionStore()
        record = {"id": "a", "data": {"n": 1}}
        await store.write("a", record)

        record["data"]["n"] = 2
        loaded = await store.read("a")
        loaded["data"]["n"] = 3

        assert (await store.read("a"))["data"] == {"n": 1}

    @pytest.mark.asyncio
    async def test_evicts_least_recently_used(self):
        store = MemorySessionStore(max_entries=2)
        await store.write("a", {"id": "a"})
        await store.write("b", {"id": "b"})
        await store.read("a")
        await store.write("c", {"id": "c"})

        assert await store.read("b") is None
        assert await store.read("a") is not None
        assert store.size == 2

    @pytest.mark.asyncio
    async def test_expired_entries_are_dropped(self):
        store = MemorySessionStore(expires_in_minutes=0)
        await store.write("a", {"id": "a"})

        assert await store.read("a") is None
        assert await store.all() == []

    @pytest.mark.asyncio
    async def test_destroy(self):
        store = MemorySessionStore()
        await store.write("a", {"id": "a"})
        await store.destroy("a")
        await store.destroy("missing")

        assert await store.read("a") is None


class TestSqlSessionStore:
    """Test suite for SqlSessionStore."""

    @pytest.mark.asyncio
    async def test_write_read_update_destroy(self, tmp_path):
        store = SqlSessionStore(db_path=str(tmp_path / "sessions.db"))
        await store.init()
        try:
            assert await store.read("test:u1") is None

            await store.write(
                "test:u1",
                {"id": "test:u1", "platform": "test", "last_activity": 1.5, "data": {"名字": "ann"}},
            )
            record = await store.read("test:u1")
            assert record == {
                "id": "test:u1",
                "platform": "test",
                "last_activity": 1.5,
                "data": {"名字": "ann"},
            }

            await store.write(
                "test:u1",
                {"id": "test:u1", "platform": "test", "last_activity": 2.5, "data": {"n": 1}},
            )
            record = await store.read("test:u1")
            assert record["data"] == {"n": 1}
            assert record["last_activity"] == 2.5
            assert len(await store.all()) == 1

            await store.destroy("test:u1")
            assert await store.read("test:u1") is None
        finally:
            await store.dispose()

    @pytest.mark.asyncio
    async def test_concurrent_first_writes_do_not_conflict(self, tmp_path):
        store = SqlSessionStore(db_path=str(tmp_path / "sessions.db"))
        await store.init()
        try:
            results = await asyncio.gather(
                *(
                    store.write(
                        "test:u1",
                        {"id": "test:u1", "platform": "test", "last_activity": float(n), "data": {"n": n}},
                    )
                    for n in range(5)
                ),
                return_exceptions=True,
            )
            assert [r for r in results if isinstance(r, BaseException)] == []

            record = await store.read("test:u1")
            assert record["data"]["n"] in range(5)
            assert record["last_activity"] == float(record["data"]["n"])
            assert len(await store.all()) == 1

            await store.write(
                "test:u1",
                {"id": "test:u1", "platform": "test", "last_activity": 9.0, "data": {"n": 9}},
            )
            assert (await store.read("test:u1"))["data"] == {"n": 9}
        finally:
            await store.dispose()
