"""
Shared fixtures: a recording connector and a recording session store.
"""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from DialogRelay.context.context import Context
from DialogRelay.gateway.connector import Connector
from DialogRelay.message.event import Event
from DialogRelay.session.memory_store import MemorySessionStore
from DialogRelay.session.store import SessionRecord


class RecordingContext(Context):
    """Context that exposes a send_text helper writing into response."""

    async def send_text(self, text: str) -> None:
        self.response = text


class RecordingConnector(Connector):
    """
    Connector for tests.

    Body format: {"session": <key or None>, "events": [<raw event>, ...]}
    """

    def __init__(self, create_delay: float = 0.0) -> None:
        self.calls: list[str] = []
        self.created: list[Context] = []
        self.create_delay = create_delay
        self.in_flight = 0
        self.max_in_flight = 0

    @property
    def platform(self) -> str:
        return "test"

    def get_unique_session_key(self, body: Any, request_context: Any = None) -> str | None:
        self.calls.append("get_unique_session_key")
        return body.get("session")

    def map_request_to_events(self, body: Any) -> list[Event]:
        self.calls.append("map_request_to_events")
        return [Event(raw=raw) for raw in body.get("events", [])]

    async def create_context(
        self,
        *,
        event: Event,
        session: Any,
        initial_state: dict[str, Any],
        request_context: Any,
        observer: Any,
    ) -> Context:
        self.calls.append("create_context")
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            # variable delay so creations complete out of order
            delay = self.create_delay * (1 + (len(self.created) % 3))
            await asyncio.sleep(delay)
        finally:
            self.in_flight -= 1
        context = RecordingContext(
            event=event,
            session=session,
            initial_state=initial_state,
            request_context=request_context,
            observer=observer,
        )
        self.created.append(context)
        return context

    async def update_session(self, session: Any, body: Any) -> None:
        self.calls.append("update_session")
        session["user"] = {"id": body.get("session")}


class RecordingStore(MemorySessionStore):
    """Memory store that records calls and can delay or fail writes."""

    def __init__(self, write_delay: float = 0.0, fail_writes: bool = False) -> None:
        super().__init__()
        self.write_delay = write_delay
        self.fail_writes = fail_writes
        self.init_calls = 0
        self.reads: list[str] = []
        self.writes: list[tuple[str, SessionRecord]] = []

    async def init(self) -> None:
        self.init_calls += 1
        await super().init()

    async def read(self, key: str) -> SessionRecord | None:
        self.reads.append(key)
        return await super().read(key)

    async def write(self, key: str, record: SessionRecord) -> None:
        if self.write_delay:
            await asyncio.sleep(self.write_delay)
        if self.fail_writes:
            raise OSError("disk full")
        self.writes.append((key, record))
        await super().write(key, record)


@pytest.fixture
def connector() -> RecordingConnector:
    return RecordingConnector()


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()


def make_body(*texts: str, session: str | None = "u1") -> dict[str, Any]:
    return {
        "session": session,
        "events": [{"message": {"text": text}} for text in texts],
    }


@pytest.fixture
def body() -> Any:
    """Factory building request bodies: body("hi", "there", session="u1")."""
    return make_body
