"""
Tests for Context state handling.
"""

from __future__ import annotations

import pytest

from DialogRelay.context.context import Context
from DialogRelay.kernel.observer import ErrorObserverHub
from DialogRelay.message.event import Event
from DialogRelay.session.session import Session


class TestContextState:
    """Test suite for Context state helpers."""

    def test_state_without_session(self):
        context = Context(event=Event(raw={}), initial_state={"step": 0})

        context.set_state({"step": 1, "name": "ann"})
        assert context.state == {"step": 1, "name": "ann"}

        context.reset_state()
        assert context.state == {"step": 0}
        assert context.platform == ""

    def test_state_lives_in_session(self):
        session = Session(id="test:1", platform="test")
        first = Context(event=Event(raw={}), session=session, initial_state={"step": 0})
        second = Context(event=Event(raw={}), session=session, initial_state={"step": 0})

        first.set_state({"step": 2})

        assert second.state == {"step": 2}
        assert session["_state"] == {"step": 2}
        assert first.platform == "test"

    def test_initial_state_is_copied(self):
        initial = {"items": []}
        context = Context(event=Event(raw={}), initial_state=initial)

        context.state["items"].append(1)

        assert initial == {"items": []}
        assert context.initial_state == {"items": []}

    def test_event_is_read_only(self):
        event = Event(raw={"message": {"text": "hi"}})

        assert event.text == "hi"
        assert event.is_text
        with pytest.raises(TypeError):
            event.raw["message"] = None

    @pytest.mark.asyncio
    async def test_emit_error_notifies_hub(self):
        seen = []
        hub = ErrorObserverHub()
        hub.connect(lambda error, context: seen.append((error, context)))
        context = Context(event=Event(raw={}), observer=hub)
        error = RuntimeError("boom")

        await context.emit_error(error)

        assert seen == [(error, context)]
