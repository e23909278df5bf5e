"""
控制台连接器 - 用于本地调试的最简连接器
Console connector - minimal connector for local development.

请求体格式 / Body format::

    {"message": {"text": "hi"}}
"""

from __future__ import annotations

import logging
from typing import Any

from DialogRelay.context.context import Context
from DialogRelay.gateway.connector import Connector
from DialogRelay.kernel.observer import ErrorObserverHub
from DialogRelay.message.event import Event
from DialogRelay.session.session import Session

logger = logging.getLogger(__name__)


class ConsoleEvent(Event):
    """控制台事件 / Console event."""

    pass


class ConsoleContext(Context):
    """
    控制台上下文 - 回复内容收集在 response 列表中
    Console context - replies are collected in the response list.
    """

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.response = []

    async def send_text(self, text: str) -> None:
        """发送文本 / Send text."""
        self.response.append({"type": "text", "text": text})
        logger.debug("控制台回复: %s", text)


class ConsoleConnector(Connector):
    """
    控制台连接器
    Console connector.
    """

    def __init__(self, session_key: str = "1") -> None:
        self._session_key = session_key

    @property
    def platform(self) -> str:
        return "console"

    def get_unique_session_key(
        self,
        body: Any,
        request_context: dict[str, Any] | None = None,
    ) -> str | None:
        return self._session_key

    def map_request_to_events(self, body: Any) -> list[Event]:
        if isinstance(body, list):
            return [ConsoleEvent(raw=item) for item in body]
        return [ConsoleEvent(raw=body)]

    async def create_context(
        self,
        *,
        event: Event,
        session: Session | None,
        initial_state: dict[str, Any],
        request_context: dict[str, Any] | None,
        observer: ErrorObserverHub,
    ) -> Context:
        return ConsoleContext(
            event=event,
            session=session,
            initial_state=initial_state,
            request_context=request_context,
            observer=observer,
        )

    async def update_session(self, session: Session, body: Any) -> None:
        if "user" not in session:
            session["user"] = {"id": self._session_key, "name": "you"}
