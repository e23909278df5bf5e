"""
上下文 - 每个事件独立的执行记录
Context - the per-event execution record.

同一请求派生的所有上下文共享同一个会话对象。
All contexts derived from one request share the same session object.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from DialogRelay.kernel.observer import ErrorObserverHub
from DialogRelay.message.event import Event
from DialogRelay.session.session import Session

logger = logging.getLogger(__name__)

# 会话中保存对话状态的键
STATE_KEY = "_state"


class Context:
    """
    上下文基类 - 由连接器创建，由分发器消费
    Context base - created by connectors, consumed by the dispatcher.

    子类可以定义异步方法 handler_did_end()，在处理成功后调用。
    Subclasses may define an async handler_did_end(), called after a
    successful run.
    """

    def __init__(
        self,
        *,
        event: Event,
        session: Session | None = None,
        initial_state: dict[str, Any] | None = None,
        request_context: dict[str, Any] | None = None,
        observer: ErrorObserverHub | None = None,
    ) -> None:
        self._event = event
        self._session = session
        self._initial_state: dict[str, Any] = copy.deepcopy(initial_state or {})
        self._request_context = request_context
        self._observer = observer or ErrorObserverHub()
        self._state: dict[str, Any] = copy.deepcopy(self._initial_state)

        # 处理结果
        self.response: Any = None
        # 会话是否已被安排写入
        self.is_session_written = False

        if session is not None and STATE_KEY not in session:
            session[STATE_KEY] = copy.deepcopy(self._initial_state)

    @property
    def platform(self) -> str:
        """平台名称 / Platform name."""
        return self._session.platform if self._session is not None else ""

    @property
    def event(self) -> Event:
        return self._event

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def request_context(self) -> dict[str, Any] | None:
        return self._request_context

    @property
    def initial_state(self) -> dict[str, Any]:
        return self._initial_state

    @property
    def observer(self) -> ErrorObserverHub:
        return self._observer

    @property
    def state(self) -> dict[str, Any]:
        """
        对话状态；有会话时保存在会话中
        Conversation state; stored in the session when one exists.
        """
        if self._session is not None:
            return self._session[STATE_KEY]
        return self._state

    def set_state(self, partial: dict[str, Any]) -> None:
        """
        浅合并更新状态
        Shallow-merge an update into the state.
        """
        if self.is_session_written:
            logger.warning("会话已被写入，之后的状态修改不会被持久化")
        new_state = {**self.state, **partial}
        if self._session is not None:
            self._session[STATE_KEY] = new_state
        else:
            self._state = new_state

    def reset_state(self) -> None:
        """重置为初始状态 / Reset to the initial state."""
        fresh = copy.deepcopy(self._initial_state)
        if self._session is not None:
            self._session[STATE_KEY] = fresh
        else:
            self._state = fresh

    async def emit_error(self, error: BaseException) -> None:
        """
        通知错误观察者
        Notify the error observers.
        """
        await self._observer.emit(error, self)
