"""
连接器基类 - 所有消息平台连接器的抽象基类
Connector base - abstract base class for all messaging platform connectors.

每个具体平台需要实现这个接口。
Each specific platform needs to implement this interface.

设计要求：
1. 从原始请求体推导会话键
2. 将请求体拆分为有序的事件列表
3. 为每个事件创建上下文
4. 根据请求体补充会话信息
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from DialogRelay.message.event import Event

if TYPE_CHECKING:
    from DialogRelay.context.context import Context
    from DialogRelay.kernel.observer import ErrorObserverHub
    from DialogRelay.session.session import Session


class Connector(ABC):
    """
    连接器抽象基类
    Connector abstract base.
    """

    @property
    @abstractmethod
    def platform(self) -> str:
        """平台标识（如 messenger、telegram） / Platform identifier."""
        ...

    @abstractmethod
    def get_unique_session_key(
        self,
        body: Any,
        request_context: dict[str, Any] | None = None,
    ) -> str | None:
        """
        从请求体推导会话键，返回 None 表示无状态处理
        Derive the session key; None means stateless dispatch.
        """
        ...

    @abstractmethod
    def map_request_to_events(self, body: Any) -> list[Event]:
        """
        将请求体转换为有序事件列表（可以为空）
        Translate the body into an ordered event list (may be empty).
        """
        ...

    @abstractmethod
    async def create_context(
        self,
        *,
        event: Event,
        session: Session | None,
        initial_state: dict[str, Any],
        request_context: dict[str, Any] | None,
        observer: ErrorObserverHub,
    ) -> Context:
        """
        为一个事件创建上下文
        Create the context for one event.
        """
        ...

    @abstractmethod
    async def update_session(self, session: Session, body: Any) -> None:
        """
        根据请求体补充会话信息（原地修改）
        Enrich the session from the body, in place.
        """
        ...
