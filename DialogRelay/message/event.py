"""
消息事件 - 连接器从原始请求中拆分出的事件
Message event - events split from a raw request by a connector.

事件是不可变的输入描述，处理结果通过 Context 传递。
Events are immutable input descriptions; results travel through Context.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any


@dataclass(frozen=True)
class Event:
    """
    事件基类
    Event base.

    raw 保存平台原始事件数据（只读视图）。
    raw holds the platform's raw event data (read-only view).
    """

    raw: Any = field(default_factory=dict)

    def __post_init__(self) -> None:
        if isinstance(self.raw, dict):
            object.__setattr__(self, "raw", MappingProxyType(dict(self.raw)))

    @property
    def message(self) -> Any:
        """消息部分 / The message part, if any."""
        return self.raw.get("message")

    @property
    def is_message(self) -> bool:
        """是否为消息事件 / Whether this is a message event."""
        return self.message is not None

    @property
    def is_text(self) -> bool:
        """是否为文本消息 / Whether this is a text message."""
        message = self.message
        return isinstance(message, dict) and isinstance(message.get("text"), str)

    @property
    def text(self) -> str | None:
        """文本内容 / Text content."""
        if self.is_text:
            return self.message["text"]
        return None
