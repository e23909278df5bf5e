"""
会话存储 - 会话持久化后端的抽象接口
Session store - abstract interface of session persistence backends.

存储只处理普通字典记录，由 SessionManager 负责与 Session 互相转换。
Stores deal in plain dict records; SessionManager converts to and from Session.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

SessionRecord = dict[str, Any]


class SessionStore(ABC):
    """
    会话存储抽象基类
    Session store abstract base.
    """

    @abstractmethod
    async def init(self) -> None:
        """初始化存储（建表、建立连接等） / Initialize the store."""
        ...

    @abstractmethod
    async def read(self, key: str) -> SessionRecord | None:
        """读取会话记录，不存在时返回 None / Read a record, None when absent."""
        ...

    @abstractmethod
    async def write(self, key: str, record: SessionRecord) -> None:
        """写入会话记录 / Write a record."""
        ...

    @abstractmethod
    async def destroy(self, key: str) -> None:
        """删除会话记录 / Delete a record."""
        ...

    async def all(self) -> list[SessionRecord]:
        """
        获取所有会话记录（可选）
        Get every record (optional).
        """
        raise NotImplementedError("This session store does not support listing")
