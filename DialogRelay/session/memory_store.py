"""
内存会话存储 - 带容量上限和过期时间的 LRU 存储
Memory session store - LRU store with a size cap and expiry.
"""

from __future__ import annotations

import copy
import logging
import time
from collections import OrderedDict

from DialogRelay.session.store import SessionRecord, SessionStore

logger = logging.getLogger(__name__)

MINUTES_IN_ONE_YEAR = 365 * 24 * 60


class MemorySessionStore(SessionStore):
    """
    内存会话存储
    In-memory session store.

    记录以深拷贝保存，行为与外部持久化存储一致。
    Records are deep-copied in and out, matching an external durable store.
    """

    def __init__(
        self,
        max_entries: int = 500,
        expires_in_minutes: float = MINUTES_IN_ONE_YEAR,
    ) -> None:
        self._max_entries = max_entries
        self._expires_in = expires_in_minutes * 60
        # key -> (过期时间, 记录)
        self._entries: OrderedDict[str, tuple[float, SessionRecord]] = OrderedDict()

    async def init(self) -> None:
        logger.debug("内存会话存储已初始化 (容量=%d)", self._max_entries)

    async def read(self, key: str) -> SessionRecord | None:
        entry = self._entries.get(key)
        if entry is None:
            return None

        expires_at, record = entry
        if expires_at <= time.time():
            del self._entries[key]
            logger.debug("会话 %s 已过期", key)
            return None

        self._entries.move_to_end(key)
        return copy.deepcopy(record)

    async def write(self, key: str, record: SessionRecord) -> None:
        self._entries[key] = (time.time() + self._expires_in, copy.deepcopy(record))
        self._entries.move_to_end(key)

        while len(self._entries) > self._max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("会话 %s 被淘汰", evicted)

    async def destroy(self, key: str) -> None:
        self._entries.pop(key, None)

    async def all(self) -> list[SessionRecord]:
        now = time.time()
        return [
            copy.deepcopy(record)
            for expires_at, record in self._entries.values()
            if expires_at > now
        ]

    @property
    def size(self) -> int:
        """当前记录数 / Number of stored records."""
        return len(self._entries)
