"""
会话 - 每个对话的持久化记录
Session - the durable per-conversation record.

id 和 platform 在构造时确定，之后只读；
通过映射接口写入这两个键会被静默忽略。
id and platform are fixed at construction and read-only afterwards;
writes to those keys through the mapping interface are silently ignored.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Iterator, MutableMapping
from typing import Any

logger = logging.getLogger(__name__)

# 不可修改的身份字段
IDENTITY_KEYS = frozenset({"id", "platform"})
# 记录中的保留字段
RESERVED_KEYS = IDENTITY_KEYS | {"last_activity"}


class Session(MutableMapping):
    """
    会话记录
    Session record.
    """

    def __init__(
        self,
        id: str,
        platform: str,
        data: dict[str, Any] | None = None,
        last_activity: float | None = None,
    ) -> None:
        self._id = id
        self._platform = platform
        self._data: dict[str, Any] = {}
        self._last_activity = last_activity
        if data:
            self.update(data)

    @property
    def id(self) -> str:
        """会话 ID（platform:key） / Session id (platform:key)."""
        return self._id

    @property
    def platform(self) -> str:
        """平台名称 / Platform name."""
        return self._platform

    @property
    def last_activity(self) -> float | None:
        """最后活跃时间（秒） / Last activity time in epoch seconds."""
        return self._last_activity

    def touch(self) -> float:
        """
        更新最后活跃时间，保证严格递增
        Stamp last activity, strictly increasing across calls.
        """
        now = time.time()
        if self._last_activity is not None and now <= self._last_activity:
            now = math.nextafter(self._last_activity, math.inf)
        self._last_activity = now
        return now

    def __getitem__(self, key: str) -> Any:
        if key == "id":
            return self._id
        if key == "platform":
            return self._platform
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        if key in IDENTITY_KEYS:
            logger.debug("忽略对会话身份字段 %s 的写入", key)
            return
        if key == "last_activity":
            self._last_activity = value
            return
        self._data[key] = value

    def __delitem__(self, key: str) -> None:
        if key in IDENTITY_KEYS:
            return
        del self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"Session(id={self._id!r}, platform={self._platform!r}, data={self._data!r})"

    def to_record(self) -> dict[str, Any]:
        """
        转换为存储用的字典
        Convert into the plain dict written to session stores.
        """
        return {
            "id": self._id,
            "platform": self._platform,
            "last_activity": self._last_activity,
            "data": dict(self._data),
        }

    @classmethod
    def from_record(
        cls,
        record: dict[str, Any] | None,
        id: str,
        platform: str,
    ) -> Session:
        """
        从存储记录构建会话；记录中已有的身份字段优先
        Build a session from a stored record; stored identity wins.
        """
        record = record or {}
        data = record.get("data")
        if data is None:
            data = {k: v for k, v in record.items() if k not in RESERVED_KEYS}
        return cls(
            id=record.get("id") or id,
            platform=record.get("platform") or platform,
            data=data,
            last_activity=record.get("last_activity"),
        )
