"""
会话管理器 - 会话的查找、创建与持久化
Session manager - session lookup, creation and persistence.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any

from DialogRelay.session.session import Session
from DialogRelay.session.store import SessionStore

if TYPE_CHECKING:
    from DialogRelay.gateway.connector import Connector

logger = logging.getLogger(__name__)


class SessionManager:
    """
    会话管理器
    Session manager.

    - 存储只初始化一次（并发的首个请求也只初始化一次）
    - 连接器没有返回会话键时不附加会话
    - 持久化失败只记录日志，不向调用方传播
    - The store is initialized once, even under concurrent first requests
    - No session is attached when the connector yields no session key
    - Persistence failures are logged, never propagated
    """

    def __init__(self, store: SessionStore) -> None:
        self._store = store
        self._initialized = False
        self._init_lock = asyncio.Lock()

    @property
    def store(self) -> SessionStore:
        """底层会话存储 / Underlying session store."""
        return self._store

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def init(self) -> None:
        """
        初始化会话存储（幂等）
        Initialize the session store (idempotent).
        """
        if self._initialized:
            return
        async with self._init_lock:
            if self._initialized:
                return
            await self._store.init()
            self._initialized = True
            logger.debug("会话存储已初始化: %s", type(self._store).__name__)

    async def resolve_session(
        self,
        connector: Connector,
        body: Any,
        request_context: dict[str, Any] | None = None,
    ) -> Session | None:
        """
        解析或创建请求对应的会话
        Resolve or create the session for a request.
        """
        session_key = connector.get_unique_session_key(body, request_context)
        if not session_key:
            logger.debug("连接器未返回会话键，无状态处理该请求")
            return None

        platform = connector.platform
        session_id = f"{platform}:{session_key}"

        record = await self._store.read(session_id)
        session = Session.from_record(record, id=session_id, platform=platform)

        logger.debug("读取会话: %s", session_id)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(json.dumps(session.to_record(), indent=2, default=str))

        await connector.update_session(session, body)
        return session

    async def persist(self, session: Session) -> bool:
        """
        更新最后活跃时间并写入会话；失败时返回 False
        Stamp last activity and write the session; returns False on failure.
        """
        session.touch()

        logger.debug("写入会话: %s", session.id)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(json.dumps(session.to_record(), indent=2, default=str))

        try:
            await self._store.write(session.id, session.to_record())
        except Exception:
            logger.exception("写入会话 %s 失败", session.id)
            return False
        return True
