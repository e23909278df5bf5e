"""
会话存储工厂 - 根据配置创建会话存储
Session store factory - builds a session store from configuration.
"""

from __future__ import annotations

import logging
import os

from DialogRelay.config.manager import ConfigManager
from DialogRelay.kernel.errors import ConfigurationError
from DialogRelay.session.memory_store import MINUTES_IN_ONE_YEAR, MemorySessionStore
from DialogRelay.session.store import SessionStore

logger = logging.getLogger(__name__)

DEFAULT_SQLITE_PATH = os.path.join("data", "sessions.db")


def create_memory_session_store() -> SessionStore:
    """默认会话存储：500 条、一年过期 / Default store: 500 entries, one-year expiry."""
    return MemorySessionStore()


def create_session_store(config: ConfigManager) -> SessionStore:
    """
    根据 session.driver 创建会话存储
    Create a session store according to session.driver.
    """
    driver = config.get("session.driver", "memory")
    logger.debug("创建会话存储: %s", driver)

    if driver == "memory":
        return MemorySessionStore(
            max_entries=config.get("session.memory.max_entries", 500),
            expires_in_minutes=config.get(
                "session.memory.expires_in_minutes", MINUTES_IN_ONE_YEAR
            ),
        )

    if driver == "sqlite":
        # 延迟导入，仅在使用数据库存储时加载 SQLAlchemy
        from DialogRelay.session.sql_store import SqlSessionStore

        return SqlSessionStore(
            db_path=config.get("session.sqlite.db_path", DEFAULT_SQLITE_PATH)
        )

    raise ConfigurationError(f"Unknown session driver: {driver}")
