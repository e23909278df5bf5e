"""
默认配置 - 框架的所有默认配置值
Default configuration - all default configuration values of the framework.
"""

from __future__ import annotations

from typing import Any

from DialogRelay.session.memory_store import MINUTES_IN_ONE_YEAR

# 上下文创建的默认并发上限
DEFAULT_CONTEXT_CONCURRENCY = 5


def build_default_config() -> dict[str, Any]:
    """
    构建默认配置
    Build the default configuration.
    """
    return {
        # 分发器配置
        "bot": {
            # True: 阻塞模式，等待所有上下文处理完成后返回
            "sync": False,
            "context_concurrency": DEFAULT_CONTEXT_CONCURRENCY,
            "initial_state": {},
        },
        # 会话存储配置
        "session": {
            # memory / sqlite
            "driver": "memory",
            "memory": {
                "max_entries": 500,
                "expires_in_minutes": MINUTES_IN_ONE_YEAR,
            },
            "sqlite": {
                "db_path": "data/sessions.db",
            },
        },
        # 日志配置
        "logging": {
            "level": "INFO",
            "file": "",
        },
    }
