"""
配置 - 分发器与会话存储的只读配置视图
Configuration - read-only view of the dispatcher and session store settings.

配置来源为字典或 JSON 文件，缺失的键由默认配置补全。
Settings come from a dict or a JSON file; missing keys are filled from the
default configuration.
"""

from __future__ import annotations

import copy
import json
import logging
from typing import Any

from DialogRelay.config.defaults import build_default_config
from DialogRelay.kernel.errors import ConfigurationError

logger = logging.getLogger(__name__)


def _with_defaults(values: dict[str, Any], defaults: dict[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(values)
    for key, default_value in defaults.items():
        if key not in merged:
            merged[key] = copy.deepcopy(default_value)
        elif isinstance(default_value, dict) and isinstance(merged[key], dict):
            merged[key] = _with_defaults(merged[key], default_value)
    return merged


class ConfigManager:
    """
    配置管理器
    Config manager.

    只暴露 Bot.from_config 和会话存储工厂需要的读取接口：
    嵌套键 get（如 "bot.sync"）和按段读取 section。
    Exposes only the reads Bot.from_config and the store factory need:
    dotted-key get ("bot.sync") and per-section reads.
    """

    def __init__(
        self,
        values: dict[str, Any] | None = None,
        defaults: dict[str, Any] | None = None,
    ) -> None:
        defaults = defaults if defaults is not None else build_default_config()
        self._config = _with_defaults(values or {}, defaults)
        self._validate()

    @classmethod
    def from_dict(cls, values: dict[str, Any]) -> ConfigManager:
        """从字典构建配置 / Build a config from a dict."""
        return cls(values)

    @classmethod
    def from_file(cls, path: str) -> ConfigManager:
        """
        从 JSON 文件构建配置；文件不存在时使用默认值
        Build a config from a JSON file; a missing file means defaults only.
        """
        try:
            with open(path, encoding="utf-8") as f:
                values = json.load(f)
        except FileNotFoundError:
            logger.info("未找到配置文件 %s，使用默认配置", path)
            return cls()
        except json.JSONDecodeError as err:
            raise ConfigurationError(f"Invalid config file {path}: {err}") from err

        if not isinstance(values, dict):
            raise ConfigurationError(f"Invalid config file {path}: expected a JSON object")
        logger.info("配置已从 %s 加载", path)
        return cls(values)

    def get(self, key: str, default: Any = None) -> Any:
        """
        获取配置值（支持嵌套键）
        Get a config value (supports dotted keys).
        """
        current: Any = self._config
        for k in key.split("."):
            if not isinstance(current, dict):
                return default
            current = current.get(k)
            if current is None:
                return default
        return current

    def section(self, name: str) -> dict[str, Any]:
        """获取配置段的副本 / Copy of one config section."""
        value = self._config.get(name)
        return copy.deepcopy(value) if isinstance(value, dict) else {}

    def _validate(self) -> None:
        concurrency = self.get("bot.context_concurrency")
        if concurrency is not None and (
            isinstance(concurrency, bool)
            or not isinstance(concurrency, int)
            or concurrency < 1
        ):
            raise ConfigurationError(
                f"bot.context_concurrency must be a positive integer, got {concurrency!r}"
            )

        initial_state = self.get("bot.initial_state")
        if initial_state is not None and not isinstance(initial_state, dict):
            raise ConfigurationError("bot.initial_state must be an object")
