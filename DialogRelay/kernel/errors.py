"""
异常定义 - 分发引擎抛出的异常类型
Exceptions - error types raised by the dispatch engine.
"""

from __future__ import annotations


class DialogRelayError(Exception):
    """所有框架异常的基类 / Base class of all framework errors."""

    pass


class ConfigurationError(DialogRelayError):
    """
    配置错误 - 缺少处理器、缺少请求体等，在任何 I/O 之前抛出
    Configuration error - missing handler, missing body, etc.
    Raised before any I/O is performed.
    """

    pass


class ChainConfigurationError(ConfigurationError, TypeError):
    """Raised when a chain is composed from something other than a list of actions."""

    pass
