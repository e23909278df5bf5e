"""
DialogRelay - 会话事件分发引擎
DialogRelay - conversational event dispatch engine.

接收消息平台的请求，解析会话，将请求拆分为事件，
通过可组合的对话动作处理每个事件并持久化会话。
Receives channel requests, resolves sessions, fans requests out into events,
runs each event through composable dialog actions and persists the session.
"""

from DialogRelay.kernel.action import Continue, Done, run
from DialogRelay.kernel.bot import Bot, RequestHandler
from DialogRelay.kernel.chain import chain
from DialogRelay.kernel.errors import (
    ChainConfigurationError,
    ConfigurationError,
    DialogRelayError,
)

__app_name__ = "DialogRelay"
__version__ = "1.0.0"

__all__ = [
    "Bot",
    "RequestHandler",
    "Continue",
    "Done",
    "run",
    "chain",
    "DialogRelayError",
    "ConfigurationError",
    "ChainConfigurationError",
]
