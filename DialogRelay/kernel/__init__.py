"""
内核模块 - 对话动作、动作链、错误观察者与分发器
Kernel module - dialog actions, chains, error observers and the dispatcher.
"""

from DialogRelay.kernel.action import Continue, Done, run
from DialogRelay.kernel.bot import Bot, RequestHandler
from DialogRelay.kernel.chain import chain
from DialogRelay.kernel.observer import ErrorObserverHub

__all__ = ["Bot", "RequestHandler", "Continue", "Done", "run", "chain", "ErrorObserverHub"]
