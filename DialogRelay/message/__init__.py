"""
消息模块 - 事件定义
Message module - event definitions.
"""

from DialogRelay.message.event import Event

__all__ = ["Event"]
