"""
会话模块 - 会话记录、存储与管理
Session module - session records, stores and management.
"""

from DialogRelay.session.manager import SessionManager
from DialogRelay.session.memory_store import MemorySessionStore
from DialogRelay.session.session import Session
from DialogRelay.session.store import SessionStore

__all__ = ["Session", "SessionStore", "MemorySessionStore", "SessionManager"]
