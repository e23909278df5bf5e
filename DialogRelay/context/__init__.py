"""
上下文模块
Context module.
"""

from DialogRelay.context.context import Context

__all__ = ["Context"]
