"""
工具模块
Utilities.
"""

from DialogRelay.utils.concurrency import bounded_map

__all__ = ["bounded_map"]
