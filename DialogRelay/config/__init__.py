"""
配置模块
Config module.
"""

from DialogRelay.config.defaults import build_default_config
from DialogRelay.config.manager import ConfigManager

__all__ = ["ConfigManager", "build_default_config"]
