"""
网关模块 - 平台连接器
Gateway module - platform connectors.
"""

from DialogRelay.gateway.connector import Connector
from DialogRelay.gateway.console import ConsoleConnector, ConsoleContext, ConsoleEvent

__all__ = ["Connector", "ConsoleConnector", "ConsoleContext", "ConsoleEvent"]
