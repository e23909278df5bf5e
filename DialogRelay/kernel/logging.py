"""
Logging System - Centralized logging setup for DialogRelay.

Provides colored console logging and optional file logging with rotation.
Request bodies, session reads/writes and outgoing responses are logged at
DEBUG level by the dispatcher.
"""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

import colorlog

ROOT_LOGGER_NAME = "DialogRelay"

CONSOLE_FORMAT = (
    "%(log_color)s%(asctime)s | %(levelname)-8s | %(name)s%(reset)s | %(message)s"
)
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _resolve_level(level: int | str) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.INFO)
    return level


def setup_logging(
    level: int | str = "INFO",
    log_file: str | None = None,
) -> logging.Logger:
    """
    Configure the DialogRelay logger.

    Calling it again replaces the handlers installed by a previous call.
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(_resolve_level(level))

    for handler in list(root.handlers):
        if getattr(handler, "_dialogrelay", False):
            root.removeHandler(handler)
            handler.close()

    console_formatter = colorlog.ColoredFormatter(
        CONSOLE_FORMAT,
        datefmt=DATE_FORMAT,
        log_colors={
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "red,bg_white",
        },
    )
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(console_formatter)
    console_handler._dialogrelay = True  # type: ignore[attr-defined]
    root.addHandler(console_handler)

    if log_file:
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
        file_handler.setLevel(logging.DEBUG)
        file_handler._dialogrelay = True  # type: ignore[attr-defined]
        root.addHandler(file_handler)

    root.debug("日志系统已初始化 (级别=%s)", level)
    return root


def configure_from_settings(settings: dict) -> logging.Logger:
    """Configure logging from the ``logging`` section of the config."""
    return setup_logging(
        level=settings.get("level", "INFO"),
        log_file=settings.get("file") or None,
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the DialogRelay namespace."""
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
