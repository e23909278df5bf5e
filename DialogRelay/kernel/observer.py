"""
错误观察者中枢 - 将未恢复的处理器错误通知给外部观察者
Error observer hub - notifies external observers of unrecovered handler errors.

观察者可以是同步或异步函数，签名为 (error, context)。
Observers may be sync or async callables with signature (error, context).

未注册任何观察者时，使用默认观察者将错误堆栈写入标准错误输出。
When no observer is connected, the default observer writes the traceback
to standard error. This is library-default behavior, not global state.
"""

from __future__ import annotations

import asyncio
import logging
import sys
import traceback
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

ErrorObserver = Callable[[BaseException, Any], Any]


def default_error_observer(error: BaseException, context: Any = None) -> None:
    """默认观察者：写入 stderr / Default observer: write to stderr."""
    traceback.print_exception(type(error), error, error.__traceback__, file=sys.stderr)


@dataclass
class ObserverBinding:
    """
    观察者绑定
    Observer binding.
    """

    observer: ErrorObserver
    observer_id: str = ""
    # 是否只触发一次
    once: bool = False


class ErrorObserverHub:
    """
    错误观察者中枢 - 管理观察者的注册与通知
    Error observer hub - manages observer registration and notification.
    """

    def __init__(self, default: ErrorObserver | None = default_error_observer) -> None:
        self._bindings: list[ObserverBinding] = []
        self._default = default
        self._counter = 0

    def connect(self, observer: ErrorObserver, once: bool = False) -> str:
        """
        注册观察者，返回 observer_id
        Connect an observer and return its observer_id.
        """
        self._counter += 1
        observer_id = f"observer_{self._counter}"
        self._bindings.append(
            ObserverBinding(observer=observer, observer_id=observer_id, once=once)
        )
        logger.debug("已注册错误观察者 %s", observer_id)
        return observer_id

    def disconnect(self, observer_id: str) -> bool:
        """断开指定观察者 / Disconnect an observer."""
        for binding in self._bindings:
            if binding.observer_id == observer_id:
                self._bindings.remove(binding)
                logger.debug("已断开错误观察者 %s", observer_id)
                return True
        return False

    async def emit(self, error: BaseException, context: Any = None) -> None:
        """
        通知所有观察者
        Notify every observer.

        观察者自身抛出的错误只记录日志，不会向上传播。
        Errors raised by observers are logged and never propagate.
        """
        bindings = list(self._bindings)
        if not bindings:
            if self._default is not None:
                await self._notify(self._default, error, context, "default")
            return

        for binding in bindings:
            if binding.once:
                # 先移除再通知，并发 emit 时 once 观察者只触发一次
                if binding not in self._bindings:
                    continue
                self._bindings.remove(binding)
            await self._notify(binding.observer, error, context, binding.observer_id)

    async def _notify(
        self,
        observer: ErrorObserver,
        error: BaseException,
        context: Any,
        observer_id: str,
    ) -> None:
        try:
            result = observer(error, context)
            if asyncio.iscoroutine(result) or asyncio.isfuture(result):
                await result
        except Exception:
            logger.exception("错误观察者 %s 处理错误时出错", observer_id)

    @property
    def observer_count(self) -> int:
        """已注册观察者数量（不含默认观察者） / Connected observers, default excluded."""
        return len(self._bindings)

    def clear(self) -> None:
        """清除所有观察者 / Clear all observers."""
        self._bindings.clear()
