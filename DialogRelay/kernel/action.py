"""
对话动作 - 可组合的对话步骤与蹦床执行器
Dialog actions - composable dialog steps and the trampoline runner.

一个动作接收 (context, props)，返回 Continue(下一个动作) 或终止值。
An action receives (context, props) and returns Continue(next_action)
or a terminal value.

执行器反复运行返回的动作直到得到终止值，调用栈不会增长。
The runner keeps invoking returned actions until a terminal value is
produced, without growing the call stack.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

# 动作属性包（不持久化）
Props = dict[str, Any]

# 动作：可以是同步或异步函数
Action = Callable[..., Any]


@dataclass(frozen=True)
class Done:
    """
    终止结果 - 对话链结束并携带最终值
    Terminal result - the dialog ends with a final value.
    """

    value: Any = None


@dataclass(frozen=True)
class Continue:
    """
    继续结果 - 将控制权交给下一个动作
    Continuation result - hands control to the next action.
    """

    action: Action


def action_name(action: Action) -> str:
    """获取动作名称（用于调试日志） / Get an action name for debug logs."""
    return getattr(action, "__name__", None) or type(action).__name__ or "Anonymous"


async def invoke(action: Action, context: Any, props: Props) -> Any:
    """
    调用单个动作，兼容同步和异步实现
    Invoke a single action, accepting both sync and async implementations.
    """
    result = action(context, props)
    if inspect.isawaitable(result):
        result = await result
    return result


def run(action: Action) -> Action:
    """
    将动作包装为蹦床执行器
    Wrap an action into a trampoline runner.

    首个动作接收调用方的 props，后续每一步都接收空的 props。
    The first action receives the caller's props; every following step
    receives an empty props dict.
    """

    async def Run(context: Any, props: Props | None = None) -> Any:
        current: Action = action
        logger.debug("当前对话步骤: %s", action_name(current))
        result = await invoke(current, context, props if props is not None else {})

        while isinstance(result, Continue):
            current = result.action
            logger.debug("当前对话步骤: %s", action_name(current))
            result = await invoke(current, context, {})

        if isinstance(result, Done):
            return result.value
        return result

    Run.__name__ = f"Run({action_name(action)})"
    return Run
