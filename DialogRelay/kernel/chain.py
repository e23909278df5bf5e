"""
动作链 - 将一组动作组合为一个协作式动作
Action chain - composes a list of actions into one cooperative action.

与 Express 中间件类似，每一步通过 props["advance"] 决定是否继续。
Like Express middleware, each step decides whether to continue through
props["advance"]. A step that never advances short-circuits the rest.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from DialogRelay.kernel.action import Action, Continue, Props, action_name, invoke
from DialogRelay.kernel.errors import ChainConfigurationError

logger = logging.getLogger(__name__)


class BoundStep:
    """
    绑定步骤 - 已经固定 context 和 props 的链中一步
    Bound step - a chain step with its context and props fixed.

    调用时忽略传入的参数，因此既可以由蹦床执行器调用，
    也可以在上一步中直接 ``await props["advance"]()``。
    Call arguments are ignored, so the trampoline can run it and a previous
    step can also ``await props["advance"]()`` directly.
    """

    __slots__ = ("_action", "_context", "_props", "__name__")

    def __init__(self, action: Action, context: Any, props: Props) -> None:
        self._action = action
        self._context = context
        self._props = props
        self.__name__ = action_name(action)

    async def __call__(self, *_args: Any, **_kwargs: Any) -> Any:
        return await invoke(self._action, self._context, self._props)

    @property
    def props(self) -> Props:
        """绑定的 props / The bound props."""
        return self._props


def chain(actions: Sequence[Action]) -> Action:
    """
    组合动作链
    Compose an action chain.

    输入不合法时立即抛出 ChainConfigurationError，不会运行任何步骤。
    Raises ChainConfigurationError immediately on malformed input,
    before any step runs.
    """
    if not isinstance(actions, (list, tuple)):
        raise ChainConfigurationError("Chain stack must be a list or tuple of actions")
    for action in actions:
        if not callable(action):
            raise ChainConfigurationError("Chain must be composed of actions")

    steps = tuple(actions)

    def Chain(context: Any, props: Props | None = None) -> Any:
        base_props = dict(props or {})
        bound: BoundStep | None = None

        # 从最后一步向前绑定
        for step in reversed(steps):
            if bound is None:
                bound = BoundStep(step, context, dict(base_props))
            else:
                bound = BoundStep(step, context, {**base_props, "advance": bound})

        if bound is None:
            return None
        return Continue(bound)

    Chain.__name__ = "Chain(" + ", ".join(action_name(a) for a in steps) + ")"
    logger.debug("已组合动作链: %s", Chain.__name__)
    return Chain
