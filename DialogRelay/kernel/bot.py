"""
分发器 - 处理一次入站请求的完整流程
Dispatcher - the full pipeline for one inbound request.

流程：
1. 校验处理器和请求体（任何 I/O 之前）
2. 初始化会话存储
3. 解析会话
4. 将请求体拆分为事件
5. 以固定并发数为每个事件创建上下文
6. 对每个上下文应用插件
7. 通过蹦床执行器运行处理器，必要时运行错误处理器
8. 成功后调用可选的 handler_did_end
9. 阻塞模式等待全部完成并返回首个上下文的响应；
   非阻塞模式立即返回，后台完成会话持久化
"""

from __future__ import annotations

import asyncio
import copy
import inspect
import json
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from DialogRelay.config.defaults import DEFAULT_CONTEXT_CONCURRENCY
from DialogRelay.kernel.action import Action, run
from DialogRelay.kernel.errors import ConfigurationError
from DialogRelay.kernel.observer import ErrorObserverHub
from DialogRelay.session.factory import create_memory_session_store
from DialogRelay.session.manager import SessionManager
from DialogRelay.session.session import Session
from DialogRelay.session.store import SessionStore
from DialogRelay.utils.concurrency import bounded_map

if TYPE_CHECKING:
    from DialogRelay.config.manager import ConfigManager
    from DialogRelay.context.context import Context
    from DialogRelay.gateway.connector import Connector

logger = logging.getLogger(__name__)

Plugin = Callable[[Any], Any]

MISSING_HANDLER_MESSAGE = (
    "Bot: Missing event handler function. You should assign it using on_event(...)"
)


def _dump(value: Any) -> str:
    try:
        return json.dumps(value, indent=2, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return repr(value)


def _unwrap_handler(handler: Any, method: str) -> Action:
    if not handler:
        raise ConfigurationError(
            f"{method}: Can not pass `None` or any falsy value as handler"
        )
    build = getattr(handler, "build", None)
    if callable(build):
        return build()
    if not callable(handler):
        raise ConfigurationError(f"{method}: handler must be an action or a builder")
    return handler


@dataclass(frozen=True)
class DispatchSettings:
    """
    分发配置快照 - 创建请求处理器时冻结
    Dispatch settings snapshot - frozen when the request handler is created.
    """

    handler: Action
    error_handler: Action | None
    initial_state: dict[str, Any]
    plugins: tuple[Plugin, ...]
    sync: bool
    context_concurrency: int


class Bot:
    """
    机器人 - 可链式调用的配置构建器与分发器
    Bot - fluent configuration builder and dispatcher.

    on_event / on_error / set_initial_state / use 均返回自身，
    在 create_request_handler() 之后配置被冻结。
    on_event / on_error / set_initial_state / use all return the bot itself;
    configuration is frozen once create_request_handler() is called.
    """

    def __init__(
        self,
        *,
        connector: Connector,
        session_store: SessionStore | None = None,
        sync: bool = False,
        context_concurrency: int = DEFAULT_CONTEXT_CONCURRENCY,
    ) -> None:
        self._connector = connector
        self._session_manager = SessionManager(
            session_store or create_memory_session_store()
        )
        self._handler: Action | None = None
        self._error_handler: Action | None = None
        self._initial_state: dict[str, Any] = {}
        self._plugins: list[Plugin] = []
        self._sync = sync
        self._context_concurrency = context_concurrency
        self._observer = ErrorObserverHub()
        self._frozen = False
        self._request_handlers: list[RequestHandler] = []

    @classmethod
    def from_config(
        cls,
        connector: Connector,
        config: ConfigManager,
        session_store: SessionStore | None = None,
    ) -> Bot:
        """
        根据配置创建机器人
        Create a bot from configuration.
        """
        from DialogRelay.session.factory import create_session_store

        bot = cls(
            connector=connector,
            session_store=session_store or create_session_store(config),
            sync=bool(config.get("bot.sync", False)),
            context_concurrency=config.get(
                "bot.context_concurrency", DEFAULT_CONTEXT_CONCURRENCY
            ),
        )
        initial_state = config.get("bot.initial_state")
        if initial_state:
            bot.set_initial_state(initial_state)
        return bot

    @property
    def connector(self) -> Connector:
        return self._connector

    @property
    def sessions(self) -> SessionStore:
        """会话存储 / Session store."""
        return self._session_manager.store

    @property
    def session_manager(self) -> SessionManager:
        return self._session_manager

    @property
    def handler(self) -> Action | None:
        return self._handler

    @property
    def observer(self) -> ErrorObserverHub:
        """
        错误观察者中枢，用于注册外部日志或监控
        Error observer hub, for external logging or metrics.
        """
        return self._observer

    @property
    def frozen(self) -> bool:
        return self._frozen

    def _ensure_mutable(self, method: str) -> None:
        if self._frozen:
            raise ConfigurationError(
                f"{method}: Bot configuration is frozen after create_request_handler()"
            )

    def on_event(self, handler: Any) -> Bot:
        """注册顶层处理器 / Register the top-level handler."""
        self._ensure_mutable("on_event")
        self._handler = _unwrap_handler(handler, "on_event")
        return self

    def on_error(self, handler: Any) -> Bot:
        """注册错误处理器 / Register the error handler."""
        self._ensure_mutable("on_error")
        self._error_handler = _unwrap_handler(handler, "on_error")
        return self

    def set_initial_state(self, initial_state: dict[str, Any]) -> Bot:
        """设置初始状态 / Set the initial state."""
        self._ensure_mutable("set_initial_state")
        self._initial_state = initial_state
        return self

    def use(self, plugin: Plugin) -> Bot:
        """注册插件 / Register a plugin."""
        self._ensure_mutable("use")
        self._plugins.append(plugin)
        return self

    async def init_session_store(self) -> None:
        await self._session_manager.init()

    def create_request_handler(self) -> RequestHandler:
        """
        创建请求处理函数
        Create the request-processing function.
        """
        if self._handler is None:
            raise ConfigurationError(MISSING_HANDLER_MESSAGE)

        self._frozen = True
        settings = DispatchSettings(
            handler=self._handler,
            error_handler=self._error_handler,
            initial_state=copy.deepcopy(self._initial_state),
            plugins=tuple(self._plugins),
            sync=self._sync,
            context_concurrency=self._context_concurrency,
        )
        request_handler = RequestHandler(self, settings)
        self._request_handlers.append(request_handler)
        return request_handler

    async def wait_pending(self) -> None:
        """
        等待所有后台处理完成（非阻塞模式）
        Wait for all background processing to finish (non-blocking mode).
        """
        for request_handler in self._request_handlers:
            await request_handler.wait_pending()


class RequestHandler:
    """
    请求处理函数 - handler(body, request_context=None)
    Request handler - handler(body, request_context=None).

    调用本身会同步校验请求体，然后返回执行分发流程的协程。
    The call itself validates the body synchronously, then returns the
    coroutine performing the dispatch.
    """

    def __init__(self, bot: Bot, settings: DispatchSettings) -> None:
        self._bot = bot
        self._settings = settings
        self._pending: set[asyncio.Task] = set()

    @property
    def settings(self) -> DispatchSettings:
        return self._settings

    def __call__(
        self,
        body: Any,
        request_context: dict[str, Any] | None = None,
    ) -> Any:
        if not body:
            raise ConfigurationError("Bot.create_request_handler: Missing argument.")
        return self._dispatch(body, request_context)

    async def _dispatch(
        self,
        body: Any,
        request_context: dict[str, Any] | None,
    ) -> Any:
        bot = self._bot
        settings = self._settings
        connector = bot.connector

        logger.debug("收到请求:\n%s", _dump(body))

        await bot.session_manager.init()

        session = await bot.session_manager.resolve_session(
            connector, body, request_context
        )

        events = connector.map_request_to_events(body)

        async def create(event: Any) -> Context:
            return await connector.create_context(
                event=event,
                session=session,
                initial_state=settings.initial_state,
                request_context=request_context,
                observer=bot.observer,
            )

        contexts = await bounded_map(
            events, create, concurrency=settings.context_concurrency
        )

        # 在处理器运行前调用所有插件
        for context in contexts:
            for plugin in settings.plugins:
                result = plugin(context)
                if inspect.isawaitable(result):
                    await result

        if settings.sync:
            await self._settle(contexts, session)

            # 多事件请求只返回第一个上下文的响应，不做合并
            response = contexts[0].response if contexts else None
            if response is not None:
                logger.debug("返回响应:\n%s", _dump(response))
            return response

        task = asyncio.create_task(self._settle_in_background(contexts, session))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return None

    async def _process_context(self, context: Context) -> None:
        """
        处理单个上下文：处理器 -> handler_did_end -> 错误处理器 -> 观察者
        Process one context: handler -> handler_did_end -> error handler -> observers.
        """
        settings = self._settings
        try:
            try:
                await run(settings.handler)(context)
                handler_did_end = getattr(context, "handler_did_end", None)
                if handler_did_end is not None:
                    result = handler_did_end()
                    if inspect.isawaitable(result):
                        await result
            except Exception as err:
                if settings.error_handler is None:
                    raise
                await run(settings.error_handler)(context, {"error": err})
        except Exception as err:
            await context.emit_error(err)
            raise

    async def _settle(self, contexts: Sequence[Context], session: Session | None) -> None:
        """
        等待所有上下文处理完成，全部成功时写入会话（每个请求最多一次）
        Wait for every context to settle, then write the session (at most once)
        when none of them failed.
        """
        results = await asyncio.gather(
            *(self._process_context(context) for context in contexts),
            return_exceptions=True,
        )

        errors = [result for result in results if isinstance(result, BaseException)]
        if errors:
            # 有上下文失败时不写入会话，避免持久化处理到一半的状态
            logger.error(
                "%d/%d 个上下文处理失败，本次请求不写入会话",
                len(errors),
                len(contexts),
                exc_info=errors[0],
            )
            return

        if session is not None:
            for context in contexts:
                context.is_session_written = True
            await self._bot.session_manager.persist(session)

    async def _settle_in_background(
        self, contexts: Sequence[Context], session: Session | None
    ) -> None:
        try:
            await self._settle(contexts, session)
        except Exception:
            logger.exception("后台处理请求时出错")

    @property
    def pending_count(self) -> int:
        """尚未完成的后台任务数 / Number of unfinished background tasks."""
        return len(self._pending)

    async def wait_pending(self) -> None:
        """
        等待所有后台任务完成
        Wait for all background tasks to finish.
        """
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
