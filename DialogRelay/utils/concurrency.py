"""
并发工具 - 固定大小的工作池
Concurrency utility - fixed-size worker pool.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

T = TypeVar("T")
R = TypeVar("R")

_UNSET: Any = object()


async def bounded_map(
    items: Sequence[T],
    fn: Callable[[T], Awaitable[R]],
    concurrency: int = 5,
) -> list[R]:
    """
    以固定数量的工作协程处理列表，结果保持输入顺序
    Process a list with a fixed number of workers; results keep input order.

    任一任务失败时取消其余工作协程并抛出该异常。
    If any item fails, the remaining workers are cancelled and the error is
    raised.
    """
    if concurrency < 1:
        raise ValueError("concurrency must be at least 1")
    if not items:
        return []

    queue: asyncio.Queue[tuple[int, T]] = asyncio.Queue()
    for index, item in enumerate(items):
        queue.put_nowait((index, item))

    results: list[Any] = [_UNSET] * len(items)

    async def worker() -> None:
        while True:
            try:
                index, item = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            results[index] = await fn(item)

    workers = [
        asyncio.create_task(worker()) for _ in range(min(concurrency, len(items)))
    ]
    try:
        await asyncio.gather(*workers)
    except BaseException:
        for task in workers:
            task.cancel()
        await asyncio.gather(*workers, return_exceptions=True)
        raise

    return results
