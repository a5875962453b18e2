"""
Catdex — Blocking Worker Pool
===============================

What:  A dedicated, bounded thread pool for blocking work.
Why:   Database calls and upload writes are synchronous. Running them on the
       event loop would stall every other request sharing it.
How:   Handlers `await executor.run(fn, *args)`; the call runs on one of
       `blocking_workers` threads and the coroutine suspends until it returns.
       The same ThreadPoolExecutor is handed to aiofiles for file writes.
"""

import asyncio
import functools
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Optional, TypeVar

from catdex.exceptions import PoolExhaustedError, UnexpectedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BlockingExecutor:
    """Owns the ThreadPoolExecutor that every blocking call is dispatched to."""

    def __init__(self, max_workers: int):
        self.max_workers = max_workers
        self.executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="catdex-blocking",
        )

    async def run(
        self,
        fn: Callable[..., T],
        *args: Any,
        queue_timeout: Optional[float] = None,
        **kwargs: Any,
    ) -> T:
        """
        Run `fn(*args, **kwargs)` on the worker pool and await its result.

        Exceptions raised by `fn` propagate unchanged. A failure to dispatch
        (the executor is shut down) raises UnexpectedError.

        With `queue_timeout`, a call still waiting for a free thread after that
        many seconds is cancelled and PoolExhaustedError is raised. A call
        that has started always runs to completion.
        """
        call = functools.partial(fn, *args, **kwargs)
        try:
            cf = self.executor.submit(call)
        except RuntimeError as e:
            logger.error("Blocking thread pool error dispatching %s: %s", _name(fn), e)
            raise UnexpectedError(
                operation="dispatch",
                context={"callable": _name(fn)},
            ) from e
        future = asyncio.wrap_future(cf)
        if queue_timeout is None:
            return await future

        try:
            return await asyncio.wait_for(asyncio.shield(future), queue_timeout)
        except asyncio.TimeoutError:
            if cf.cancel():
                logger.warning(
                    "No worker thread free for %s within %.1fs", _name(fn), queue_timeout
                )
                raise PoolExhaustedError(
                    timeout=queue_timeout,
                    context={"callable": _name(fn)},
                ) from None
        return await future

    def shutdown(self) -> None:
        self.executor.shutdown(wait=False, cancel_futures=True)


def _name(fn: Callable[..., Any]) -> str:
    return getattr(fn, "__qualname__", repr(fn))
