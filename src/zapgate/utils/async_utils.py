"""Event loop helpers for running build steps from synchronous CLI code."""

import asyncio
import gc
import logging
import sys
import threading
from collections.abc import Coroutine
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _cancel_all_tasks(loop: asyncio.AbstractEventLoop) -> None:
    """Cancel whatever is still pending (log pumps, stray waits)."""
    tasks = asyncio.all_tasks(loop)
    for task in tasks:
        task.cancel()

    if tasks:
        loop.run_until_complete(asyncio.gather(*tasks, return_exceptions=True))


def _shutdown_loop_resources(loop: asyncio.AbstractEventLoop) -> None:
    for closer in (loop.shutdown_asyncgens, loop.shutdown_default_executor):
        try:
            loop.run_until_complete(closer())
        except RuntimeError:
            logger.debug("loop resource shutdown failed", exc_info=True)


def _run_in_fresh_loop(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine in a new loop and tear the loop down completely."""
    if sys.platform == "win32":
        loop = asyncio.ProactorEventLoop()
    else:
        loop = asyncio.new_event_loop()

    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        try:
            _cancel_all_tasks(loop)
            _shutdown_loop_resources(loop)
        finally:
            gc.collect()
            asyncio.set_event_loop(None)
            loop.close()


def safe_async_run(coro: Coroutine[Any, Any, T]) -> T:
    """
    Run an async build step to completion.

    If an event loop is already running in this thread (e.g. pytest-asyncio),
    the coroutine is executed in a separate thread with its own event loop.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return _run_in_fresh_loop(coro)

    result: T | None = None
    error: BaseException | None = None

    def _runner() -> None:
        nonlocal result, error
        try:
            result = _run_in_fresh_loop(coro)
        except BaseException as exc:
            error = exc

    thread = threading.Thread(target=_runner, daemon=True)
    thread.start()
    thread.join()

    if error is not None:
        raise error
    return result  # type: ignore[return-value]
