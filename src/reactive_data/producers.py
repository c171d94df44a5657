"""Producer adapters — turn ordinary callables into ReactiveData producers.

A producer is a zero-argument callable returning a concurrent.futures.Future
(or None for "nothing to do"). These helpers build one from a blocking
function, an executor, or a coroutine function on an asyncio loop.

Usage:
    profile = ReactiveData(in_thread(lambda: api.get("/me")))
    feed = ReactiveData(on_loop(fetch_feed, loop))
    cache = ReactiveData(optional(lambda: session.logged_in, in_thread(load)))
"""

from __future__ import annotations

import asyncio
from concurrent.futures import Executor, Future
from threading import Thread
from typing import Any, Callable, Coroutine, TypeVar

from reactive_data.container import Producer

T = TypeVar("T")


def in_thread(fn: Callable[[], T]) -> Producer:
    """Each call runs fn in a fresh daemon thread.

    The returned Future resolves with fn's return value or exception.
    """

    def _produce() -> Future[T]:
        future: Future[T] = Future()
        future.set_running_or_notify_cancel()

        def _run() -> None:
            try:
                future.set_result(fn())
            except BaseException as exc:
                future.set_exception(exc)

        Thread(target=_run, daemon=True).start()
        return future

    _produce.__name__ = getattr(fn, "__name__", "in_thread")
    return _produce


def in_executor(executor: Executor, fn: Callable[[], T]) -> Producer:
    """Each call submits fn to executor."""

    def _produce() -> Future[T]:
        return executor.submit(fn)

    _produce.__name__ = getattr(fn, "__name__", "in_executor")
    return _produce


def on_loop(coro_fn: Callable[[], Coroutine[Any, Any, T]], loop: asyncio.AbstractEventLoop) -> Producer:
    """Each call schedules coro_fn() on loop (which must be running in another thread)."""

    def _produce() -> Future[T]:
        return asyncio.run_coroutine_threadsafe(coro_fn(), loop)

    _produce.__name__ = getattr(coro_fn, "__name__", "on_loop")
    return _produce


def optional(predicate: Callable[[], bool], producer: Producer) -> Producer:
    """Wrap producer so it reports nothing to do unless predicate() holds."""

    def _produce() -> Future | None:
        if not predicate():
            return None
        return producer()

    _produce.__name__ = getattr(producer, "__name__", "optional")
    return _produce
