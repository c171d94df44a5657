"""ReactiveData — a cached, shareable view of one asynchronously produced value.

A ReactiveData wraps a producer: a zero-argument callable returning a
concurrent.futures.Future (or None when there is nothing to do). The
container runs the producer at most once at a time (single-flight), tracks
the outcome as a DataState, and broadcasts every state change to its
subscribers, replaying the latest state to late subscribers.

Thread safety: any thread may call any method. One re-entrant lock per
container guards the in-flight handle, every state write, and broadcast
delivery, so all subscribers see changes in the same order.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import CancelledError, Future, InvalidStateError
from typing import Callable, Generic, TypeVar

from reactive_data import _anchor
from reactive_data.state import LOADING, DataState, Failure, Loading, Ready
from reactive_data.stream import EventStream, ReplayStream, _DerivedStream

T = TypeVar("T")

Producer = Callable[[], "Future[T] | None"]

logger = logging.getLogger("reactive_data.container")


def _resolve(future: Future, *, result=None, error: BaseException | None = None) -> None:
    """Complete a caller-owned future unless the caller already cancelled it."""
    try:
        if error is not None:
            future.set_exception(error)
        else:
            future.set_result(result)
    except InvalidStateError:
        pass


def _is_ready(state: DataState) -> bool:
    return isinstance(state, Ready)


def _is_settled(state: DataState) -> bool:
    return not state.is_loading


def _pass_state(state: DataState, push: Callable) -> None:
    push(state)


def _pass_ready_value(state: DataState, push: Callable) -> None:
    match state:
        case Ready(value=value):
            push(value)
        case Loading() | Failure():
            pass


class ReactiveData(Generic[T]):
    """Single-flight reactive container around a value producer.

    Usage:
        data = ReactiveData(in_thread(fetch_profile))

        data.subscribe_state().subscribe(render)   # Loading -> Ready(profile)
        profile = data.require_value().result()    # or raises fetch's error
        data.reload(silent=True)                   # refresh without Loading

    push() / push_error() / uninitialize() write the state directly and do
    not touch an invocation already in flight. When that invocation later
    settles it overwrites the pushed state: last writer wins.
    """

    def __init__(self, producer: Producer, *, name: str | None = None) -> None:
        if not callable(producer):
            raise TypeError(f"producer must be callable, got {type(producer).__name__}")
        self._producer = producer
        self._name = name or getattr(producer, "__name__", "ReactiveData")
        self._lock = threading.RLock()
        self._in_flight: Future[T] | None = None
        self._waiters: list[Future[T]] = []
        self._states: ReplayStream[DataState[T]] = ReplayStream(
            LOADING, lock=self._lock, on_error=self._on_subscriber_error
        )

    # --- Current state ---

    @property
    def state(self) -> DataState[T]:
        return self._states.value

    @property
    def current_value(self) -> T | None:
        """The value of the current state if it is Ready, else None."""
        return self._states.value.value

    @property
    def is_in_flight(self) -> bool:
        with self._lock:
            return self._in_flight is not None

    # --- Single-flight coordinator ---

    def request_invocation(self, silent: bool = False) -> Future[T]:
        """Start the producer, or join the invocation already running.

        Returns a future owned by the caller that resolves with the
        invocation's value or exception. Cancelling it only abandons the
        caller's wait; the invocation runs to completion regardless.

        A producer returning None means nothing to do: the returned future
        is already resolved with None and the state is left alone.

        With silent=True the state stays as it is until settlement, instead
        of switching to Loading while the invocation runs.
        """
        waiter: Future[T] = Future()
        with self._lock:
            if self._in_flight is not None:
                logger.debug("%s: joining in-flight invocation", self._name)
                self._waiters.append(waiter)
                return waiter

            try:
                operation = self._producer()
            except Exception as exc:
                logger.debug("%s: producer raised %r", self._name, exc)
                self._states.emit(Failure(exc))
                _resolve(waiter, error=exc)
                return waiter

            if operation is None:
                logger.debug("%s: producer has nothing to do", self._name)
                _resolve(waiter, result=None)
                return waiter

            self._in_flight = operation
            self._waiters.append(waiter)
            _anchor.retain(self)
            logger.debug("%s: invocation started (silent=%s)", self._name, silent)
            if not silent:
                self._states.emit(LOADING)
            # Runs _settle immediately if the operation is already done.
            operation.add_done_callback(self._settle)
        return waiter

    def _settle(self, operation: Future[T]) -> None:
        """Record the outcome of the in-flight invocation and release it."""
        result = None
        if operation.cancelled():
            error: BaseException | None = CancelledError()
        else:
            error = operation.exception()
            if error is None:
                result = operation.result()

        with self._lock:
            if self._in_flight is operation:
                self._in_flight = None
            waiters, self._waiters = self._waiters, []
            _anchor.release(self)
            if error is None:
                logger.debug("%s: invocation settled with a value", self._name)
                self._states.emit(Ready(result))
            else:
                logger.debug("%s: invocation failed with %r", self._name, error)
                self._states.emit(Failure(error))

        for waiter in waiters:
            _resolve(waiter, result=result, error=error)

    # --- Consumption API ---

    def reload(self, silent: bool = False) -> None:
        """Fire-and-forget request_invocation(). Outcome is only visible as state."""
        self.request_invocation(silent=silent)

    def subscribe_state(self) -> EventStream[DataState[T]]:
        """Stream of states: the latest one first, then every change in order.

        Starts a reload when the current state is Loading or Failure.
        """
        match self.state:
            case Ready():
                pass
            case Loading() | Failure():
                self.reload()
        return _DerivedStream(self._states, _pass_state, track=False)

    def subscribe_values(self) -> EventStream[T]:
        """Stream of values from Ready states only.

        Starts a reload only when the current state is Loading. Unlike
        subscribe_state(), a Failure is not retried here.
        """
        match self.state:
            case Loading():
                self.reload()
            case Ready() | Failure():
                pass
        return _DerivedStream(self._states, _pass_ready_value, track=False)

    def await_value(self) -> Future[T]:
        """Future resolved with the first Ready value.

        Never fails: if the container never becomes Ready it never resolves.
        Cancel it to stop waiting.
        """
        return self.subscribe_state().filter(_is_ready).map(lambda s: s.value).first()

    def require_value(self) -> Future[T]:
        """Future resolved with the first Ready value, or failed with the first Failure's error.

        Cancel it to stop waiting.
        """
        settled = self.subscribe_state().first(_is_settled)
        future: Future[T] = Future()

        def _on_settled(done: Future[DataState[T]]) -> None:
            if done.cancelled():
                return
            match done.result():
                case Ready(value=value):
                    _resolve(future, result=value)
                case Failure(error=error):
                    _resolve(future, error=error)
                case Loading():
                    raise AssertionError("require_value() resolved while still Loading")

        def _on_done(done: Future[T]) -> None:
            if done.cancelled():
                settled.cancel()

        future.add_done_callback(_on_done)
        settled.add_done_callback(_on_settled)
        return future

    def push(self, value: T) -> None:
        """Set the state to Ready(value) without invoking the producer."""
        with self._lock:
            self._states.emit(Ready(value))

    def push_error(self, error: BaseException) -> None:
        """Set the state to Failure(error) without invoking the producer."""
        with self._lock:
            self._states.emit(Failure(error))

    def uninitialize(self) -> None:
        """Reset the state to Loading. An invocation in flight keeps running."""
        with self._lock:
            self._states.emit(LOADING)

    def _on_subscriber_error(self, exc: BaseException, callback: Callable) -> None:
        logger.exception("%s: subscriber %r failed during broadcast", self._name, callback)

    def __repr__(self) -> str:
        return f"ReactiveData({self._name}, {self.state!r})"
