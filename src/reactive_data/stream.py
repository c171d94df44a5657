"""Push-based event streams with replay and operator chaining.

EventStream: emit values, subscribe to them, compose with map/filter.
ReplayStream: an EventStream that remembers the last value and hands it to
every new subscriber before any later emission.

Operators are lazy: map()/filter() return a derived stream whose subscribe()
subscribes to the source, so a ReplayStream's replay flows through the whole
chain. dispose() tears down a stream and everything derived from it.

All delivery and registration on one stream is serialized by its lock, so
every subscriber sees emissions in the same order.
"""

from __future__ import annotations

import threading
from collections import deque
from concurrent.futures import Future, InvalidStateError
from typing import Callable, Generic, TypeVar

T = TypeVar("T")
U = TypeVar("U")

Disposer = Callable[[], None]
ErrorHandler = Callable[[BaseException, Callable], None]


def _noop() -> None:
    pass


class EventStream(Generic[T]):
    """Push-based event stream with operator chaining."""

    def __init__(self, *, lock: threading.RLock | None = None) -> None:
        self._subscribers: list[Callable[[T], None]] = []
        self._children: list[EventStream] = []  # downstream streams for dispose
        self._disposed = False
        self._parent_disposer: Disposer | None = None
        self._lock = lock if lock is not None else threading.RLock()
        self._pending: deque[T] = deque()
        self._delivering = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def emit(self, value: T) -> None:
        """Push a value to all subscribers.

        An emit() from inside a callback (same thread, lock re-entered) is
        queued and delivered after the current value has reached every
        subscriber, so all subscribers see values in the same order.
        """
        with self._lock:
            if self._disposed:
                return
            self._pending.append(value)
            if self._delivering:
                return  # the outermost emit() drains the queue
            self._delivering = True
            try:
                while self._pending:
                    self._deliver(self._pending.popleft())
            finally:
                self._delivering = False
                self._pending.clear()

    def _deliver(self, value: T) -> None:
        # Snapshot: callbacks may unsubscribe themselves mid-delivery.
        for cb in list(self._subscribers):
            cb(value)

    def subscribe(self, callback: Callable[[T], None]) -> Disposer:
        """Register a callback. Returns a function that removes it."""
        with self._lock:
            if self._disposed:
                return _noop
            self._subscribers.append(callback)

        def _unsubscribe() -> None:
            with self._lock:
                try:
                    self._subscribers.remove(callback)
                except ValueError:
                    pass  # already removed

        return _unsubscribe

    def map(self, fn: Callable[[T], U]) -> EventStream[U]:
        """Transform events through fn."""
        return _DerivedStream(self, lambda v, push: push(fn(v)))

    def filter(self, fn: Callable[[T], bool]) -> EventStream[T]:
        """Only pass events where fn returns True."""
        return _DerivedStream(self, lambda v, push: push(v) if fn(v) else None)

    def first(self, predicate: Callable[[T], bool] | None = None) -> Future[T]:
        """Future resolved with the first event matching predicate.

        The subscription is dropped as soon as the future is done, whether
        it resolved or the caller cancelled it. Cancelling never affects
        the stream itself.
        """
        future: Future[T] = Future()

        def _on_value(value: T) -> None:
            if future.done():
                return
            if predicate is not None and not predicate(value):
                return
            try:
                future.set_result(value)
            except InvalidStateError:
                pass  # cancelled concurrently

        unsubscribe = self.subscribe(_on_value)
        future.add_done_callback(lambda _: unsubscribe())
        return future

    def dispose(self) -> None:
        """Tear down this stream and all downstream children."""
        with self._lock:
            self._disposed = True
            self._subscribers.clear()
            children = list(self._children)
            self._children.clear()
        for child in children:
            child.dispose()
        if self._parent_disposer is not None:
            self._parent_disposer()
            self._parent_disposer = None

    def _track_child(self, child: EventStream) -> Disposer:
        """Register child for dispose propagation. Returns a disposer that removes it."""
        with self._lock:
            self._children.append(child)

        def _remove() -> None:
            with self._lock:
                try:
                    self._children.remove(child)
                except ValueError:
                    pass

        return _remove


class ReplayStream(EventStream[T]):
    """EventStream that caches the last value and replays it on subscribe.

    Registration and replay happen under the stream lock, so a subscriber
    never misses or double-sees an emission racing with its subscribe().
    `value` is updated as soon as emit() is called, even when delivery is
    queued behind a re-entrant emit; a subscriber joining mid-delivery is
    replayed the value being delivered and then receives the queued ones.

    With on_error set, a subscriber that raises during emit() is reported
    to on_error(exc, callback) and delivery continues with the rest.
    Without it, the exception propagates to the emitter.
    """

    def __init__(
        self,
        initial: T,
        *,
        lock: threading.RLock | None = None,
        on_error: ErrorHandler | None = None,
    ) -> None:
        super().__init__(lock=lock)
        self._value = initial
        self._dispatching = initial
        self._on_error = on_error

    @property
    def value(self) -> T:
        with self._lock:
            return self._value

    def emit(self, value: T) -> None:
        with self._lock:
            if self._disposed:
                return
            self._value = value
            super().emit(value)

    def _deliver(self, value: T) -> None:
        self._dispatching = value
        if self._on_error is None:
            super()._deliver(value)
            return
        for cb in list(self._subscribers):
            try:
                cb(value)
            except Exception as exc:
                self._on_error(exc, cb)

    def subscribe(self, callback: Callable[[T], None]) -> Disposer:
        with self._lock:
            unsubscribe = super().subscribe(callback)
            if not self._disposed:
                replay = self._dispatching if self._delivering else self._value
                try:
                    callback(replay)
                except BaseException:
                    unsubscribe()
                    raise
        return unsubscribe


class _DerivedStream(EventStream[U]):
    """Lazy operator stage: subscribing here subscribes to the source.

    step(value, push) decides what (if anything) reaches the subscriber.
    With track=False the source does not hold on to this stage, so it is
    not torn down by source.dispose() and is collected once unreferenced.
    """

    def __init__(
        self,
        source: EventStream,
        step: Callable[[object, Callable[[U], None]], None],
        *,
        track: bool = True,
    ) -> None:
        super().__init__(lock=source._lock)
        self._source = source
        self._step = step
        self._upstream: list[Disposer] = []
        if track:
            self._parent_disposer = source._track_child(self)

    def emit(self, value: U) -> None:
        raise TypeError("derived streams are fed by their source; emit() on the source instead")

    def subscribe(self, callback: Callable[[U], None]) -> Disposer:
        with self._lock:
            if self._disposed:
                return _noop
            upstream = self._source.subscribe(lambda v: self._step(v, callback))
            self._upstream.append(upstream)

        def _unsubscribe() -> None:
            upstream()
            with self._lock:
                try:
                    self._upstream.remove(upstream)
                except ValueError:
                    pass

        return _unsubscribe

    def dispose(self) -> None:
        with self._lock:
            upstream = list(self._upstream)
            self._upstream.clear()
        for disposer in upstream:
            disposer()
        super().dispose()
