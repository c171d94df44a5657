"""Keep-alive anchor — strong references to containers with work in flight.

A ReactiveData never cancels an invocation it started, and the settlement
callback writes back into the container. While an invocation is running the
container is held here, so it outlives its settlement even when every
external reference has been dropped.
"""

import threading

# Containers with an invocation in flight. Entry present <-> _in_flight set.
in_flight: set = set()

_lock = threading.Lock()


def retain(container) -> None:
    with _lock:
        in_flight.add(container)


def release(container) -> None:
    with _lock:
        in_flight.discard(container)


def get_in_flight_count() -> int:
    """Number of containers waiting on an invocation. Useful for testing."""
    with _lock:
        return len(in_flight)
