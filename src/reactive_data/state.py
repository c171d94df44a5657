"""DataState — the outcome of the latest attempt to produce a value.

Exactly one of three cases is active:
- Loading: nothing available yet (or a non-silent reload is running).
- Ready(value): the producer delivered a value.
- Failure(error): the producer failed with an error.

Each case carries the same accessors (value, is_loading, error) and map(),
so callers can read a state without matching on it. Code that branches on
the case uses `match` over the three classes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar, Union

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True, slots=True)
class Loading:
    """No value is available yet."""

    @property
    def value(self) -> None:
        return None

    @property
    def is_loading(self) -> bool:
        return True

    @property
    def error(self) -> None:
        return None

    def map(self, fn: Callable[[object], U]) -> Loading:
        return self


@dataclass(frozen=True, slots=True)
class Ready(Generic[T]):
    """The producer delivered `value`."""

    value: T

    @property
    def is_loading(self) -> bool:
        return False

    @property
    def error(self) -> None:
        return None

    def map(self, fn: Callable[[T], U]) -> Ready[U]:
        """Transform the payload. The only case where fn is called."""
        return Ready(fn(self.value))


@dataclass(frozen=True, slots=True)
class Failure:
    """The producer failed with `error`."""

    error: BaseException

    @property
    def value(self) -> None:
        return None

    @property
    def is_loading(self) -> bool:
        return False

    def map(self, fn: Callable[[object], U]) -> Failure:
        return self


DataState = Union[Loading, Ready[T], Failure]

LOADING = Loading()
