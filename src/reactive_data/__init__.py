"""reactive-data: single-flight reactive containers for asynchronously produced values."""

from importlib.metadata import version as _version

__version__ = _version("reactive-data")

from reactive_data._anchor import get_in_flight_count
from reactive_data.state import DataState, Loading, Ready, Failure, LOADING
from reactive_data.stream import EventStream, ReplayStream, Disposer
from reactive_data.container import ReactiveData, Producer
from reactive_data.producers import in_thread, in_executor, on_loop, optional
# textual NOT auto-imported — opt-in only

__all__ = [
    "ReactiveData",
    "Producer",
    "DataState",
    "Loading",
    "Ready",
    "Failure",
    "LOADING",
    "EventStream",
    "ReplayStream",
    "Disposer",
    "in_thread",
    "in_executor",
    "on_loop",
    "optional",
    "get_in_flight_count",
]
