"""Textual integration for reactive-data. Opt-in — requires textual.

Binds a ReactiveData's state or value stream to widget-updating callbacks.
Guard + NoMatches + thread-marshal are enforced here, not at callsites, and
the Textual coupling stays in this module.

_paused_apps has a single owner (this module) and an explicit API
(pause/is_safe): an app's id is present exactly while inside pause(app).
"""

import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

from reactive_data.stream import Disposer

# Module-owned pause state — keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend bound callbacks during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def _guard(app, effect_fn):
    """Wrap effect_fn: skip when unsafe, marshal to the app thread, ignore NoMatches.

    Off-thread deliveries go through app.call_from_thread, which waits for
    the app thread, so effects must not block on the bound container.
    """
    _main = threading.get_ident()

    def _safe(value):
        try:
            effect_fn(value)
        except NoMatches:
            pass

    def _guarded(value):
        if not is_safe(app):
            return
        if threading.get_ident() != _main:
            app.call_from_thread(_safe, value)
        else:
            _safe(value)

    return _guarded


def bind_state(app, data, effect_fn) -> Disposer:
    """Call effect_fn(state) for the current state and every later change.

    Like data.subscribe_state(), starts a reload from Loading or Failure.
    Returns a disposer that unbinds.
    """
    return data.subscribe_state().subscribe(_guard(app, effect_fn))


def bind_values(app, data, effect_fn) -> Disposer:
    """Call effect_fn(value) for every Ready value, current one included.

    Like data.subscribe_values(), starts a reload only from Loading.
    Returns a disposer that unbinds.
    """
    return data.subscribe_values().subscribe(_guard(app, effect_fn))
