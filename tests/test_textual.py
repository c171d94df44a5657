"""Tests for reactive_data.textual — Textual integration layer."""

import logging
import threading
from concurrent.futures import Future

import pytest
from textual.css.query import NoMatches

from reactive_data import LOADING, Failure, ReactiveData, Ready
from reactive_data import textual as rtx


class _MockApp:
    """Minimal mock matching the Textual App interface rtx needs."""

    def __init__(self, *, is_running=True):
        self.is_running = is_running
        self._call_from_thread_log = []

    def call_from_thread(self, fn, *args):
        self._call_from_thread_log.append((fn, args))
        fn(*args)


def _ready(value):
    data = ReactiveData(lambda: None)
    data.push(value)
    return data


class TestBindState:
    def test_replays_and_follows(self):
        app = _MockApp()
        data = _ready(1)
        effects = []
        rtx.bind_state(app, data, lambda s: effects.append(s))
        data.push(2)
        assert effects == [Ready(1), Ready(2)]

    def test_starts_reload_from_loading(self):
        app = _MockApp()
        pending = Future()
        data = ReactiveData(lambda: pending)
        effects = []
        rtx.bind_state(app, data, lambda s: effects.append(s))
        pending.set_result("x")
        assert effects == [LOADING, Ready("x")]

    def test_skips_when_not_running(self):
        app = _MockApp(is_running=False)
        data = _ready(1)
        effects = []
        rtx.bind_state(app, data, lambda s: effects.append(s))
        data.push(2)
        assert effects == []

    def test_skips_during_pause(self):
        app = _MockApp()
        data = _ready(1)
        effects = []
        rtx.bind_state(app, data, lambda s: effects.append(s))
        with rtx.pause(app):
            data.push(2)
        assert effects == [Ready(1)]

    def test_catches_nomatch(self):
        """NoMatches from widget queries are silently swallowed."""
        app = _MockApp()
        data = _ready(1)

        def _raise_nomatch(state):
            raise NoMatches("StatusFooter")

        unbind = rtx.bind_state(app, data, _raise_nomatch)
        data.push(2)
        unbind()

    def test_real_errors_propagate_on_bind(self):
        """Non-NoMatches exceptions raised during replay propagate to the binder."""
        app = _MockApp()
        data = _ready(1)

        def _raise_value_error(state):
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            rtx.bind_state(app, data, _raise_value_error)

    def test_real_errors_during_broadcast_are_logged(self, caplog):
        app = _MockApp()
        data = _ready(1)

        def _fail_on_two(state):
            if state == Ready(2):
                raise ValueError("boom")

        rtx.bind_state(app, data, _fail_on_two)
        with caplog.at_level(logging.ERROR, logger="reactive_data.container"):
            data.push(2)
        assert "boom" in caplog.text
        assert data.state == Ready(2)

    def test_dispose_stops_binding(self):
        app = _MockApp()
        data = _ready(1)
        effects = []
        unbind = rtx.bind_state(app, data, lambda s: effects.append(s))
        unbind()
        data.push(2)
        assert effects == [Ready(1)]

    def test_thread_marshal(self):
        """Changes from a background thread use call_from_thread."""
        app = _MockApp()
        data = _ready(1)
        effects = []
        rtx.bind_state(app, data, lambda s: effects.append(s))

        t = threading.Thread(target=data.push, args=(2,))
        t.start()
        t.join()

        assert effects == [Ready(1), Ready(2)]
        assert len(app._call_from_thread_log) == 1


class TestBindValues:
    def test_only_values(self):
        app = _MockApp()
        data = _ready("a")
        values = []
        rtx.bind_values(app, data, lambda v: values.append(v))
        data.push_error(RuntimeError())
        data.uninitialize()
        data.push("b")
        assert values == ["a", "b"]

    def test_no_reload_from_failure(self):
        app = _MockApp()
        calls = []

        def producer():
            calls.append(1)
            return None

        data = ReactiveData(producer)
        err = RuntimeError("down")
        data.push_error(err)
        rtx.bind_values(app, data, lambda v: None)
        assert calls == []
        assert data.state == Failure(err)


class TestPause:
    def test_pause_restores_on_exception(self):
        app = _MockApp()
        assert rtx.is_safe(app)

        with pytest.raises(RuntimeError):
            with rtx.pause(app):
                assert not rtx.is_safe(app)
                raise RuntimeError("oops")

        # Restored despite exception
        assert rtx.is_safe(app)

    def test_pause_does_not_mutate_app(self):
        """Pause state lives in the module, not on the app."""
        app = _MockApp()
        attrs_before = set(vars(app))
        with rtx.pause(app):
            attrs_during = set(vars(app))
        attrs_after = set(vars(app))
        assert attrs_before == attrs_during, (
            f"pause() added attributes to app: {attrs_during - attrs_before}"
        )
        assert attrs_before == attrs_after

    def test_multiple_apps_independent(self):
        """Pausing one app does not affect another."""
        app_a = _MockApp()
        app_b = _MockApp()
        with rtx.pause(app_a):
            assert not rtx.is_safe(app_a)
            assert rtx.is_safe(app_b)
