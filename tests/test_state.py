"""Tests for DataState — Loading, Ready, Failure."""

from reactive_data import LOADING, Failure, Loading, Ready


class TestAccessors:
    def test_loading(self):
        assert LOADING.is_loading is True
        assert LOADING.value is None
        assert LOADING.error is None

    def test_ready(self):
        s = Ready(42)
        assert s.value == 42
        assert s.is_loading is False
        assert s.error is None

    def test_failure(self):
        err = ValueError("boom")
        s = Failure(err)
        assert s.error is err
        assert s.value is None
        assert s.is_loading is False

    def test_ready_none_is_still_ready(self):
        s = Ready(None)
        assert s.value is None
        assert not s.is_loading
        assert s.error is None


class TestEquality:
    def test_loading_instances_equal(self):
        assert Loading() == LOADING

    def test_ready_compares_by_value(self):
        assert Ready([1, 2]) == Ready([1, 2])
        assert Ready(1) != Ready(2)

    def test_cases_distinct(self):
        assert Ready(None) != LOADING
        assert Failure(ValueError()) != LOADING

    def test_repr(self):
        assert repr(LOADING) == "Loading()"
        assert "Ready(value=5)" in repr(Ready(5))


class TestMap:
    def test_transforms_ready(self):
        assert Ready(3).map(lambda v: v * 2) == Ready(6)

    def test_identity_holds_for_every_case(self):
        err = KeyError("k")
        for state in (LOADING, Ready("x"), Failure(err)):
            assert state.map(lambda v: v) == state

    def test_never_calls_fn_for_loading_or_failure(self):
        calls = []

        def fn(v):
            calls.append(v)
            return v

        assert LOADING.map(fn) is LOADING
        failure = Failure(RuntimeError("x"))
        assert failure.map(fn) is failure
        assert calls == []

    def test_composition(self):
        f = lambda v: v + 1
        g = lambda v: v * 10
        assert Ready(2).map(f).map(g) == Ready(2).map(lambda v: g(f(v)))
