"""Tests for hitch.framework.hooks."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from hitch.framework.hooks import HookPoint, HookRegistry


class TestHookRegistry:
    def test_run_in_registration_order(self):
        hooks = HookRegistry()
        calls = []
        hooks.on(HookPoint.ON_RELOAD, lambda *a: calls.append(("first", a)))
        hooks.on(HookPoint.ON_RELOAD, lambda *a: calls.append(("second", a)))
        hooks.run(HookPoint.ON_RELOAD, "app")
        assert calls == [("first", ("app",)), ("second", ("app",))]

    def test_decorator(self):
        hooks = HookRegistry()

        @hooks.on("on_load")
        def loaded(kind, component):
            pass

        assert hooks.callbacks(HookPoint.ON_LOAD) == [loaded]

    def test_points_are_independent(self):
        hooks = HookRegistry()
        callback = MagicMock()
        hooks.on(HookPoint.ON_CONSOLE_START, callback)
        hooks.run(HookPoint.ON_RELOAD)
        callback.assert_not_called()

    def test_run_without_callbacks(self):
        HookRegistry().run(HookPoint.BEFORE_CONFIGURATION)

    def test_unknown_point(self):
        with pytest.raises(ValueError):
            HookRegistry().on("after_everything", print)

    def test_errors_propagate(self):
        hooks = HookRegistry()
        after = MagicMock()
        hooks.on(HookPoint.ON_RELOAD, MagicMock(side_effect=RuntimeError("boom")))
        hooks.on(HookPoint.ON_RELOAD, after)
        with pytest.raises(RuntimeError, match="boom"):
            hooks.run(HookPoint.ON_RELOAD)
        after.assert_not_called()

    def test_callbacks_returns_copy(self):
        hooks = HookRegistry()
        hooks.on(HookPoint.ON_RELOAD, print)
        hooks.callbacks(HookPoint.ON_RELOAD).clear()
        assert hooks.callbacks(HookPoint.ON_RELOAD) == [print]

    def test_clear(self):
        hooks = HookRegistry()
        hooks.on(HookPoint.ON_RELOAD, print)
        hooks.clear()
        assert hooks.callbacks(HookPoint.ON_RELOAD) == []
