"""Host framework hook points.

Manifesto:
    Hitch does not care *how* a host framework boots, only *when*
    things happen.  Hosts fire these points; integrations register
    callbacks on them.  Callbacks run in registration order and errors
    propagate to whoever fired the point.

Tags:
    hitch, framework, hooks, lifecycle, registry

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from enum import Enum
from typing import Any

from hitch.core.logging import get_logger

logger = get_logger(__name__)

Hook = Callable[..., Any]


class HookPoint(str, Enum):
    """Points in the host's boot sequence.

    ``ON_LOAD`` receives ``(component_kind, component)``;
    ``BEFORE_EAGER_LOAD`` receives the host's mutable list of eager-load
    paths.  The others receive whatever the host passes (usually the app).
    """

    BEFORE_CONFIGURATION = "before_configuration"
    ON_LOAD = "on_load"
    BEFORE_EAGER_LOAD = "before_eager_load"
    ON_RELOAD = "on_reload"
    ON_CONSOLE_START = "on_console_start"


class HookRegistry:
    """Callbacks per :class:`HookPoint`."""

    def __init__(self) -> None:
        self._hooks: dict[HookPoint, list[Hook]] = defaultdict(list)

    def on(self, point: HookPoint | str, fn: Hook | None = None) -> Any:
        """Register *fn* for *point*; without *fn*, return a decorator."""
        point = HookPoint(point)

        def decorator(callback: Hook) -> Hook:
            self._hooks[point].append(callback)
            return callback

        if fn is None:
            return decorator
        return decorator(fn)

    def run(self, point: HookPoint | str, *args: Any) -> None:
        point = HookPoint(point)
        callbacks = list(self._hooks.get(point, ()))
        logger.debug("hook_run", point=point.value, callbacks=len(callbacks))
        for callback in callbacks:
            callback(*args)

    def callbacks(self, point: HookPoint | str) -> list[Hook]:
        return list(self._hooks.get(HookPoint(point), ()))

    def clear(self) -> None:
        """Clear all callbacks (for testing)."""
        self._hooks.clear()
