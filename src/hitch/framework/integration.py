"""
Wiring of a :class:`~hitch.framework.lifecycle.Lifecycle` into host hooks.

==========================  ==============================================
Hook point                  Effect
==========================  ==============================================
``BEFORE_CONFIGURATION``    create the empty store, run the initializer
``ON_LOAD("app", app)``     expose the lifecycle as ``app.state.hitch``
``BEFORE_EAGER_LOAD``       drop component dirs from the host's eager load
``ON_RELOAD``               rebuild the container (old one disconnected)
``ON_CONSOLE_START``        echo hitch logs to stderr
==========================  ==============================================
"""

from __future__ import annotations

from typing import Any

from hitch.core.logging import configure_console_logger, get_logger

from .hooks import HookPoint, HookRegistry
from .lifecycle import Lifecycle

logger = get_logger(__name__)


class MapperIntegration:
    """Registers a lifecycle's callbacks on a :class:`HookRegistry`."""

    def __init__(self, lifecycle: Lifecycle):
        self.lifecycle = lifecycle

    def register(self, hooks: HookRegistry) -> HookRegistry:
        hooks.on(HookPoint.BEFORE_CONFIGURATION, self.before_configuration)
        hooks.on(HookPoint.ON_LOAD, self.on_load)
        hooks.on(HookPoint.BEFORE_EAGER_LOAD, self.before_eager_load)
        hooks.on(HookPoint.ON_RELOAD, self.on_reload)
        hooks.on(HookPoint.ON_CONSOLE_START, self.on_console_start)
        return hooks

    def boot(self, hooks: HookRegistry, *args: Any) -> None:
        hooks.run(HookPoint.BEFORE_CONFIGURATION, *args)

    # ── Callbacks ────────────────────────────────────────────────

    def before_configuration(self, *_: Any) -> None:
        self.lifecycle.ensure_config()
        self.lifecycle.load_initializer()

    def on_load(self, kind: str, component: Any) -> None:
        if kind != "app":
            return
        state = getattr(component, "state", None)
        if state is not None:
            state.hitch = self.lifecycle

    def before_eager_load(self, paths: list[Any]) -> None:
        before = len(paths)
        self.lifecycle.adjust_eager_load_paths(paths)
        if len(paths) != before:
            logger.debug("eager_load_paths_adjusted", removed=before - len(paths))

    def on_reload(self, *_: Any) -> None:
        self.lifecycle.reload()

    def on_console_start(self, *_: Any) -> None:
        configure_console_logger(other_orm_active=self.lifecycle.source is not None)

    # ── CLI ──────────────────────────────────────────────────────

    def cli_tasks_enabled(self) -> bool:
        """Database tasks are left to the other ORM when one is active."""
        return self.lifecycle.source is None
