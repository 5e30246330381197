"""
Install hitch into a FastAPI application.

``install()`` is the single composition root: it fires the boot hooks
in order and attaches the reload / shutdown behaviour to the app.

==========================  ==============================================
FastAPI moment              Hook point fired
==========================  ==============================================
``install()`` call          ``BEFORE_CONFIGURATION(app)``
``install()`` call          ``ON_LOAD("app", app)``
``install()`` call          ``BEFORE_EAGER_LOAD(app.state.eager_load_paths)``
lifespan startup            ``ON_RELOAD(app)`` once
every request (dev)         ``ON_RELOAD(app)`` via middleware
lifespan shutdown           ``lifecycle.disconnect_container()``
==========================  ==============================================

Usage::

    app = FastAPI()
    lifecycle = Lifecycle(settings)
    install(app, lifecycle)

    @app.get("/users")
    def users(container: ContainerDep):
        with container.relation("users").engine.connect() as conn:
            ...

Tags:
    hitch, api, fastapi, lifespan, composition-root

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from starlette.concurrency import run_in_threadpool

from hitch.core.errors import ContainerNotReadyError
from hitch.core.logging import get_logger
from hitch.framework.hooks import HookPoint, HookRegistry
from hitch.framework.integration import MapperIntegration
from hitch.framework.lifecycle import Lifecycle

from .middleware import ContainerReloadMiddleware, container_not_ready_handler

logger = get_logger(__name__)


def install(
    app: FastAPI,
    lifecycle: Lifecycle,
    *,
    hooks: HookRegistry | None = None,
    reload_per_request: bool | None = None,
) -> HookRegistry:
    """Wire *lifecycle* into *app* and return the hook registry used."""
    integration = MapperIntegration(lifecycle)
    hooks = integration.register(hooks or HookRegistry())

    integration.boot(hooks, app)
    hooks.run(HookPoint.ON_LOAD, "app", app)

    if not hasattr(app.state, "eager_load_paths"):
        app.state.eager_load_paths = []
    hooks.run(HookPoint.BEFORE_EAGER_LOAD, app.state.eager_load_paths)

    app.state.hitch_hooks = hooks
    app.router.lifespan_context = _wrap_lifespan(app.router.lifespan_context, hooks, lifecycle)
    app.add_exception_handler(ContainerNotReadyError, container_not_ready_handler)

    if reload_per_request is None:
        reload_per_request = lifecycle.settings.should_reload_per_request
    if reload_per_request:
        app.add_middleware(ContainerReloadMiddleware, hooks=hooks)

    logger.info(
        "hitch_installed",
        environment=lifecycle.settings.environment,
        reload_per_request=reload_per_request,
    )
    return hooks


def _wrap_lifespan(original: Any, hooks: HookRegistry, lifecycle: Lifecycle) -> Any:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[Any]:
        await run_in_threadpool(hooks.run, HookPoint.ON_RELOAD, app)
        try:
            async with original(app) as state:
                yield state
        finally:
            await run_in_threadpool(lifecycle.disconnect_container)
            logger.info("hitch_shutdown")

    return lifespan
