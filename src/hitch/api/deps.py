"""
FastAPI dependencies for the live container.

Usage in routers::

    from hitch.api.deps import ContainerDep

    @router.get("/things")
    def list_things(container: ContainerDep):
        ...

The container is leased for the whole request, so a concurrent reload
cannot disconnect it while the handler still uses it.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Annotated, Any

from fastapi import Depends, Request

from hitch.framework.lifecycle import Lifecycle


def get_lifecycle(request: Request) -> Lifecycle:
    """The lifecycle installed on the application."""
    return request.app.state.hitch


def get_container(
    lifecycle: Annotated[Lifecycle, Depends(get_lifecycle)],
) -> Iterator[Any]:
    """Yield the current container under a lease for the request lifespan."""
    with lifecycle.slot.lease() as container:
        yield container


LifecycleDep = Annotated[Lifecycle, Depends(get_lifecycle)]
ContainerDep = Annotated[Any, Depends(get_container)]
