"""FastAPI binding: ``install()`` plus request dependencies."""

from hitch.api.deps import ContainerDep, LifecycleDep, get_container, get_lifecycle
from hitch.api.integration import install

__all__ = [
    "install",
    "get_lifecycle",
    "get_container",
    "ContainerDep",
    "LifecycleDep",
]
