"""
Host framework glue: hook points, lifecycle, container slot.

Usage::

    from hitch.framework import HookRegistry, Lifecycle, MapperIntegration

    lifecycle = Lifecycle()
    hooks = MapperIntegration(lifecycle).register(HookRegistry())
    hooks.run(HookPoint.BEFORE_CONFIGURATION)
    hooks.run(HookPoint.ON_RELOAD)
"""

from hitch.framework.hooks import HookPoint, HookRegistry
from hitch.framework.integration import MapperIntegration
from hitch.framework.lifecycle import Lifecycle
from hitch.framework.slot import ContainerSlot

__all__ = [
    "HookPoint",
    "HookRegistry",
    "Lifecycle",
    "MapperIntegration",
    "ContainerSlot",
]
