"""Backward-compatible aliases for renamed configuration settings.

Gateways used to be called *repositories*.  These shims keep old setup
code working while logging a ``deprecated_setting`` warning on every use.
"""

from __future__ import annotations

from typing import Any

from hitch.core.logging import get_logger

from .gateways import GatewaySpec
from .store import MappingConfig

logger = get_logger(__name__)


def _warn(old: str, new: str) -> None:
    logger.warning("deprecated_setting", setting=old, replacement=new)


def repositories(config: MappingConfig) -> dict[str, GatewaySpec]:
    """Deprecated alias for ``config.gateways``."""
    _warn("repositories", "gateways")
    return config.gateways


def set_repository(config: MappingConfig, name: str, spec: Any) -> GatewaySpec:
    """Deprecated alias for ``config.set_gateway``."""
    _warn("set_repository", "set_gateway")
    return config.set_gateway(name, spec)
