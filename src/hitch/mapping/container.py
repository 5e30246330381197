"""
Materialized mapping container.

:func:`create_container` turns a
:class:`~hitch.mapping.configuration.MappingConfiguration` into a
:class:`Container` holding live gateways (SQLAlchemy engines) and the
relations, mappers and commands discovered under the configured roots.

Every call builds an independent container: fresh engines, freshly
executed component modules, no state shared with earlier builds.

Usage::

    configuration = MappingConfiguration({"default": ("memory", "memory://test")})
    configuration.auto_registration(APP_ROOT)
    container = create_container(configuration)
    users = container.relation("users")
    ...
    container.disconnect()
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.engine import Engine

from hitch.core.config.gateways import GatewaySpec
from hitch.core.errors import ConfigError
from hitch.core.logging import get_logger

from .adapters import AdapterRegistry, adapter_registry
from .components import Command, Component, Mapper, Relation
from .configuration import MappingConfiguration
from .loader import discover

logger = get_logger(__name__)


class Gateway:
    """A named connection to one datastore."""

    def __init__(self, name: str, spec: GatewaySpec, engine: Engine):
        self.name = name
        self.spec = spec
        self.engine = engine
        self.connected = True

    @property
    def adapter(self) -> str:
        return self.spec.adapter

    def disconnect(self, *, close: bool = True) -> None:
        """Release pooled connections.

        ``close=False`` drops the pool without closing checked-in
        connections; use it in a forked child that inherited them.
        """
        if not self.connected:
            return
        self.engine.dispose(close=close)
        self.connected = False

    def __repr__(self) -> str:
        return f"Gateway({self.name!r}, adapter={self.adapter!r})"


class Container:
    """Live gateways plus registered components."""

    def __init__(self, gateways: dict[str, Gateway]):
        self.gateways = gateways
        self.relations: dict[str, Relation] = {}
        self.mappers: dict[str, Mapper] = {}
        self.commands: dict[str, Command] = {}
        # relation key -> gateway name it asked for but that does not exist
        self.missing_gateways: dict[str, str] = {}

    # ── Registration ─────────────────────────────────────────────

    def register(self, cls: type[Component]) -> None:
        key = cls.registry_key()
        if issubclass(cls, Relation):
            self._ensure_unique(self.relations, "relation", key, cls)
            gateway = self.gateways.get(cls.gateway)
            if gateway is None:
                self.missing_gateways[key] = cls.gateway
                return
            self.relations[key] = cls(gateway)
        elif issubclass(cls, Mapper):
            self._ensure_unique(self.mappers, "mapper", key, cls)
            self.mappers[key] = cls(self)
        elif issubclass(cls, Command):
            self._ensure_unique(self.commands, "command", key, cls)
            self.commands[key] = cls(self)

    def _ensure_unique(self, registry: dict[str, Any], label: str, key: str, cls: type) -> None:
        if key in registry or (label == "relation" and key in self.missing_gateways):
            raise ConfigError(
                f"Duplicate {label} {key!r}",
                context={"class": f"{cls.__module__}.{cls.__qualname__}"},
            )

    # ── Access ───────────────────────────────────────────────────

    def gateway(self, name: str = "default") -> Gateway:
        try:
            return self.gateways[name]
        except KeyError:
            raise KeyError(f"Gateway {name!r} not found. Available: {', '.join(sorted(self.gateways))}") from None

    def relation(self, name: str) -> Relation:
        try:
            return self.relations[name]
        except KeyError:
            raise KeyError(f"Relation {name!r} not found. Available: {', '.join(sorted(self.relations))}") from None

    def __getitem__(self, name: str) -> Relation:
        return self.relation(name)

    @property
    def connected(self) -> bool:
        return any(g.connected for g in self.gateways.values())

    # ── Lifecycle ────────────────────────────────────────────────

    def disconnect(self, *, close: bool = True) -> None:
        """Disconnect every gateway.  Safe to call more than once."""
        for gateway in self.gateways.values():
            gateway.disconnect(close=close)

    def summary(self) -> dict[str, Any]:
        return {
            "gateways": {name: g.adapter for name, g in self.gateways.items()},
            "relations": sorted(self.relations),
            "mappers": sorted(self.mappers),
            "commands": sorted(self.commands),
        }

    def __repr__(self) -> str:
        return (
            f"Container(gateways={sorted(self.gateways)}, relations={len(self.relations)}, "
            f"mappers={len(self.mappers)}, commands={len(self.commands)})"
        )


def create_container(
    configuration: MappingConfiguration,
    *,
    registry: AdapterRegistry | None = None,
) -> Container:
    """Materialize a :class:`Container` from *configuration*.

    If anything fails after gateways were created, they are disconnected
    before the original error propagates.
    """
    registry = registry or adapter_registry
    gateways: dict[str, Gateway] = {}
    try:
        for name, spec in configuration.gateways.items():
            gateways[name] = Gateway(name, spec, registry.create(spec))

        container = Container(gateways)
        for registration in configuration.auto_registrations:
            for cls in discover(registration.root, namespace=registration.namespace):
                container.register(cls)
    except BaseException:
        for gateway in gateways.values():
            gateway.disconnect()
        raise

    logger.debug("container_created", **container.summary())
    return container
