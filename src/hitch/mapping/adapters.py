"""Gateway adapter registry and SQLAlchemy engine factory.

Manifesto:
    Gateways never hard-code engine construction.  The registry maps an
    adapter kind (``"sql"``, ``"memory"``) to a factory that turns a
    :class:`~hitch.core.config.gateways.GatewaySpec` into a SQLAlchemy
    :class:`~sqlalchemy.engine.Engine`.

Features:
    - ``AdapterRegistry`` with pre-registered ``sql`` and ``memory`` kinds
    - ``register_adapter()`` for custom kinds
    - ``create_gateway_engine()``: engine with SQLite pragmas / pool tuning

Tags:
    hitch, mapping, registry, sqlalchemy, engine

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from sqlalchemy import create_engine as _sa_create_engine
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from hitch.core.config.gateways import MEMORY_ADAPTER, SQL_ADAPTER, GatewaySpec
from hitch.core.errors import ConfigError

EngineFactory = Callable[[GatewaySpec], Engine]

# Options passed straight to ``sqlalchemy.create_engine``.
ENGINE_OPTIONS = frozenset(
    {
        "echo",
        "echo_pool",
        "pool_size",
        "max_overflow",
        "pool_timeout",
        "pool_recycle",
        "pool_pre_ping",
        "pool_use_lifo",
        "isolation_level",
        "connect_args",
        "execution_options",
    }
)

# database.yml spellings of engine options
OPTION_ALIASES = {
    "pool": "pool_size",
    "checkout_timeout": "pool_timeout",
    "reaping_frequency": "pool_recycle",
}


def engine_kwargs(options: Mapping[str, Any]) -> dict[str, Any]:
    """Split gateway options into ``create_engine`` keywords.

    Known engine options (and their aliases) are passed through; anything
    else is handed to the DBAPI driver via ``connect_args``.
    """
    kwargs: dict[str, Any] = {}
    connect_args: dict[str, Any] = dict(options.get("connect_args") or {})
    for key, value in options.items():
        if key == "connect_args":
            continue
        key = OPTION_ALIASES.get(key, key)
        if key in ENGINE_OPTIONS:
            kwargs[key] = value
        else:
            connect_args[key] = value
    if connect_args:
        kwargs["connect_args"] = connect_args
    return kwargs


def create_gateway_engine(url: str, **kwargs: Any) -> Engine:
    """Create a SQLAlchemy engine with sane defaults.

    SQLite engines allow cross-thread use and enable WAL plus foreign keys
    on every new DBAPI connection.  Pool sizing options are dropped for
    SQLite, whose pools do not accept them.
    """
    if url.startswith("sqlite"):
        connect_args = dict(kwargs.pop("connect_args", {}) or {})
        connect_args.setdefault("check_same_thread", False)
        for key in ("pool_size", "max_overflow", "pool_timeout"):
            kwargs.pop(key, None)

        engine = _sa_create_engine(url, connect_args=connect_args, **kwargs)

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_connection: Any, _rec: Any) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    return _sa_create_engine(url, **kwargs)


def _sql_engine(spec: GatewaySpec) -> Engine:
    return create_gateway_engine(spec.uri, **engine_kwargs(spec.options))


def _memory_engine(spec: GatewaySpec) -> Engine:
    # One private in-memory database per gateway; StaticPool keeps it alive
    # for as long as the engine is.
    kwargs = engine_kwargs(spec.options)
    connect_args = dict(kwargs.pop("connect_args", {}) or {})
    connect_args.setdefault("check_same_thread", False)
    for key in ("pool_size", "max_overflow", "pool_timeout"):
        kwargs.pop(key, None)
    return _sa_create_engine("sqlite://", poolclass=StaticPool, connect_args=connect_args, **kwargs)


class AdapterRegistry:
    """Registry of gateway engine factories.

    Pre-registered adapters:
    - ``sql``: any SQLAlchemy URL
    - ``memory``: private in-memory SQLite
    """

    def __init__(self) -> None:
        self._factories: dict[str, EngineFactory] = {}
        self._register_defaults()

    def _register_defaults(self) -> None:
        self._factories[SQL_ADAPTER] = _sql_engine
        self._factories[MEMORY_ADAPTER] = _memory_engine

    def register(self, kind: str, factory: EngineFactory) -> None:
        """Register an engine factory for *kind*."""
        self._factories[kind.lower()] = factory

    def create(self, spec: GatewaySpec) -> Engine:
        """Create an engine for *spec*."""
        kind = spec.adapter.lower()
        if kind not in self._factories:
            raise ConfigError(
                f"Unknown gateway adapter: {spec.adapter}",
                context={"available": self.list_adapters()},
            )
        return self._factories[kind](spec)

    def list_adapters(self) -> list[str]:
        return sorted(self._factories)


# Global registry
adapter_registry = AdapterRegistry()


def register_adapter(kind: str, factory: EngineFactory) -> None:
    """Register a custom adapter kind on the global registry."""
    adapter_registry.register(kind, factory)


__all__ = [
    "AdapterRegistry",
    "adapter_registry",
    "register_adapter",
    "create_gateway_engine",
    "engine_kwargs",
]
