"""
Gateway specifications.

A gateway is a named connection to one backing datastore.  Users may
write a spec as a model, a mapping, or the short positional form::

    config.set_gateway("default", ("sql", "postgresql://localhost/app"))
    config.set_gateway("cache", ("memory", "memory://cache", {}))
    config.set_gateway("reports", {"adapter": "sql", "uri": "sqlite:///r.db"})

:meth:`GatewaySpec.coerce` normalises all of these.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from hitch.core.errors import ConfigError

MEMORY_ADAPTER = "memory"
SQL_ADAPTER = "sql"
MEMORY_FALLBACK_URI = "memory://test"


class GatewaySpec(BaseModel):
    """Adapter kind, address and adapter-specific options of one gateway."""

    model_config = ConfigDict(frozen=True)

    adapter: str
    uri: str
    options: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _from_positional(cls, value: Any) -> Any:
        if isinstance(value, Sequence) and not isinstance(value, str | bytes):
            if not 2 <= len(value) <= 3:
                raise ValueError(f"positional gateway spec needs 2 or 3 elements, got {len(value)}")
            adapter, uri, *rest = value
            return {"adapter": adapter, "uri": uri, "options": rest[0] if rest else {}}
        return value

    @field_validator("adapter", mode="before")
    @classmethod
    def _normalise_adapter(cls, value: Any) -> Any:
        if isinstance(value, Enum):
            value = value.value
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("options", mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    # ── Factories ────────────────────────────────────────────────

    @classmethod
    def coerce(cls, value: Any) -> GatewaySpec:
        """Build a spec from any accepted form, raising :class:`ConfigError` otherwise."""
        if isinstance(value, GatewaySpec):
            return value
        if not isinstance(value, Mapping | Sequence) or isinstance(value, str | bytes):
            raise ConfigError(f"Invalid gateway spec: {value!r}")
        try:
            return cls.model_validate(value)
        except ValueError as exc:
            raise ConfigError(f"Invalid gateway spec: {value!r}", cause=exc) from exc

    @classmethod
    def memory(cls, uri: str = MEMORY_FALLBACK_URI) -> GatewaySpec:
        return cls(adapter=MEMORY_ADAPTER, uri=uri)

    @classmethod
    def sql(cls, uri: str, options: Mapping[str, Any] | None = None) -> GatewaySpec:
        return cls(adapter=SQL_ADAPTER, uri=uri, options=dict(options or {}))

    def as_tuple(self) -> tuple[str, str, dict[str, Any]]:
        return self.adapter, self.uri, dict(self.options)


def coerce_gateways(gateways: Mapping[str, Any]) -> dict[str, GatewaySpec]:
    """Coerce every value of a ``name -> spec`` mapping."""
    return {str(name): GatewaySpec.coerce(spec) for name, spec in gateways.items()}


def redact_uri(uri: str) -> str:
    """Mask the password of a URI for logs and CLI output."""
    scheme, sep, rest = uri.partition("://")
    if not sep or "@" not in rest:
        return uri
    creds, _, host = rest.rpartition("@")
    user, colon, _ = creds.partition(":")
    if not colon:
        return uri
    return f"{scheme}://{user}:***@{host}"
