"""
User-facing mapping configuration.

:class:`MappingConfig` is the object handed to ``lifecycle.configure``
callbacks::

    @lifecycle.on_configure
    def setup(config):
        config.set_gateway("default", ("sql", "postgresql://localhost/app"))
        config.add_registration_paths(ENGINE_ROOT)

It only stores what the user declared.  Merging with inferred gateways
and the in-memory fallback happens in
:meth:`hitch.framework.lifecycle.Lifecycle.resolve_gateways`.
"""

from __future__ import annotations

from collections.abc import Iterable
from os import PathLike
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .gateways import GatewaySpec, coerce_gateways


class MappingConfig(BaseModel):
    """Declared gateways and extra auto-registration roots."""

    model_config = ConfigDict(validate_assignment=True)

    gateways: dict[str, GatewaySpec] = Field(default_factory=dict)
    auto_registration_paths: list[Path] = Field(default_factory=list)

    @field_validator("gateways", mode="before")
    @classmethod
    def _coerce_gateways(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return coerce_gateways(value)
        return value

    # ── Gateways ─────────────────────────────────────────────────

    def set_gateway(self, name: str, spec: Any) -> GatewaySpec:
        """Insert or overwrite the gateway *name*; returns the coerced spec."""
        coerced = GatewaySpec.coerce(spec)
        self.gateways[str(name)] = coerced
        return coerced

    def gateway(self, name: str) -> GatewaySpec | None:
        value = self.gateways.get(name)
        return None if value is None else GatewaySpec.coerce(value)

    def has_gateway(self, name: str) -> bool:
        return name in self.gateways

    # ── Registration paths ───────────────────────────────────────

    def add_registration_paths(self, *paths: str | PathLike[str] | Iterable[str | PathLike[str]]) -> None:
        """Append roots in call order.  Duplicates are kept."""
        for entry in paths:
            if isinstance(entry, str | PathLike):
                self.auto_registration_paths.append(Path(entry))
            else:
                self.auto_registration_paths.extend(Path(p) for p in entry)

    def registration_paths(self) -> list[Path]:
        return list(self.auto_registration_paths)
