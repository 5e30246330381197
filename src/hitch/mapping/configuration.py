"""Mapping configuration: gateway specs plus auto-registration roots."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from os import PathLike
from pathlib import Path
from typing import Any

from hitch.core.config.gateways import GatewaySpec, coerce_gateways


@dataclass(frozen=True)
class AutoRegistration:
    root: Path
    namespace: bool = True


class MappingConfiguration:
    """Everything needed to materialize a :class:`~hitch.mapping.container.Container`.

    Nothing touches the filesystem or a database until
    :func:`~hitch.mapping.container.create_container` runs.
    """

    def __init__(self, gateways: Mapping[str, Any] | None = None):
        self.gateways: dict[str, GatewaySpec] = coerce_gateways(gateways or {})
        self.auto_registrations: list[AutoRegistration] = []

    def auto_registration(self, root: str | PathLike[str], *, namespace: bool = True) -> MappingConfiguration:
        """Scan *root* for components when the container is built."""
        self.auto_registrations.append(AutoRegistration(Path(root), namespace))
        return self

    def __repr__(self) -> str:
        return (
            f"MappingConfiguration(gateways={sorted(self.gateways)}, "
            f"roots={[str(r.root) for r in self.auto_registrations]})"
        )
