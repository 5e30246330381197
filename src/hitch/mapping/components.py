"""
Base classes for auto-registered components.

Application code subclasses these inside ``relations/``, ``mappers/`` and
``commands/`` directories of a registration root::

    # app/relations/users.py
    from hitch.mapping import Relation

    class Users(Relation):
        gateway = "default"
        dataset = "users"

Each container build re-executes those files, so edits are picked up on
the next reload.  Instances are created per container.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, ClassVar

from sqlalchemy import Table, table

if TYPE_CHECKING:
    from .container import Container, Gateway

_CAMEL_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def snake_case(name: str) -> str:
    """``UserAccounts`` → ``user_accounts``."""
    return _CAMEL_RE.sub("_", name).lower()


class Component:
    """Common registration metadata."""

    kind: ClassVar[str] = "component"
    register_as: ClassVar[str | None] = None

    @classmethod
    def registry_key(cls) -> str:
        return cls.register_as or snake_case(cls.__name__)


class Relation(Component):
    """A dataset living in one gateway."""

    kind: ClassVar[str] = "relations"
    gateway: ClassVar[str] = "default"
    dataset: ClassVar[str | None] = None

    def __init__(self, gateway: Gateway):
        self._gateway = gateway

    @property
    def gateway_object(self) -> Gateway:
        return self._gateway

    @property
    def engine(self) -> Any:
        return self._gateway.engine

    @property
    def name(self) -> str:
        return self.registry_key()

    @property
    def table(self) -> Table:
        """Lightweight SQLAlchemy table clause for :attr:`dataset`."""
        return table(self.dataset or self.name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(gateway={self.gateway!r}, dataset={self.dataset or self.name!r})"


class Mapper(Component):
    """Transforms rows of a relation into domain objects."""

    kind: ClassVar[str] = "mappers"
    relation: ClassVar[str | None] = None

    def __init__(self, container: Container):
        self._container = container

    def call(self, rows: Any) -> Any:
        return rows


class Command(Component):
    """A write operation against a relation."""

    kind: ClassVar[str] = "commands"
    relation: ClassVar[str | None] = None

    def __init__(self, container: Container):
        self._container = container


COMPONENT_TYPES: dict[str, type[Component]] = {
    "relations": Relation,
    "mappers": Mapper,
    "commands": Command,
}

COMPONENT_DIRS: tuple[str, ...] = tuple(COMPONENT_TYPES)
