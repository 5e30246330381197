"""
Data-mapping backend: gateways, auto-registered components, containers.

Manifesto:
    The lifecycle only needs four operations from a mapping library:
    build a configuration from gateway specs, add auto-registration roots,
    materialize a container, and disconnect it.  This package provides
    them on top of SQLAlchemy engines; another backend can be injected into
    :class:`~hitch.framework.lifecycle.Lifecycle` through its
    ``configuration_factory`` / ``container_factory`` arguments.

Architecture::

    adapters.py       AdapterRegistry: "sql" / "memory" → SQLAlchemy Engine
    components.py     Relation / Mapper / Command base classes
    configuration.py  MappingConfiguration (gateways + auto_registration)
    loader.py         Fresh-module discovery of component files
    container.py      Gateway, Container, create_container()

Tags:
    hitch, mapping, sqlalchemy, container, auto-registration

Doc-Types:
    package-overview
"""

from .adapters import AdapterRegistry, adapter_registry, create_gateway_engine, register_adapter
from .components import COMPONENT_DIRS, Command, Mapper, Relation
from .configuration import MappingConfiguration
from .container import Container, Gateway, create_container

__all__ = [
    "AdapterRegistry",
    "adapter_registry",
    "create_gateway_engine",
    "register_adapter",
    "COMPONENT_DIRS",
    "Relation",
    "Mapper",
    "Command",
    "MappingConfiguration",
    "Container",
    "Gateway",
    "create_container",
]
