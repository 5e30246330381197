"""
Gateway configuration: specs, the user-facing store, and connection sources.

Architecture::

    gateways.py   GatewaySpec (pydantic) + coerce helpers
    store.py      MappingConfig: declared gateways and registration roots
    sources.py    ConnectionSource protocol + database.yml / Django sources
    compat.py     Deprecated ``repositories`` aliases
"""

from .compat import repositories, set_repository
from .gateways import MEMORY_FALLBACK_URI, GatewaySpec, coerce_gateways
from .sources import (
    ConnectionSource,
    ConnectionSpec,
    DatabaseConfigSource,
    DjangoDatabasesSource,
    build_connection_spec,
)
from .store import MappingConfig

__all__ = [
    "GatewaySpec",
    "MEMORY_FALLBACK_URI",
    "coerce_gateways",
    "MappingConfig",
    "ConnectionSource",
    "ConnectionSpec",
    "DatabaseConfigSource",
    "DjangoDatabasesSource",
    "build_connection_spec",
    "repositories",
    "set_repository",
]
