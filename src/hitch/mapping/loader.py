"""
Component discovery for auto-registration roots.

Each ``*.py`` file below ``<root>/relations``, ``<root>/mappers`` and
``<root>/commands`` is executed as a fresh module on every build; the
module is only present in :data:`sys.modules` while it executes.  Files
whose name starts with ``_`` are skipped.

Module naming (``namespace=True``)::

    <root>/relations/users.py          → relations.users
    <root>/relations/admin/roles.py    → relations.admin.roles

With ``namespace=False`` the kind prefix is dropped (``users``,
``admin.roles``).
"""

from __future__ import annotations

import importlib.util
import inspect
import sys
import threading
from collections.abc import Iterator
from pathlib import Path
from types import ModuleType

from hitch.core.errors import ConfigError
from hitch.core.logging import get_logger

from .components import COMPONENT_DIRS, Command, Component, Mapper, Relation

logger = get_logger(__name__)

_BASES = (Component, Relation, Mapper, Command)

# guards the publish/restore of sys.modules entries across concurrent builds
_load_lock = threading.Lock()


def iter_component_files(root: Path) -> Iterator[tuple[str, Path, Path]]:
    """Yield ``(kind, base_dir, file)`` for every component file under *root*."""
    for kind in COMPONENT_DIRS:
        base = root / kind
        if not base.is_dir():
            continue
        for path in sorted(base.rglob("*.py")):
            if path.name.startswith("_"):
                continue
            yield kind, base, path


def module_name(kind: str, base: Path, path: Path, *, namespace: bool = True) -> str:
    dotted = ".".join(path.relative_to(base).with_suffix("").parts)
    return f"{kind}.{dotted}" if namespace else dotted


def load_module(name: str, path: Path) -> ModuleType:
    """Execute *path* as a new module called *name*."""
    spec = importlib.util.spec_from_file_location(name, path)
    if spec is None or spec.loader is None:
        raise ConfigError(f"Cannot load component file {path}")

    module = importlib.util.module_from_spec(spec)
    with _load_lock:
        previous = sys.modules.get(name)
        sys.modules[name] = module
        try:
            spec.loader.exec_module(module)
        finally:
            if previous is None:
                sys.modules.pop(name, None)
            else:
                sys.modules[name] = previous
    return module


def components_in(module: ModuleType) -> list[type[Component]]:
    """Component subclasses *defined* in *module* (imports are ignored)."""
    found = []
    for _, obj in inspect.getmembers(module, inspect.isclass):
        if obj in _BASES or not issubclass(obj, Component):
            continue
        if obj.__module__ != module.__name__:
            continue
        found.append(obj)
    return found


def discover(root: Path, *, namespace: bool = True) -> Iterator[type[Component]]:
    """Load every component file under *root* and yield its component classes."""
    for kind, base, path in iter_component_files(root):
        name = module_name(kind, base, path, namespace=namespace)
        module = load_module(name, path)
        classes = components_in(module)
        logger.debug("components_loaded", module=name, path=str(path), count=len(classes))
        yield from classes
