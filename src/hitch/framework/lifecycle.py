"""
Container lifecycle: configuration merge and container (re)initialization.

Manifesto:
    The mapping library does the hard work (connections, component
    registration).  What the application needs from hitch is the policy
    around it:

    - gather gateway definitions from the user, from another ORM's
      database settings, and from a last-resort in-memory default, with
      explicit user config always winning;
    - rebuild the container on every reload event without leaking
      connections, and without ever leaving readers with no container or
      a disconnected one.

Architecture:
    ::

        Lifecycle
        ├── config                 MappingConfig (lazily created)
        ├── configure(fn)          fn(config) → config
        ├── on_configure(fn)       decorator form, returns fn
        ├── resolve_gateways()     explicit ∪ inferred(source) ∪ memory fallback
        ├── registration_paths()   declared roots + application root (last)
        ├── build_container()      configuration_factory → auto_registration → container_factory
        ├── refresh_container()    build + slot.swap → old
        ├── reload()               refresh + dispose(old)
        └── disconnect_container() slot.clear + dispose(old)

    Resolution priority for ``resolve_gateways()``::

        1. explicit config.gateways              (never overwritten)
        2. source.list_connections() → ("sql", uri, options)   for missing names
        3. {"default": ("memory", "memory://test")}            only if still empty

Examples:
    ::

        lifecycle = Lifecycle(settings, source=DjangoDatabasesSource(DATABASES))

        @lifecycle.on_configure
        def setup(config):
            config.set_gateway("search", ("sql", "postgresql://localhost/search"))

        lifecycle.reload()                      # on every reload event
        with lifecycle.slot.lease() as container:
            container.relation("users")
        lifecycle.disconnect_container()        # at shutdown

Guardrails:
    ❌ DON'T: read the container through a module-level global
    ✅ DO: lease it from ``lifecycle.slot`` (or the FastAPI ``ContainerDep``)

    ❌ DON'T: disconnect the old container before the new one is installed
    ✅ DO: use ``reload()``, which swaps first and disposes after draining

Tags:
    hitch, lifecycle, container, gateways, reload, configuration-merge

Doc-Types:
    api-reference, architecture
"""

from __future__ import annotations

import inspect
import os
import runpy
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

from hitch.core.config.gateways import GatewaySpec, redact_uri
from hitch.core.config.sources import ConnectionSource
from hitch.core.config.store import MappingConfig
from hitch.core.errors import ConfigError, MissingGatewayConfigError
from hitch.core.logging import get_logger
from hitch.core.settings import HitchSettings, get_settings
from hitch.mapping.components import COMPONENT_DIRS
from hitch.mapping.configuration import MappingConfiguration
from hitch.mapping.container import create_container

from .slot import ContainerSlot

logger = get_logger(__name__)

DEFAULT_GATEWAY = "default"

F = TypeVar("F", bound=Callable[..., Any])


class Lifecycle:
    """Owns the configuration store and the process-wide container slot.

    Parameters
    ----------
    settings:
        Boot settings; defaults to the cached :func:`get_settings`.
    source:
        Optional connection source of another ORM.  ``None`` means no other
        ORM is active.
    slot:
        Container slot to manage; a private one is created when omitted.
    configuration_factory, container_factory:
        The mapping library entry points.  Defaults build SQLAlchemy-backed
        containers from :mod:`hitch.mapping`.
    """

    def __init__(
        self,
        settings: HitchSettings | None = None,
        *,
        source: ConnectionSource | None = None,
        slot: ContainerSlot | None = None,
        configuration_factory: Callable[[dict[str, GatewaySpec]], Any] = MappingConfiguration,
        container_factory: Callable[[Any], Any] = create_container,
    ):
        self.settings = settings or get_settings()
        self.source = source
        self.slot = slot or ContainerSlot()
        self.configuration_factory = configuration_factory
        self.container_factory = container_factory
        self._config: MappingConfig | None = None
        self._initializer_loaded = False

    # ── Configuration ────────────────────────────────────────────

    @property
    def root(self) -> Path:
        return Path(self.settings.root)

    @property
    def config(self) -> MappingConfig:
        if self._config is None:
            self._config = MappingConfig()
        return self._config

    def ensure_config(self) -> MappingConfig:
        """Create the empty store if none exists yet (never discards one)."""
        return self.config

    def configure(self, fn: Callable[[MappingConfig], Any]) -> MappingConfig:
        """Call *fn* with the configuration store and return the store.

        *fn* must accept the store as its single positional argument.  Use
        :meth:`on_configure` to apply a function as a decorator.
        """
        _check_accepts_config(fn)
        config = self.config
        fn(config)
        return config

    def on_configure(self, fn: F) -> F:
        """Decorator form of :meth:`configure`; returns *fn* unchanged."""
        self.configure(fn)
        return fn

    def resolve_gateways(self) -> dict[str, GatewaySpec]:
        """Merge explicit, inferred and fallback gateways into the store.

        Explicit entries are never overwritten.  Errors raised by the
        connection source propagate.
        """
        gateways = self.config.gateways

        if self.source is not None:
            for name, spec in self.source.list_connections().items():
                if name not in gateways:
                    gateways[name] = GatewaySpec.sql(spec.uri, spec.options)
                    logger.debug("gateway_inferred", gateway=name, uri=redact_uri(spec.uri))

        if not gateways:
            logger.warning(
                "no_gateways_configured",
                fallback=DEFAULT_GATEWAY,
                uri=GatewaySpec.memory().uri,
            )
            gateways[DEFAULT_GATEWAY] = GatewaySpec.memory()

        for name, spec in list(gateways.items()):
            if not isinstance(spec, GatewaySpec):
                gateways[name] = GatewaySpec.coerce(spec)
        return gateways

    # ── Registration paths ───────────────────────────────────────

    def registration_paths(self) -> list[Path]:
        """Declared roots (deduplicated, in order) followed by the application root."""
        root = self.root.resolve()
        paths: list[Path] = []
        for entry in self.config.auto_registration_paths:
            path = Path(entry)
            if not path.is_absolute():
                path = root / path
            path = path.resolve()
            if path != root and path not in paths:
                paths.append(path)
        paths.append(root)
        return paths

    def eager_load_exclusions(self) -> list[str]:
        """Component directories the host must not load on its own."""
        return [str(path / kind) for path in self.registration_paths() for kind in COMPONENT_DIRS]

    def adjust_eager_load_paths(self, paths: list[Any]) -> list[Any]:
        """Remove component directories from the host's eager-load list, in place.

        Entries are compared after resolving symlinks; relative entries are
        taken relative to the application root.
        """
        root = self.root.resolve()
        excluded = {Path(p) for p in self.eager_load_exclusions()}
        paths[:] = [p for p in paths if _resolve_under(root, p) not in excluded]
        return paths

    # ── Container construction ───────────────────────────────────

    def create_configuration(self) -> Any:
        return self.configuration_factory(dict(self.resolve_gateways()))

    def build_container(self) -> Any:
        """Build a new, independent container from the current configuration."""
        configuration = self.create_configuration()
        for path in self.registration_paths():
            configuration.auto_registration(path, namespace=True)

        container = self.container_factory(configuration)
        self._check_relation_gateways(container)
        return container

    def _check_relation_gateways(self, container: Any) -> None:
        missing = dict(getattr(container, "missing_gateways", None) or {})
        if not missing:
            return
        if self.settings.strict_gateways:
            container.disconnect()
            raise MissingGatewayConfigError(missing)
        for relation, gateway in sorted(missing.items()):
            logger.warning("relation_gateway_missing", relation=relation, gateway=gateway)

    # ── Process container ────────────────────────────────────────

    @property
    def container(self) -> Any | None:
        return self.slot.current

    def refresh_container(self) -> Any | None:
        """Build and install a new container; return the previous one for disposal."""
        container = self._build_logged()
        old = self.slot.swap(container)
        logger.info("container_installed", replaced=old is not None)
        return old

    def _build_logged(self) -> Any:
        try:
            return self.build_container()
        except Exception:
            logger.error("container_build_failed", exc_info=True)
            raise

    def dispose(self, container: Any) -> None:
        """Disconnect *container* once no reader holds a lease on it."""
        if container is None:
            return
        timeout = self.settings.drain_timeout
        if not self.slot.drain(container, timeout):
            logger.warning(
                "container_drain_timeout",
                leases=self.slot.leases(container),
                timeout=timeout,
            )
        container.disconnect()
        logger.debug("container_disconnected")

    def reload(self) -> Any:
        """Rebuild the container; the old one is disconnected after the swap."""
        old = self.refresh_container()
        self.dispose(old)
        return self.slot.current

    def disconnect_container(self) -> None:
        """Disconnect and uninstall the current container; no-op when Absent."""
        self.dispose(self.slot.clear())

    # ── Boot helpers ─────────────────────────────────────────────

    def load_initializer(self) -> bool:
        """Run the application's initializer file once, if it exists.

        The file runs with ``lifecycle`` in its globals; a top-level
        ``configure(config)`` function, if defined, is applied through
        :meth:`configure`.
        """
        if self._initializer_loaded:
            return False
        path = self.settings.initializer_path
        if not path.is_file():
            logger.debug("initializer_not_found", path=str(path))
            return False

        namespace = runpy.run_path(str(path), init_globals={"lifecycle": self})
        hook = namespace.get("configure")
        if callable(hook):
            self.configure(hook)
        self._initializer_loaded = True
        logger.debug("initializer_loaded", path=str(path))
        return True

    def install_fork_handler(self) -> None:
        """Drop connections inherited by forked children (pre-fork servers)."""
        if hasattr(os, "register_at_fork"):
            os.register_at_fork(after_in_child=self._after_fork)

    def _after_fork(self) -> None:
        inherited = self.slot.reset_after_fork()
        if inherited is not None:
            inherited.disconnect(close=False)


def _check_accepts_config(fn: Callable[..., Any]) -> None:
    try:
        inspect.signature(fn).bind(object())
    except TypeError as exc:
        raise ConfigError(
            "configure() callbacks must accept the configuration as their only argument",
            context={"callback": getattr(fn, "__qualname__", repr(fn))},
            cause=exc,
        ) from exc
    except ValueError:
        # builtins without an inspectable signature
        return


def _resolve_under(root: Path, entry: Any) -> Path:
    path = Path(entry)
    if not path.is_absolute():
        path = root / path
    return path.resolve()

