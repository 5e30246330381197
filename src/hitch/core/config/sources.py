"""
Connection sources - gateway definitions inferred from another ORM.

Manifesto:
    An application that already declares its databases for another ORM
    should not have to repeat them.  A *connection source* reads those
    settings and reports ``name -> (uri, options)``; the lifecycle turns
    each entry into an ``sql`` gateway unless the user declared that name
    explicitly.

    The source is an explicit, optional dependency of
    :class:`~hitch.framework.lifecycle.Lifecycle` (``source=None`` means no
    other ORM is active); nothing here probes the environment.

Features:
    - ``ConnectionSource`` protocol: ``list_connections()``
    - ``build_connection_spec()``: database settings mapping → SQLAlchemy URL
    - ``DatabaseConfigSource``: ``database.yml``-style settings (YAML or dict)
    - ``DjangoDatabasesSource``: Django ``DATABASES`` dicts

Example::

    source = DatabaseConfigSource.from_yaml("config/database.yml", "production", root=ROOT)
    lifecycle = Lifecycle(settings, source=source)

Tags:
    hitch, configuration, connection-source, sqlalchemy, yaml

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import yaml
from sqlalchemy.engine import URL

from hitch.core.errors import ConfigError


@dataclass(frozen=True)
class ConnectionSpec:
    """One connection reported by a source."""

    uri: str
    options: dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class ConnectionSource(Protocol):
    """Anything that can list the connections another ORM is configured with."""

    def list_connections(self) -> Mapping[str, ConnectionSpec]: ...


# ── URI building ─────────────────────────────────────────────────────────

# Keys consumed while building the URI; everything else becomes an option.
BASE_OPTIONS = frozenset({"adapter", "database", "username", "password", "host", "hostname", "port", "root"})

# database.yml keys that only mean something to ActiveRecord; never sent to a driver.
RAILS_ONLY_OPTIONS = frozenset(
    {
        "variables",
        "prepared_statements",
        "advisory_locks",
        "min_messages",
        "reconnect",
        "flags",
        "migrations_paths",
        "schema_dump",
        "replica",
        "database_tasks",
        "use_metadata_table",
    }
)

# ``encoding`` becomes the driver's own connect argument
_ENCODING_ARGS = {"postgresql": "client_encoding", "mysql": "charset"}

# same setting, driver spelling
_RENAMED_ARGS = {
    "postgresql": {"sslca": "sslrootcert"},
    "mysql": {"socket": "unix_socket"},
}

_DRIVER_NAMES = {
    "sqlite": "sqlite",
    "sqlite3": "sqlite",
    "postgres": "postgresql",
    "postgresql": "postgresql",
    "postgis": "postgresql",
    "mysql": "mysql",
    "mysql2": "mysql",
    "trilogy": "mysql",
    "oracle": "oracle",
    "oracle_enhanced": "oracle",
    "sqlserver": "mssql",
    "mssql": "mssql",
}


def _driver_name(adapter: str) -> str:
    # "postgresql+psycopg" style adapters are passed through untouched
    base, plus, driver = adapter.partition("+")
    name = _DRIVER_NAMES.get(base.lower(), base.lower())
    return f"{name}{plus}{driver}"


def _sqlite_uri(database: str | None, root: Path | None) -> str:
    if not database or database == ":memory:":
        return "sqlite://"
    path = Path(database)
    if not path.is_absolute() and root is not None:
        path = Path(root) / path
    return f"sqlite:///{path}"


def _driver_options(family: str, config: Mapping[str, Any]) -> dict[str, Any]:
    """Options left after the URI is built, in the driver's vocabulary.

    ActiveRecord-only keys are dropped; ``encoding`` and a few renamed
    settings are translated for PostgreSQL and MySQL drivers and dropped
    elsewhere.
    """
    renamed = _RENAMED_ARGS.get(family, {})
    options: dict[str, Any] = {}
    for key, value in config.items():
        if key in BASE_OPTIONS or key in RAILS_ONLY_OPTIONS:
            continue
        if key == "encoding":
            if family in _ENCODING_ARGS:
                options[_ENCODING_ARGS[family]] = value
            continue
        options[renamed.get(key, key)] = value
    return options


def build_connection_spec(config: Mapping[str, Any], root: Path | None = None) -> ConnectionSpec:
    """Turn a database settings mapping into a :class:`ConnectionSpec`.

    Recognised keys: ``adapter`` (required), ``database``, ``host`` (or
    ``hostname``), ``port``, ``username``, ``password``.  SQLite databases
    are resolved against *root*.  Every other key is returned in
    ``options``, minus ActiveRecord-only keys such as ``variables`` or
    ``prepared_statements``; ``encoding`` becomes ``client_encoding``
    (PostgreSQL) or ``charset`` (MySQL).

    Examples
    --------
    ::

        >>> build_connection_spec({"adapter": "postgresql", "database": "app", "host": "db"}).uri
        'postgresql://db/app'
        >>> build_connection_spec({"adapter": "sqlite3", "database": "db/dev.sqlite3"}, Path("/srv")).uri
        'sqlite:////srv/db/dev.sqlite3'
    """
    adapter = config.get("adapter")
    if not adapter:
        raise ConfigError(
            "Database configuration has no 'adapter'",
            context={"keys": sorted(str(k) for k in config)},
        )

    driver = _driver_name(str(adapter))
    options = _driver_options(driver.partition("+")[0], config)

    if driver.startswith("sqlite"):
        database = config.get("database")
        return ConnectionSpec(uri=_sqlite_uri(str(database) if database else None, root), options=options)

    username = config.get("username")
    password = config.get("password")
    if driver.startswith("mysql") and username is not None and password is None:
        password = ""

    port = config.get("port")
    try:
        url = URL.create(
            driver,
            username=None if username is None else str(username),
            password=None if password is None else str(password),
            host=config.get("host") or config.get("hostname"),
            port=int(port) if port not in (None, "") else None,
            database=None if config.get("database") is None else str(config["database"]),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid database configuration for adapter {adapter!r}", cause=exc) from exc

    return ConnectionSpec(uri=url.render_as_string(hide_password=False), options=options)


# ── Sources ──────────────────────────────────────────────────────────────


class DatabaseConfigSource:
    """Connections described by ``name -> settings`` mappings.

    The settings use ``database.yml`` keys (``adapter``, ``database``,
    ``host``, ``port``, ``username``, ``password``).
    """

    def __init__(self, configs: Mapping[str, Mapping[str, Any]], root: Path | None = None):
        self._configs = {str(name): dict(cfg) for name, cfg in configs.items()}
        self._root = root

    @classmethod
    def from_yaml(cls, path: str | Path, environment: str, root: Path | None = None) -> DatabaseConfigSource:
        """Read one environment block from a ``database.yml``-style file.

        A block with an ``adapter`` key is the single ``default``
        connection.  Otherwise each nested block is a named connection,
        with ``primary`` renamed to ``default``.
        """
        path = Path(path)
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"Cannot read database configuration {path}", cause=exc) from exc

        if environment not in data:
            raise ConfigError(
                f"No database configuration for environment {environment!r} in {path}",
                context={"environments": sorted(data)},
            )

        block = data[environment] or {}
        if "adapter" in block:
            configs = {"default": block}
        else:
            configs = {
                ("default" if name == "primary" else name): cfg
                for name, cfg in block.items()
                if isinstance(cfg, Mapping)
            }
        return cls(configs, root=root if root is not None else path.parent.parent)

    def list_connections(self) -> dict[str, ConnectionSpec]:
        return {name: build_connection_spec(cfg, self._root) for name, cfg in self._configs.items()}


class DjangoDatabasesSource:
    """Connections from a Django ``DATABASES`` setting."""

    _KEYS = {
        "NAME": "database",
        "USER": "username",
        "PASSWORD": "password",
        "HOST": "host",
        "PORT": "port",
    }

    def __init__(self, databases: Mapping[str, Mapping[str, Any]], root: Path | None = None):
        self._databases = databases
        self._root = root

    @classmethod
    def _translate(cls, settings: Mapping[str, Any]) -> dict[str, Any]:
        engine = settings.get("ENGINE")
        if not engine:
            raise ConfigError("Django database settings have no 'ENGINE'")
        config: dict[str, Any] = {"adapter": str(engine).rsplit(".", 1)[-1]}
        for django_key, key in cls._KEYS.items():
            value = settings.get(django_key)
            if value not in (None, ""):
                config[key] = value
        config.update(settings.get("OPTIONS") or {})
        return config

    def list_connections(self) -> dict[str, ConnectionSpec]:
        return {
            str(name): build_connection_spec(self._translate(settings), self._root)
            for name, settings in self._databases.items()
        }
