"""
hitch: wire a data-mapping container into a web application's boot lifecycle.

Quick start::

    from fastapi import FastAPI
    from hitch import Lifecycle
    from hitch.api import ContainerDep, install

    lifecycle = Lifecycle()

    @lifecycle.on_configure
    def setup(config):
        config.set_gateway("default", ("sql", "sqlite:///db/app.sqlite3"))

    app = FastAPI()
    install(app, lifecycle)

Architecture::

    core/        errors, logging (structlog), settings (pydantic-settings),
                 gateway config store and connection sources
    mapping/     SQLAlchemy-backed gateways, components, container
    framework/   hook points, Lifecycle, ContainerSlot, MapperIntegration
    api/         FastAPI install() + ContainerDep
    cli/         Typer CLI (gateways, paths, console, db)
"""

from hitch.core.config import GatewaySpec, MappingConfig
from hitch.core.errors import ConfigError, HitchError, MissingGatewayConfigError
from hitch.framework import ContainerSlot, HookPoint, HookRegistry, Lifecycle, MapperIntegration

__version__ = "0.1.0"

__all__ = [
    "GatewaySpec",
    "MappingConfig",
    "HitchError",
    "ConfigError",
    "MissingGatewayConfigError",
    "Lifecycle",
    "ContainerSlot",
    "HookPoint",
    "HookRegistry",
    "MapperIntegration",
]
