"""
Root Typer application for the hitch CLI.

The command tree depends on the application: ``db`` tasks only exist
when no other ORM is active.  ``main()`` therefore loads the lifecycle
first (``--app module:attr`` or ``HITCH_APP``) and then builds the CLI
with :func:`create_cli`.
"""

from __future__ import annotations

import code
import sys
from collections.abc import Sequence

import typer
from typer import Typer

from hitch.core.config.gateways import redact_uri
from hitch.core.errors import ConfigError
from hitch.core.logging import configure_logging
from hitch.core.settings import get_settings
from hitch.framework.hooks import HookPoint, HookRegistry
from hitch.framework.integration import MapperIntegration
from hitch.framework.lifecycle import Lifecycle

from .db import create_db_app
from .utils import err_console, load_lifecycle, output_dict, output_rows


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("hitch")
        except PackageNotFoundError:
            from hitch import __version__ as v
        typer.echo(f"hitch {v}")
        raise typer.Exit()


def create_cli(lifecycle: Lifecycle, hooks: HookRegistry | None = None) -> Typer:
    """Build the CLI for *lifecycle* (boot hooks are fired here)."""
    integration = MapperIntegration(lifecycle)
    hooks = integration.register(hooks or HookRegistry())
    integration.boot(hooks)

    app = Typer(
        name="hitch",
        help="Data-mapping container lifecycle for web applications.",
        no_args_is_help=True,
        rich_markup_mode="rich",
    )

    @app.callback()
    def callback(
        version: bool | None = typer.Option(  # noqa: UP007
            None,
            "--version",
            "-V",
            help="Show version and exit.",
            callback=_version_callback,
            is_eager=True,
        ),
        app_path: str | None = typer.Option(
            None,
            "--app",
            envvar="HITCH_APP",
            help="Lifecycle to load, as 'module:attr'.",
        ),
    ) -> None:
        """Inspect gateways and registration paths, open a console, run database tasks."""

    @app.command()
    def gateways(
        json_out: bool = typer.Option(False, "--json", help="JSON output"),
    ) -> None:
        """Show the resolved gateways (explicit, inferred and fallback)."""
        rows = [
            {
                "name": name,
                "adapter": spec.adapter,
                "uri": redact_uri(spec.uri),
                "options": spec.options,
            }
            for name, spec in sorted(lifecycle.resolve_gateways().items())
        ]
        output_rows(rows, as_json=json_out, title="Gateways")

    @app.command()
    def paths(
        json_out: bool = typer.Option(False, "--json", help="JSON output"),
    ) -> None:
        """Show auto-registration roots and the directories excluded from eager load."""
        data = {
            "registration_paths": [str(p) for p in lifecycle.registration_paths()],
            "eager_load_exclusions": lifecycle.eager_load_exclusions(),
        }
        output_dict(data, as_json=json_out, title="Paths")

    @app.command()
    def console() -> None:
        """Open an interactive console with ``container`` and ``lifecycle`` bound."""
        hooks.run(HookPoint.ON_CONSOLE_START)
        hooks.run(HookPoint.ON_RELOAD)
        try:
            code.interact(
                banner=f"hitch console: {lifecycle.container!r}",
                local={"lifecycle": lifecycle, "container": lifecycle.container},
            )
        finally:
            lifecycle.disconnect_container()

    if integration.cli_tasks_enabled():
        app.add_typer(create_db_app(lifecycle), name="db", help="Database tasks.")

    return app


def _app_path(argv: Sequence[str]) -> str:
    for i, arg in enumerate(argv):
        if arg == "--app" and i + 1 < len(argv):
            return argv[i + 1]
        if arg.startswith("--app="):
            return arg.split("=", 1)[1]
    return get_settings().app


def main(argv: Sequence[str] | None = None) -> None:
    """Console-script entry point."""
    args = list(sys.argv[1:] if argv is None else argv)
    settings = get_settings()
    configure_logging(level=settings.log_level, json_format=settings.log_format == "json")

    path = _app_path(args)
    if not path:
        err_console.print("[bold red]Error[/bold red]: pass --app module:attr or set HITCH_APP")
        raise SystemExit(2)
    try:
        lifecycle = load_lifecycle(path)
    except (ConfigError, ImportError) as exc:
        err_console.print(f"[bold red]Error[/bold red]: {exc}")
        raise SystemExit(2) from exc

    create_cli(lifecycle)(args=args, prog_name="hitch")
