"""
CLI: ``hitch db`` database tasks.

Only registered when no other ORM is active; otherwise that ORM's own
database tasks are used and hitch stays out of the way.
"""

from __future__ import annotations

import typer
from sqlalchemy import text

from hitch.framework.lifecycle import Lifecycle

from .utils import fail, output_dict, output_rows


def create_db_app(lifecycle: Lifecycle) -> typer.Typer:
    app = typer.Typer(no_args_is_help=True)

    @app.command()
    def setup(
        json_out: bool = typer.Option(False, "--json", help="JSON output"),
    ) -> None:
        """Build the container once and report what was registered."""
        container = lifecycle.build_container()
        try:
            summary = container.summary()
        finally:
            container.disconnect()
        output_dict(summary, as_json=json_out, title="Container")

    @app.command()
    def check(
        json_out: bool = typer.Option(False, "--json", help="JSON output"),
    ) -> None:
        """Connect to every gateway and run ``SELECT 1``."""
        container = lifecycle.build_container()
        rows = []
        try:
            for name, gateway in sorted(container.gateways.items()):
                try:
                    with gateway.engine.connect() as conn:
                        conn.execute(text("SELECT 1"))
                    rows.append({"gateway": name, "adapter": gateway.adapter, "status": "ok"})
                except Exception as exc:
                    rows.append({"gateway": name, "adapter": gateway.adapter, "status": f"error: {exc}"})
        finally:
            container.disconnect()

        output_rows(rows, as_json=json_out, title="Gateways")
        failed = [r["gateway"] for r in rows if r["status"] != "ok"]
        if failed:
            fail(f"unreachable gateway(s): {', '.join(failed)}")

    return app
