"""hitch command-line interface (Typer)."""

from hitch.cli.app import create_cli, main

__all__ = ["create_cli", "main"]
