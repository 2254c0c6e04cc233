"""Command line entry point: ``tasktree serve`` and ``tasktree hash-password``."""

from __future__ import annotations

import sys

import click
from werkzeug.security import generate_password_hash

from .config import ConfigError, load_settings


@click.group()
def main() -> None:
    """Single-user task tree and wiki server."""


@main.command("hash-password")
@click.password_option()
def hash_password(password: str) -> None:
    """Print a PASSWORD_HASH value for the given password."""
    click.echo(generate_password_hash(password))


@main.command()
@click.option("--host", default=None, help="Bind address (default: HOST or 0.0.0.0).")
@click.option("--port", type=int, default=None, help="Port (default: PORT or 3050).")
@click.option("--debug", is_flag=True, help="Run the Flask debug server.")
def serve(host: str | None, port: int | None, debug: bool) -> None:
    """Run the development server."""
    from .app import create_app

    settings = load_settings()
    try:
        app = create_app(settings)
    except ConfigError as e:
        click.echo(f"ERROR: {e}", err=True)
        sys.exit(1)
    app.run(host=host or settings.host, port=port or settings.port, debug=debug)
