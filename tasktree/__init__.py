"""Single-user task tree and wiki web application."""

from .app import create_app

__all__ = ["create_app"]
__version__ = "0.1.0"
