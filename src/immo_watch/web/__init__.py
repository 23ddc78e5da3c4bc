"""HTTP API for the listing watcher."""

from .main import create_app

__all__ = ["create_app"]
