"""HTTP API exposing query translation to the trace search UI."""

from .app import create_app

__all__ = ["create_app"]
