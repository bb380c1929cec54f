"""HTTP API for bucket-mirror."""

from .app import create_app

__all__ = ["create_app"]
