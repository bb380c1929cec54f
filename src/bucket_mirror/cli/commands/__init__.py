"""CLI commands for bucket-mirror."""

from . import files, serve, sync

__all__ = ["files", "serve", "sync"]
