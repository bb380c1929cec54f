"""API routers."""

from . import dropbox_router, sync_router

__all__ = ["dropbox_router", "sync_router"]
