"""FastAPI application for bucket-mirror."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

import bucket_mirror
from bucket_mirror.api.routers import dropbox_router, sync_router
from bucket_mirror.clients import DropboxClient, S3Store
from bucket_mirror.config import MirrorConfig, get_config
from bucket_mirror.services import FileService, SitemapService
from bucket_mirror.sync import SyncService


def attach_services(app: FastAPI, source: DropboxClient, target: S3Store) -> None:
    """Store the long-lived services for this app on app.state."""
    config = app.state.config
    app.state.sync_service = SyncService(source, target, config)
    app.state.file_service = FileService(source, target, config)
    app.state.sitemap_service = SitemapService(target)


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover
    """Lifecycle manager for the FastAPI app."""
    config = app.state.config
    logger.info(f"Starting bucket-mirror API {bucket_mirror.__version__} for {config.bucket}")
    source = DropboxClient(config)
    attach_services(app, source, S3Store(config))
    yield
    logger.info("Shutting down bucket-mirror API")
    app.state.sync_service.cancel()
    await source.close()


def create_app(config: Optional[MirrorConfig] = None) -> FastAPI:
    app = FastAPI(
        title="bucket-mirror API",
        description="Mirror a Dropbox tree onto an S3 bucket",
        version=bucket_mirror.__version__,
        lifespan=lifespan,
    )
    app.state.config = config or get_config()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_headers=["Origin", "X-Requested-With", "Content-Type", "Accept"],
    )

    @app.get("/ping")
    async def ping():
        return {"message": "pong"}

    app.include_router(dropbox_router.router)
    app.include_router(sync_router.router)

    @app.exception_handler(Exception)
    async def exception_handler(request, exc):  # pragma: no cover
        logger.exception(
            f"An unhandled exception occurred for request '{request.url}', exception: {exc}"
        )
        return await http_exception_handler(
            request, HTTPException(status_code=500, detail=str(exc))
        )

    return app
