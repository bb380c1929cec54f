"""Command to run the HTTP API."""

import asyncio
from typing import Optional

import typer
import uvicorn
from loguru import logger

from bucket_mirror.api import create_app
from bucket_mirror.cli.app import app
from bucket_mirror.config import get_config


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address"),
    port: Optional[int] = typer.Option(None, help="Port to listen on"),
):  # pragma: no cover
    """Serve the HTTP API."""
    config = get_config()
    server_config = uvicorn.Config(
        create_app(config),
        host=host or config.host,
        port=port or config.port,
        log_level=config.log_level.lower(),
        access_log=False,
    )
    logger.info(f"Serving bucket-mirror API on {server_config.host}:{server_config.port}")
    asyncio.run(uvicorn.Server(server_config).serve())
