"""Commands for links and sitemap maintenance."""

import asyncio

import typer
from loguru import logger
from rich.console import Console

from bucket_mirror.cli.app import app
from bucket_mirror.cli.commands.command_utils import open_clients
from bucket_mirror.clients import TargetAPIError
from bucket_mirror.config import get_config
from bucket_mirror.services import FileService, SitemapService
from bucket_mirror.sync import TransientFetchError

console = Console()


async def run_sitemap() -> int:
    config = get_config()
    async with open_clients(config) as (_, target):
        return await SitemapService(target).update()


async def run_link(path: str):
    config = get_config()
    async with open_clients(config) as (source, target):
        return FileService(source, target, config).get_file_link(path)


@app.command()
def sitemap():
    """Regenerate sitemap.xml from the bucket contents."""
    try:
        count = asyncio.run(run_sitemap())
    except (TransientFetchError, TargetAPIError) as e:
        logger.error(f"failed to update sitemap: {e}")
        typer.echo(f"failed to update sitemap: {e}", err=True)
        raise typer.Exit(1)
    console.print(f"[green]✓ sitemap.xml updated with {count} urls[/green]")


@app.command()
def link(path: str = typer.Argument(..., help="Dropbox path of the file")):
    """Print the public and signed download links for a file."""
    try:
        file_link = asyncio.run(run_link(path))
    except (ValueError, TargetAPIError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    console.print(f"link:     {file_link.link}")
    console.print(f"download: {file_link.download_link}")
