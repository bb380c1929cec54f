"""utility functions for commands"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Tuple

from bucket_mirror.clients import DropboxClient, S3Store
from bucket_mirror.config import MirrorConfig


@asynccontextmanager
async def open_clients(config: MirrorConfig) -> AsyncIterator[Tuple[DropboxClient, S3Store]]:
    """Source and target clients for one command, closed afterwards."""
    async with DropboxClient(config) as source:
        yield source, S3Store(config)
