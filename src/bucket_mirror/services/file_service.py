"""Service for browsing source files and linking to their mirrored copies."""

import posixpath
from datetime import datetime, timezone
from typing import List, Literal, Optional

from loguru import logger

from bucket_mirror.clients.base import RawEntry
from bucket_mirror.clients.dropbox import DropboxClient
from bucket_mirror.clients.s3 import S3Store
from bucket_mirror.config import MirrorConfig
from bucket_mirror.schemas.files import FileLink, FileListing
from bucket_mirror.sync.tree_reader import iter_pages
from bucket_mirror.utils import content_disposition, file_name, normalize_key

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class FileService:
    """Lists source folders in the shape the site expects.

    Listed paths point at the mirrored copy in the bucket, not at Dropbox.
    """

    def __init__(self, source: DropboxClient, target: S3Store, config: MirrorConfig):
        self.source = source
        self.target = target
        self.config = config

    async def _list(self, folder: str, recursive: bool, limit: int) -> List[RawEntry]:
        async def fetch_page(token: Optional[str]):
            if token:
                return await self.source.list_folder_continue(token)
            return await self.source.list_folder(folder, recursive=recursive, limit=limit)

        entries: List[RawEntry] = []
        async for page in iter_pages(fetch_page):
            entries.extend(page.entries)
        return entries

    def to_listing(self, entry: RawEntry) -> FileListing:
        display = entry.path_display
        stem, ext = posixpath.splitext(file_name(display))
        return FileListing(
            id=entry.id,
            name=stem,
            type=ext.upper(),
            path=self.target.public_url(normalize_key(entry.path_lower or display)),
            modified=entry.modified,
        )

    def format_entries(
        self,
        entries: List[RawEntry],
        sort_by: Literal["path", "modified"] = "path",
        count: int = 0,
    ) -> List[FileListing]:
        """
        Convert raw source entries into file listings.

        Args:
            entries: Raw listing entries; folders are dropped
            sort_by: 'path' (alphabetical) or 'modified' (newest first)
            count: Maximum number of listings, 0 for all
        """
        listings = [self.to_listing(e) for e in entries if e.is_file]
        if sort_by == "path":
            listings.sort(key=lambda f: f.path)
        else:
            listings.sort(key=lambda f: f.modified or _EPOCH, reverse=True)
        return listings[:count] if count > 0 else listings

    async def list_files(self, folder: str = "") -> List[FileListing]:
        """Files directly inside a source folder, sorted by path."""
        entries = await self._list(folder, recursive=False, limit=self.config.list_page_limit)
        logger.debug(f"Listed {len(entries)} entries in {folder or '/'}")
        return self.format_entries(entries, "path")

    async def get_recent_updates(self, folder: str = "", count: int = 0) -> List[FileListing]:
        """Files anywhere below a source folder, most recently modified first."""
        entries = await self._list(
            folder, recursive=True, limit=self.config.recent_updates_limit
        )
        return self.format_entries(entries, "modified", count)

    def get_file_link(self, path: Optional[str]) -> FileLink:
        """
        Links to the bucket copy of a source file.

        Raises:
            ValueError: If no path is given
        """
        if not path:
            raise ValueError("The path parameter is required.")
        key = normalize_key(path)
        return FileLink(
            link=self.target.public_url(key),
            download_link=self.target.presigned_url(
                key, disposition=content_disposition("attachment", path)
            ),
        )
