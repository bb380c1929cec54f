"""Build snapshots of the source and target trees."""

from typing import AsyncIterator, Awaitable, Callable, List, Optional, TypeVar

from loguru import logger

from bucket_mirror.clients.base import ListPage, RawEntry, RawObject, SourceListing, TargetStore
from bucket_mirror.sync.exceptions import TransientFetchError
from bucket_mirror.sync.utils import FileEntry, TreeSnapshot
from bucket_mirror.utils import normalize_key

T = TypeVar("T")


async def iter_pages(
    fetch_page: Callable[[Optional[str]], Awaitable[ListPage[T]]],
) -> AsyncIterator[ListPage[T]]:
    """Yield pages until one arrives without a continuation token."""
    token: Optional[str] = None
    while True:
        page = await fetch_page(token)
        yield page
        if not page.next_token:
            return
        token = page.next_token


class SourceTreeReader:
    """Reads the complete source tree, files only."""

    side = "source"

    def __init__(self, source: SourceListing):
        self.source = source

    @staticmethod
    def to_entry(raw: RawEntry) -> FileEntry:
        if raw.modified is None:
            raise ValueError(f"Source entry has no modification time: {raw.path_display}")
        return FileEntry(
            path=normalize_key(raw.path_lower or raw.path_display),
            modified=raw.modified,
            display_path=raw.path_display,
        )

    async def read(self) -> TreeSnapshot:
        """
        Page through the whole source listing.

        Returns:
            TreeSnapshot of all files

        Raises:
            TransientFetchError: If any page fails; no partial tree is returned
        """
        entries: List[FileEntry] = []
        pages = 0
        try:
            async for page in iter_pages(self.source.list_page):
                pages += 1
                entries.extend(self.to_entry(raw) for raw in page.entries if raw.is_file)
        except Exception as e:
            logger.error(f"Failed to fetch {self.side} entries after {pages} page(s): {e}")
            raise TransientFetchError(self.side, e) from e

        snapshot = TreeSnapshot.from_entries(entries)
        logger.info(f"{self.side} tree: {len(snapshot)} files in {pages} page(s)")
        return snapshot


class TargetTreeReader:
    """Reads the complete target bucket, folder markers included."""

    side = "target"

    def __init__(self, target: TargetStore):
        self.target = target

    @staticmethod
    def to_entry(raw: RawObject) -> FileEntry:
        return FileEntry(
            path=normalize_key(raw.key),
            modified=raw.modified,
            display_path=raw.key,
            is_folder=raw.key.endswith("/"),
        )

    async def read(self) -> TreeSnapshot:
        """
        Page through the whole bucket listing.

        Raises:
            TransientFetchError: If any page fails
        """
        entries: List[FileEntry] = []
        pages = 0
        try:
            async for page in iter_pages(self.target.list_page):
                pages += 1
                entries.extend(self.to_entry(raw) for raw in page.entries)
        except Exception as e:
            logger.error(f"Failed to fetch {self.side} entries after {pages} page(s): {e}")
            raise TransientFetchError(self.side, e) from e

        snapshot = TreeSnapshot.from_entries(entries)
        logger.info(f"{self.side} tree: {len(snapshot)} objects in {pages} page(s)")
        return snapshot
