"""Apply a delta: copy files to the target and delete stale keys."""

import asyncio
import mimetypes
from typing import List, Optional, Sequence

from loguru import logger

from bucket_mirror.clients.base import SourceListing, TargetStore
from bucket_mirror.sync.exceptions import DeletionError, TransferError
from bucket_mirror.sync.utils import FileEntry, ItemOutcome, ItemStatus
from bucket_mirror.utils import content_disposition, file_name, to_bucket_key

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def content_type_for(path: str) -> str:
    mime_type, _ = mimetypes.guess_type(file_name(path))
    return mime_type or DEFAULT_CONTENT_TYPE


def inline_disposition(path: str) -> str:
    return content_disposition("inline", path)


class TransferExecutor:
    """Copies files from source to target, a bounded number at a time."""

    def __init__(
        self,
        source: SourceListing,
        target: TargetStore,
        max_concurrency: int = 8,
        cancel_event: Optional[asyncio.Event] = None,
    ):
        self.source = source
        self.target = target
        self.semaphore = asyncio.Semaphore(max_concurrency)
        self.cancel_event = cancel_event or asyncio.Event()

    async def _copy(self, entry: FileEntry) -> None:
        source_path = entry.display_path or entry.path
        logger.info(f"transferring from source: {source_path}")
        body = await self.source.download(source_path)

        key = to_bucket_key(entry.path)
        logger.info(f"transferring to target: {key}")
        await self.target.put(
            key,
            body,
            content_type=content_type_for(source_path),
            disposition=inline_disposition(source_path),
            public=True,
        )

    async def transfer(self, entry: FileEntry) -> ItemOutcome:
        """Copy one file; failures are returned, never raised."""
        async with self.semaphore:
            if self.cancel_event.is_set():
                return ItemOutcome(entry.path, "transfer", ItemStatus.SKIPPED)
            try:
                await self._copy(entry)
            except Exception as e:
                error = TransferError(entry.path, e)
                logger.error(str(error))
                return ItemOutcome(entry.path, "transfer", ItemStatus.FAILED, error)
        return ItemOutcome(entry.path, "transfer", ItemStatus.SUCCEEDED)

    async def transfer_all(self, entries: Sequence[FileEntry]) -> List[ItemOutcome]:
        return list(await asyncio.gather(*(self.transfer(entry) for entry in entries)))


class DeletionExecutor:
    """Removes keys from the target in bulk batches."""

    def __init__(
        self,
        target: TargetStore,
        batch_size: int = 1000,
        cancel_event: Optional[asyncio.Event] = None,
    ):
        self.target = target
        self.batch_size = batch_size
        self.cancel_event = cancel_event or asyncio.Event()

    async def _delete_batch(self, keys: Sequence[str]) -> List[ItemOutcome]:
        if self.cancel_event.is_set():
            return [ItemOutcome(key, "delete", ItemStatus.SKIPPED) for key in keys]

        try:
            result = await self.target.delete_many(keys)
        except Exception as e:
            logger.error(f"failed to delete {len(keys)} files: {e}")
            return [
                ItemOutcome(key, "delete", ItemStatus.FAILED, DeletionError(key, str(e)))
                for key in keys
            ]

        outcomes = []
        for key in keys:
            if key in result.failed:
                error = DeletionError(key, result.failed[key])
                logger.error(str(error))
                outcomes.append(ItemOutcome(key, "delete", ItemStatus.FAILED, error))
            else:
                outcomes.append(ItemOutcome(key, "delete", ItemStatus.SUCCEEDED))
        logger.info(f"deleted {len(result.succeeded)} of {len(keys)} files")
        return outcomes

    async def delete_many(self, keys: Sequence[str]) -> List[ItemOutcome]:
        """Delete keys in batches; one outcome per key."""
        keys = [to_bucket_key(key) for key in keys]
        outcomes: List[ItemOutcome] = []
        for start in range(0, len(keys), self.batch_size):
            outcomes.extend(await self._delete_batch(keys[start : start + self.batch_size]))
        return outcomes
