"""Service for mirroring the source tree onto the target bucket."""

import asyncio
from typing import List, Optional, Tuple

import logfire
from loguru import logger

from bucket_mirror.clients.base import SourceListing, TargetStore
from bucket_mirror.config import MirrorConfig
from bucket_mirror.sync.delta import compute_delta, guard_deletions
from bucket_mirror.sync.exceptions import RunError, SyncInProgressError
from bucket_mirror.sync.executors import DeletionExecutor, TransferExecutor
from bucket_mirror.sync.tree_reader import SourceTreeReader, TargetTreeReader
from bucket_mirror.sync.utils import (
    Delta,
    GuardResult,
    ItemOutcome,
    SyncReport,
    SyncState,
    TreeSnapshot,
)


class SyncService:
    """Runs one reconciliation pass at a time from source to target.

    A run fetches both trees, diffs them, guards the deletions and applies
    the result. Item failures end up in the report; only a failed listing
    fails the run.
    """

    def __init__(self, source: SourceListing, target: TargetStore, config: MirrorConfig):
        self.source = source
        self.target = target
        self.config = config
        self.state = SyncState.IDLE
        self._lock = asyncio.Lock()
        self._cancel_event = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._lock.locked()

    def cancel(self) -> None:
        """Stop starting new transfers and deletions in the current run."""
        if self.running:
            logger.warning("Cancelling sync: no new transfers or deletions will start")
        self._cancel_event.set()

    async def fetch_snapshots(self) -> Tuple[TreeSnapshot, TreeSnapshot]:
        """Read both trees concurrently; fail if either read fails."""
        self.state = SyncState.FETCHING_SNAPSHOTS
        source_result, target_result = await asyncio.gather(
            SourceTreeReader(self.source).read(),
            TargetTreeReader(self.target).read(),
            return_exceptions=True,
        )
        for result in (source_result, target_result):
            if isinstance(result, BaseException):
                raise RunError(f"synchronization failed: {result}") from result
        return source_result, target_result

    def diff(self, source: TreeSnapshot, target: TreeSnapshot) -> Tuple[Delta, GuardResult]:
        self.state = SyncState.DIFFING
        delta = compute_delta(source, target, self.config.protected_files)
        self.state = SyncState.GUARDING
        return delta, guard_deletions(delta.added, delta.deleted)

    async def find_changes(self) -> Tuple[Delta, GuardResult]:
        """Compute what a run would do without applying anything."""
        if self.running:
            raise SyncInProgressError("A synchronization run is already in progress")
        async with self._lock:
            try:
                source, target = await self.fetch_snapshots()
                return self.diff(source, target)
            finally:
                self.state = SyncState.IDLE

    async def apply(
        self,
        source: TreeSnapshot,
        target: TreeSnapshot,
        delta: Delta,
        guard: GuardResult,
    ) -> Tuple[List[ItemOutcome], List[ItemOutcome]]:
        """Run transfers and deletions concurrently and wait for all of them."""
        self.state = SyncState.APPLYING
        transfers = TransferExecutor(
            self.source,
            self.target,
            max_concurrency=self.config.max_concurrency,
            cancel_event=self._cancel_event,
        )
        deletions = DeletionExecutor(
            self.target,
            batch_size=self.config.delete_batch_size,
            cancel_event=self._cancel_event,
        )

        # delete by the key as stored, the snapshot key is lower-cased
        stored_keys = [target.stored_key(key) for key in guard.deleted]
        transfer_outcomes, deletion_outcomes = await asyncio.gather(
            transfers.transfer_all([source[key] for key in delta.to_transfer]),
            deletions.delete_many(stored_keys),
        )
        return transfer_outcomes, deletion_outcomes

    async def sync(self, timeout: Optional[float] = None) -> SyncReport:
        """
        Mirror the source onto the target.

        Args:
            timeout: Seconds after which the run stops starting new work

        Returns:
            SyncReport for the run, possibly with per-item failures

        Raises:
            SyncInProgressError: If another run is active
            RunError: If either tree could not be read or the run broke down
        """
        if self.running:
            raise SyncInProgressError("A synchronization run is already in progress")

        async with self._lock:
            self._cancel_event = asyncio.Event()
            timer = None
            if timeout is not None:
                timer = asyncio.get_running_loop().call_later(timeout, self.cancel)

            report = SyncReport()
            try:
                with logfire.span("sync", bucket=self.config.bucket):
                    source, target = await self.fetch_snapshots()
                    delta, guard = self.diff(source, target)
                    report.delta = delta
                    report.anomaly = guard.anomaly
                    report.suppressed_deletions = guard.suppressed

                    report.transfers, report.deletions = await self.apply(
                        source, target, delta, guard
                    )

                    self.state = SyncState.REPORTING
                    report.cancelled = self._cancel_event.is_set()
                    report.finish()
            except RunError as e:
                logger.error(str(e))
                raise
            except Exception as e:
                logger.exception(f"synchronization failed: {e}")
                raise RunError(f"synchronization failed: {e}") from e
            finally:
                if timer is not None:
                    timer.cancel()
                self.state = SyncState.IDLE

        logger.info(
            f"synchronization finished: {report.transfers_succeeded}/{report.transfers_attempted} "
            f"transfers, {report.deletions_succeeded}/{report.deletions_attempted} deletions, "
            f"{len(report.failures)} failures"
        )
        return report
