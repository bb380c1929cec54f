"""Types and utilities for mirror runs."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from loguru import logger


@dataclass(frozen=True)
class FileEntry:
    """A file (or folder marker) in one tree.

    path is the comparison key: no leading slash, lower case.
    display_path keeps the case the storage reported.
    """

    path: str
    modified: datetime
    display_path: str = ""
    is_folder: bool = False


def _supersedes(entry: FileEntry, existing: FileEntry) -> bool:
    """Whether entry should replace existing under the same normalized key.

    An entry stored under exactly its normalized key wins, since that is the
    key uploads are written to. Otherwise the newer entry wins.
    """
    entry_exact = entry.display_path == entry.path
    existing_exact = existing.display_path == existing.path
    if entry_exact != existing_exact:
        return entry_exact
    return entry.modified > existing.modified


class TreeSnapshot(Mapping):
    """Read-only mapping of normalized path -> FileEntry for one tree.

    Entries that lost a key collision are kept in ``shadowed``, keyed by the
    key they are stored under.
    """

    def __init__(
        self,
        entries: Optional[Dict[str, FileEntry]] = None,
        shadowed: Optional[Dict[str, FileEntry]] = None,
    ):
        self._entries = MappingProxyType(dict(entries or {}))
        self._shadowed = MappingProxyType(dict(shadowed or {}))

    @classmethod
    def from_entries(cls, entries: Iterable[FileEntry]) -> "TreeSnapshot":
        """Build a snapshot, resolving keys that differ only in case or slash."""
        collected: Dict[str, FileEntry] = {}
        shadowed: Dict[str, FileEntry] = {}
        for entry in entries:
            existing = collected.get(entry.path)
            if existing is None:
                collected[entry.path] = entry
                continue
            logger.warning(
                f"Duplicate key in listing: {existing.display_path} and {entry.display_path}"
            )
            if _supersedes(entry, existing):
                collected[entry.path] = entry
                entry = existing
            shadowed[entry.display_path or entry.path] = entry
        return cls(collected, shadowed)

    @property
    def shadowed(self) -> Mapping:
        """Stored key -> entry for variants hidden by another entry's key."""
        return self._shadowed

    def stored_key(self, key: str) -> str:
        """Key as stored for a snapshot key or a shadowed variant."""
        entry = self._entries.get(key) or self._shadowed[key]
        return entry.display_path or key

    def __getitem__(self, key: str) -> FileEntry:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"TreeSnapshot({len(self)} entries)"

    @property
    def files(self) -> List[FileEntry]:
        """Entries that are not folder markers."""
        return [e for e in self._entries.values() if not e.is_folder]


@dataclass(frozen=True)
class Delta:
    """Changes needed to bring the target in line with the source.

    Attributes:
        added: Paths in the source but not in the target
        changed: Paths newer in the source than in the target
        deleted: Paths only in the target that may be deleted
    """

    added: Tuple[str, ...] = ()
    changed: Tuple[str, ...] = ()
    deleted: Tuple[str, ...] = ()

    @property
    def total_changes(self) -> int:
        return len(self.added) + len(self.changed) + len(self.deleted)

    @property
    def to_transfer(self) -> Tuple[str, ...]:
        return self.added + self.changed


@dataclass(frozen=True)
class GuardResult:
    """Deletion list after the consistency check.

    Attributes:
        deleted: Keys that may be deleted in this run
        suppressed: Keys withheld because the listing looked inconsistent
        overlap: Keys found both in added and in the deletion candidates
    """

    deleted: Tuple[str, ...] = ()
    suppressed: Tuple[str, ...] = ()
    overlap: Tuple[str, ...] = ()

    @property
    def anomaly(self) -> Optional[str]:
        if not self.overlap:
            return None
        return (
            f"{len(self.overlap)} deletion candidate(s) were also added in this run; "
            f"suppressed all {len(self.suppressed)} deletions"
        )


class SyncState(str, Enum):
    IDLE = "idle"
    FETCHING_SNAPSHOTS = "fetching_snapshots"
    DIFFING = "diffing"
    GUARDING = "guarding"
    APPLYING = "applying"
    REPORTING = "reporting"


class ItemStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class ItemOutcome:
    """Result of one transfer or deletion."""

    path: str
    operation: str  # transfer, delete
    status: ItemStatus
    error: Optional[Exception] = None

    @property
    def cause(self) -> Optional[str]:
        if self.error is None:
            return None
        return str(getattr(self.error, "cause", self.error))


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SyncReport:
    """Outcome of one mirror run."""

    delta: Delta = field(default_factory=Delta)
    started_at: datetime = field(default_factory=_now)
    finished_at: Optional[datetime] = None
    transfers: List[ItemOutcome] = field(default_factory=list)
    deletions: List[ItemOutcome] = field(default_factory=list)
    suppressed_deletions: Tuple[str, ...] = ()
    anomaly: Optional[str] = None
    cancelled: bool = False

    @staticmethod
    def _count(outcomes: List[ItemOutcome], status: ItemStatus) -> int:
        return sum(1 for o in outcomes if o.status == status)

    @property
    def transfers_attempted(self) -> int:
        return len(self.transfers) - self._count(self.transfers, ItemStatus.SKIPPED)

    @property
    def transfers_succeeded(self) -> int:
        return self._count(self.transfers, ItemStatus.SUCCEEDED)

    @property
    def transfers_failed(self) -> int:
        return self._count(self.transfers, ItemStatus.FAILED)

    @property
    def deletions_attempted(self) -> int:
        return len(self.deletions) - self._count(self.deletions, ItemStatus.SKIPPED)

    @property
    def deletions_succeeded(self) -> int:
        return self._count(self.deletions, ItemStatus.SUCCEEDED)

    @property
    def deletions_failed(self) -> int:
        return self._count(self.deletions, ItemStatus.FAILED)

    @property
    def skipped(self) -> int:
        return self._count(self.transfers, ItemStatus.SKIPPED) + self._count(
            self.deletions, ItemStatus.SKIPPED
        )

    @property
    def failures(self) -> List[ItemOutcome]:
        return [o for o in [*self.transfers, *self.deletions] if o.status == ItemStatus.FAILED]

    def finish(self) -> "SyncReport":
        self.finished_at = _now()
        return self
