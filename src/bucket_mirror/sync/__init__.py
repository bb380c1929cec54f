from .delta import compute_delta, guard_deletions
from .exceptions import RunError, SyncInProgressError, TransientFetchError
from .sync_service import SyncService
from .tree_reader import SourceTreeReader, TargetTreeReader
from .utils import Delta, SyncReport, TreeSnapshot

__all__ = [
    "Delta",
    "RunError",
    "SourceTreeReader",
    "SyncInProgressError",
    "SyncReport",
    "SyncService",
    "TargetTreeReader",
    "TransientFetchError",
    "TreeSnapshot",
    "compute_delta",
    "guard_deletions",
]
