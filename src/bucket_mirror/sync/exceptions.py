"""Errors raised or recorded during a mirror run."""


class MirrorError(Exception):
    """Base class for mirror errors."""

    pass


class TransientFetchError(MirrorError):
    """Raised when listing a tree fails; the partial tree is discarded."""

    def __init__(self, side: str, cause: BaseException):
        self.side = side
        self.cause = cause
        super().__init__(f"Failed to read {side} tree: {cause}")


class TransferError(MirrorError):
    """A single file could not be copied from source to target."""

    def __init__(self, path: str, cause: BaseException):
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to transfer {path}: {cause}")


class DeletionError(MirrorError):
    """A single key could not be deleted from the target."""

    def __init__(self, path: str, cause: str):
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to delete {path}: {cause}")


class RunError(MirrorError):
    """Raised when a whole run fails and no report is produced."""

    pass


class SyncInProgressError(RunError):
    """Raised when a run is requested while another is still active."""

    pass
