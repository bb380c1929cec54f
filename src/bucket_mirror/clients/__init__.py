"""Source and target storage clients."""

from .base import (
    DeleteResult,
    ListPage,
    RawEntry,
    RawObject,
    SourceAPIError,
    SourceListing,
    TargetAPIError,
    TargetStore,
)
from .dropbox import DropboxClient
from .s3 import S3Store

__all__ = [
    "DeleteResult",
    "DropboxClient",
    "ListPage",
    "RawEntry",
    "RawObject",
    "S3Store",
    "SourceAPIError",
    "SourceListing",
    "TargetAPIError",
    "TargetStore",
]
