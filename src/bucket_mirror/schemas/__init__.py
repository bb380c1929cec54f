"""Pydantic schemas for API responses."""

from bucket_mirror.schemas.files import FileLink, FileListing, MessageResponse
from bucket_mirror.schemas.sync import (
    DeltaResponse,
    FailureResponse,
    OperationCounts,
    SyncReportResponse,
    SyncStatusResponse,
)

__all__ = [
    "DeltaResponse",
    "FailureResponse",
    "FileLink",
    "FileListing",
    "MessageResponse",
    "OperationCounts",
    "SyncReportResponse",
    "SyncStatusResponse",
]
