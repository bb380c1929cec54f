"""Schemas for reporting mirror runs."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from bucket_mirror.sync.utils import Delta, GuardResult, SyncReport


class DeltaResponse(BaseModel):
    added: List[str] = []
    changed: List[str] = []
    deleted: List[str] = []

    @classmethod
    def from_delta(cls, delta: Delta) -> "DeltaResponse":
        return cls(
            added=list(delta.added), changed=list(delta.changed), deleted=list(delta.deleted)
        )


class FailureResponse(BaseModel):
    path: str
    operation: str
    cause: Optional[str] = None


class OperationCounts(BaseModel):
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0


class SyncReportResponse(BaseModel):
    """Summary of one synchronization run."""

    message: str
    started_at: datetime
    finished_at: Optional[datetime] = None
    delta: DeltaResponse
    transfers: OperationCounts
    deletions: OperationCounts
    failures: List[FailureResponse] = []
    suppressed_deletions: List[str] = []
    anomaly: Optional[str] = None
    cancelled: bool = False

    @classmethod
    def from_report(cls, report: SyncReport) -> "SyncReportResponse":
        return cls(
            message="synchronization succeeded",
            started_at=report.started_at,
            finished_at=report.finished_at,
            delta=DeltaResponse.from_delta(report.delta),
            transfers=OperationCounts(
                attempted=report.transfers_attempted,
                succeeded=report.transfers_succeeded,
                failed=report.transfers_failed,
            ),
            deletions=OperationCounts(
                attempted=report.deletions_attempted,
                succeeded=report.deletions_succeeded,
                failed=report.deletions_failed,
            ),
            failures=[
                FailureResponse(path=f.path, operation=f.operation, cause=f.cause)
                for f in report.failures
            ],
            suppressed_deletions=list(report.suppressed_deletions),
            anomaly=report.anomaly,
            cancelled=report.cancelled,
        )


class SyncStatusResponse(BaseModel):
    """Pending changes, computed without applying them."""

    delta: DeltaResponse
    suppressed_deletions: List[str] = []
    anomaly: Optional[str] = None

    @classmethod
    def from_changes(cls, delta: Delta, guard: GuardResult) -> "SyncStatusResponse":
        return cls(
            delta=DeltaResponse.from_delta(delta),
            suppressed_deletions=list(guard.suppressed),
            anomaly=guard.anomaly,
        )
