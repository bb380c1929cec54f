"""Interfaces the mirror expects from the source and target storage services."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Generic, List, Optional, Protocol, Sequence, TypeVar

T = TypeVar("T")


class SourceAPIError(Exception):
    """Raised when a call to the source service fails."""

    pass


class TargetAPIError(Exception):
    """Raised when a call to the target store fails."""

    pass


@dataclass(frozen=True)
class RawEntry:
    """One entry of a source listing page."""

    kind: str  # file, folder, deleted
    path_display: str
    path_lower: Optional[str] = None
    modified: Optional[datetime] = None
    id: Optional[str] = None

    @property
    def is_file(self) -> bool:
        return self.kind == "file"


@dataclass(frozen=True)
class RawObject:
    """One object of a target listing page."""

    key: str
    modified: datetime


@dataclass(frozen=True)
class ListPage(Generic[T]):
    """A page of listing results plus the token for the next page, if any."""

    entries: List[T] = field(default_factory=list)
    next_token: Optional[str] = None


@dataclass
class DeleteResult:
    """Outcome of a bulk delete call.

    Attributes:
        succeeded: Keys the store confirmed as deleted
        failed: key -> cause for keys the store could not delete
    """

    succeeded: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)


class SourceListing(Protocol):
    """Paginated listing and download of the source tree."""

    async def list_page(self, token: Optional[str] = None) -> ListPage[RawEntry]: ...

    async def download(self, path: str) -> bytes: ...


class TargetStore(Protocol):
    """Paginated listing, upload and bulk delete on the target bucket."""

    async def list_page(self, token: Optional[str] = None) -> ListPage[RawObject]: ...

    async def put(
        self,
        key: str,
        body: bytes,
        content_type: str,
        disposition: str,
        public: bool = True,
    ) -> None: ...

    async def delete_many(self, keys: Sequence[str]) -> DeleteResult: ...
