"""Common test fixtures."""

import json
import posixpath
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Set

import httpx
import logfire
import pytest
import pytest_asyncio
from botocore.stub import Stubber

from bucket_mirror.clients.base import (
    DeleteResult,
    ListPage,
    RawEntry,
    RawObject,
    SourceAPIError,
    TargetAPIError,
)
from bucket_mirror.clients.dropbox import DropboxClient
from bucket_mirror.clients.s3 import S3Store
from bucket_mirror.config import MirrorConfig
from bucket_mirror.sync.sync_service import SyncService


@pytest.fixture(scope="session", autouse=True)
def configure_logfire():
    """Keep spans local to the test process."""
    logfire.configure(send_to_logfire=False, console=False)


def ts(day: int, hour: int = 0) -> datetime:
    return datetime(2024, 1, day, hour, tzinfo=timezone.utc)


@pytest.fixture
def stamp() -> Callable[..., datetime]:
    """Build a UTC timestamp on a fixed day in January 2024."""
    return ts


class FakeSource:
    """In-memory source tree with paged listings.

    Paths are stored without a leading slash in the case they were added;
    listings report them the way Dropbox does (path_display with a slash).
    """

    def __init__(self, page_size: int = 2):
        self.page_size = page_size
        self.files: Dict[str, datetime] = {}
        self.contents: Dict[str, bytes] = {}
        self.folders: Set[str] = set()
        self.fail_on_page: Optional[int] = None
        self.fail_downloads: Set[str] = set()
        self.downloads: List[str] = []
        self.pages_served = 0

    def add(self, path: str, modified: datetime, content: bytes = b"") -> None:
        self.files[path] = modified
        self.contents[path] = content or f"content of {path}".encode()

    def _entries(self) -> List[RawEntry]:
        entries = [
            RawEntry("folder", f"/{folder}", f"/{folder}".lower()) for folder in self.folders
        ]
        entries += [
            RawEntry("file", f"/{path}", f"/{path}".lower(), modified)
            for path, modified in self.files.items()
        ]
        return sorted(entries, key=lambda e: e.path_display)

    async def list_page(self, token: Optional[str] = None) -> ListPage[RawEntry]:
        start = int(token or 0)
        if self.fail_on_page is not None and start // self.page_size == self.fail_on_page:
            raise SourceAPIError("listing failed")
        self.pages_served += 1
        entries = self._entries()
        end = start + self.page_size
        return ListPage(entries[start:end], str(end) if end < len(entries) else None)

    async def download(self, path: str) -> bytes:
        path = path.lstrip("/")
        self.downloads.append(path)
        if path in self.fail_downloads:
            raise SourceAPIError("network error")
        return self.contents[path]


@dataclass
class FakeObject:
    modified: datetime
    body: bytes = b""
    content_type: str = "application/octet-stream"
    disposition: str = ""
    public: bool = False


class FakeTarget:
    """In-memory bucket; uploads are stamped with the current time."""

    def __init__(self, page_size: int = 2, clock: Optional[Callable[[], datetime]] = None):
        self.page_size = page_size
        self.objects: Dict[str, FakeObject] = {}
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.fail_listing = False
        self.fail_puts: Set[str] = set()
        self.fail_deletes: Set[str] = set()
        self.fail_delete_call = False
        self.puts: List[str] = []
        self.delete_calls: List[List[str]] = []

    def add(self, key: str, modified: datetime) -> None:
        self.objects[key] = FakeObject(modified=modified)

    async def list_page(self, token: Optional[str] = None) -> ListPage[RawObject]:
        if self.fail_listing:
            raise TargetAPIError("listing failed")
        keys = sorted(self.objects)
        start = int(token or 0)
        end = start + self.page_size
        entries = [RawObject(key, self.objects[key].modified) for key in keys[start:end]]
        return ListPage(entries, str(end) if end < len(keys) else None)

    async def put(
        self,
        key: str,
        body: bytes,
        content_type: str,
        disposition: str,
        public: bool = True,
    ) -> None:
        self.puts.append(key)
        if key in self.fail_puts:
            raise TargetAPIError("upload failed")
        self.objects[key] = FakeObject(self.clock(), body, content_type, disposition, public)

    async def delete_many(self, keys: Sequence[str]) -> DeleteResult:
        self.delete_calls.append(list(keys))
        if self.fail_delete_call:
            raise TargetAPIError("delete_objects failed")
        result = DeleteResult()
        for key in keys:
            if key in self.fail_deletes:
                result.failed[key] = "AccessDenied: Access Denied"
            else:
                self.objects.pop(key, None)
                result.succeeded.append(key)
        return result


@pytest.fixture
def config() -> MirrorConfig:
    return MirrorConfig(
        _env_file=None,
        bucket="test-bucket",
        dropbox_token="test-token",
        max_concurrency=4,
    )


@pytest.fixture
def source() -> FakeSource:
    return FakeSource()


@pytest.fixture
def target() -> FakeTarget:
    return FakeTarget()


@pytest.fixture
def sync_service(source: FakeSource, target: FakeTarget, config: MirrorConfig) -> SyncService:
    return SyncService(source, target, config)


class MockDropbox:
    """Answers Dropbox list_folder, list_folder/continue and download calls.

    Used as the handler of an httpx.MockTransport; cursors are offsets into
    the listing served by the last list_folder call.
    """

    def __init__(self, page_size: int = 2):
        self.page_size = page_size
        self.entries: List[Dict[str, Any]] = []
        self.contents: Dict[str, bytes] = {}
        self.requests: List[httpx.Request] = []
        self.fail_status: Optional[int] = None
        self._listing: List[Dict[str, Any]] = []

    def add_file(self, path: str, modified: str, content: bytes = b"") -> None:
        self.entries.append(
            {
                ".tag": "file",
                "name": posixpath.basename(path),
                "path_display": path,
                "path_lower": path.lower(),
                "id": f"id:{len(self.entries)}",
                "server_modified": modified,
            }
        )
        self.contents[path.lower()] = content or f"content of {path}".encode()

    def add_folder(self, path: str) -> None:
        self.entries.append(
            {
                ".tag": "folder",
                "name": posixpath.basename(path),
                "path_display": path,
                "path_lower": path.lower(),
                "id": f"id:{len(self.entries)}",
            }
        )

    def _select(self, folder: str, recursive: bool) -> List[Dict[str, Any]]:
        folder = folder.lower()
        if recursive:
            return [e for e in self.entries if e["path_lower"].startswith(f"{folder}/")]
        return [e for e in self.entries if posixpath.dirname(e["path_lower"]) == (folder or "/")]

    def _page(self, offset: int) -> httpx.Response:
        end = offset + self.page_size
        return httpx.Response(
            200,
            json={
                "entries": self._listing[offset:end],
                "cursor": str(end),
                "has_more": end < len(self._listing),
            },
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_status:
            return httpx.Response(self.fail_status, text="error")

        endpoint = request.url.path
        if endpoint.endswith("/files/list_folder"):
            body = json.loads(request.content)
            self._listing = self._select(body["path"], body["recursive"])
            return self._page(0)
        if endpoint.endswith("/files/list_folder/continue"):
            return self._page(int(json.loads(request.content)["cursor"]))
        if endpoint.endswith("/files/download"):
            path = json.loads(request.headers["Dropbox-API-Arg"])["path"].lower()
            if path not in self.contents:
                return httpx.Response(409, json={"error_summary": "path/not_found/"})
            return httpx.Response(200, content=self.contents[path])
        return httpx.Response(404)


@pytest.fixture
def mock_dropbox() -> MockDropbox:
    return MockDropbox()


@pytest_asyncio.fixture
async def dropbox_client(config: MirrorConfig, mock_dropbox: MockDropbox):
    client = httpx.AsyncClient(transport=httpx.MockTransport(mock_dropbox))
    yield DropboxClient(config, client=client)
    await client.aclose()


@pytest.fixture
def s3_store(config: MirrorConfig) -> S3Store:
    s3_config = config.model_copy(
        update={"aws_access_key_id": "testing", "aws_secret_access_key": "testing"}
    )
    return S3Store(s3_config)


@pytest.fixture
def s3_stub(s3_store: S3Store):
    """Stubber on the store's boto3 client; every queued response must be used."""
    with Stubber(s3_store.client) as stubber:
        yield stubber
        stubber.assert_no_pending_responses()
