"""Dropbox API client used as the mirror source."""

import json
from datetime import datetime
from typing import Any, Dict, Optional

import httpx
from loguru import logger

from bucket_mirror.clients.base import ListPage, RawEntry, SourceAPIError
from bucket_mirror.config import MirrorConfig
from bucket_mirror.utils import to_dropbox_path


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a Dropbox ISO 8601 timestamp such as 2015-05-12T15:50:38Z."""
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def entry_from_api(data: Dict[str, Any]) -> RawEntry:
    """Convert a list_folder metadata dict into a RawEntry."""
    return RawEntry(
        kind=data.get(".tag", ""),
        path_display=data.get("path_display") or data.get("path_lower") or "",
        path_lower=data.get("path_lower"),
        modified=parse_timestamp(data.get("server_modified")),
        id=data.get("id"),
    )


class DropboxClient:
    """Async Dropbox client for listing folders and downloading files.

    The httpx client is created lazily unless one is passed in; call
    close() (or use the client as an async context manager) when done.
    """

    def __init__(self, config: MirrorConfig, client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.config.request_timeout)
        return self._client

    @property
    def auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.config.dropbox_token}"}

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "DropboxClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _rpc(self, endpoint: str, body: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.config.dropbox_api_url}/{endpoint}"
        try:
            response = await self.client.post(url, headers=self.auth_headers, json=body)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                f"Dropbox {endpoint} failed with {e.response.status_code}: {e.response.text}"
            )
            raise SourceAPIError(f"Dropbox {endpoint} failed: {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error(f"Dropbox {endpoint} request error: {e}")
            raise SourceAPIError(f"Dropbox {endpoint} request failed: {e}") from e

    @staticmethod
    def _page(result: Dict[str, Any]) -> ListPage[RawEntry]:
        entries = [entry_from_api(e) for e in result.get("entries", [])]
        next_token = result.get("cursor") if result.get("has_more") else None
        return ListPage(entries=entries, next_token=next_token)

    async def list_folder(
        self, path: str = "", recursive: bool = False, limit: Optional[int] = None
    ) -> ListPage[RawEntry]:
        """List one page of a folder."""
        body = {
            "path": to_dropbox_path(path),
            "recursive": recursive,
            "limit": limit or self.config.list_page_limit,
        }
        logger.debug(f"Listing Dropbox folder: {body['path'] or '/'} recursive={recursive}")
        return self._page(await self._rpc("files/list_folder", body))

    async def list_folder_continue(self, cursor: str) -> ListPage[RawEntry]:
        """Fetch the page following a list_folder cursor."""
        return self._page(await self._rpc("files/list_folder/continue", {"cursor": cursor}))

    async def list_page(self, token: Optional[str] = None) -> ListPage[RawEntry]:
        """Page through the complete (recursive) tree from the root."""
        if token:
            return await self.list_folder_continue(token)
        return await self.list_folder("", recursive=True)

    async def download(self, path: str) -> bytes:
        """Download the full content of a file as bytes."""
        url = f"{self.config.dropbox_content_url}/files/download"
        headers = {
            **self.auth_headers,
            "Dropbox-API-Arg": json.dumps({"path": to_dropbox_path(path)}),
        }
        logger.debug(f"Downloading from Dropbox: {path}")
        try:
            response = await self.client.post(url, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise SourceAPIError(
                f"Dropbox download of {path} failed: {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise SourceAPIError(f"Dropbox download of {path} failed: {e}") from e
        return response.content
