"""Dependency injection functions for bucket-mirror API routes."""

from typing import Annotated

from fastapi import Depends, Request

from bucket_mirror.services import FileService, SitemapService
from bucket_mirror.sync import SyncService


def get_sync_service(request: Request) -> SyncService:
    return request.app.state.sync_service


SyncServiceDep = Annotated[SyncService, Depends(get_sync_service)]


def get_file_service(request: Request) -> FileService:
    return request.app.state.file_service


FileServiceDep = Annotated[FileService, Depends(get_file_service)]


def get_sitemap_service(request: Request) -> SitemapService:
    return request.app.state.sitemap_service


SitemapServiceDep = Annotated[SitemapService, Depends(get_sitemap_service)]
