"""Services package."""

from .file_service import FileService
from .sitemap_service import SitemapService

__all__ = [
    "FileService",
    "SitemapService",
]
