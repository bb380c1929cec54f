"""Service for publishing sitemap.xml for the mirrored bucket."""

from urllib.parse import quote

from loguru import logger

from bucket_mirror.clients.s3 import S3Store
from bucket_mirror.sync.tree_reader import TargetTreeReader
from bucket_mirror.sync.utils import TreeSnapshot

SITEMAP_KEY = "sitemap.xml"
SITEMAP_NAMESPACE = "http://www.sitemaps.org/schemas/sitemap/0.9"


class SitemapService:
    def __init__(self, target: S3Store):
        self.target = target

    def generate(self, snapshot: TreeSnapshot) -> str:
        """Render a sitemap with one <url> per object; folder markers are left out."""
        nodes = "".join(
            f"<url><loc>{self.target.public_url(quote(key, safe=''))}</loc></url>"
            for key in sorted(snapshot)
            if not snapshot[key].is_folder
        )
        return (
            '<?xml version="1.0" encoding="UTF-8"?>'
            f'<urlset xmlns="{SITEMAP_NAMESPACE}">{nodes}</urlset>'
        )

    async def update(self) -> int:
        """Rebuild sitemap.xml from the bucket listing and upload it.

        Returns:
            Number of URLs in the uploaded sitemap
        """
        snapshot = await TargetTreeReader(self.target).read()
        sitemap = self.generate(snapshot)
        logger.info(f"uploading {SITEMAP_KEY} with {len(snapshot.files)} urls")
        await self.target.put_text(SITEMAP_KEY, sitemap, content_type="text/xml")
        return len(snapshot.files)
