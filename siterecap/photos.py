"""Photo byte resolution for the pipeline."""
import asyncio
import logging
from pathlib import Path
from urllib.parse import urlparse

import httpx

try:
    from .models import PhotoRef
except ImportError:
    from models import PhotoRef

logger = logging.getLogger(__name__)


class PhotoFetcher:
    """Downloads photo bytes by URL; local paths and file:// URLs are read from disk."""

    def __init__(self, timeout: float = 30.0, client: httpx.AsyncClient | None = None):
        self.timeout = timeout
        self.client = client

    async def fetch(self, url: str) -> bytes:
        parsed = urlparse(url)
        if parsed.scheme in ("", "file"):
            path = Path(parsed.path if parsed.scheme == "file" else url)
            return await asyncio.to_thread(path.read_bytes)

        if self.client is not None:
            response = await self.client.get(url, timeout=self.timeout)
        else:
            async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                response = await client.get(url)
        response.raise_for_status()
        return response.content

    async def resolve(self, ref: PhotoRef, photo_index: int) -> bytes | None:
        """Return the photo's bytes, or None when they cannot be obtained."""
        if ref.data is not None:
            data = ref.data
        else:
            try:
                data = await self.fetch(ref.url)
            except (httpx.HTTPError, httpx.InvalidURL, OSError) as e:
                logger.warning("Could not fetch photo %d from %s: %s", photo_index, ref.url, e)
                return None

        if not data:
            logger.warning("Photo %d has no image data", photo_index)
            return None
        return data
