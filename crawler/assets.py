"""
Image downloads for crawled listings.
"""
import asyncio
import logging
import os
import time
import uuid
from typing import List, Optional

import httpx

from .config import config

logger = logging.getLogger(__name__)


def unique_image_name(prefix: str = "vehicle", ext: str = ".jpg") -> str:
    """vehicle_<epoch ms>_<random hex>.jpg; the random part keeps same-millisecond names apart."""
    return f"{prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:12]}{ext}"


class ImageFetcher:
    """
    Downloads listing images into the uploads directory.

    Every image must finish within timeout_s. A failed download is logged
    and skipped; it never fails the batch. Returned paths are server-relative
    (e.g. "/uploads/vehicle_1700000000000_ab12cd34ef56.jpg").
    """

    def __init__(
        self,
        upload_dir: Optional[str] = None,
        url_prefix: Optional[str] = None,
        max_images: Optional[int] = None,
        timeout_s: Optional[float] = None,
        concurrency: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.upload_dir = upload_dir or config.UPLOAD_DIR
        self.url_prefix = (url_prefix or config.UPLOAD_URL_PREFIX).rstrip("/")
        self.max_images = config.MAX_GALLERY_IMAGES if max_images is None else max_images
        self.timeout_s = timeout_s or config.IMAGE_TIMEOUT_S
        self.concurrency = max(1, concurrency or config.IMAGE_CONCURRENCY)
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=self._transport,
            timeout=self.timeout_s,
            follow_redirects=True,
            headers={"User-Agent": config.USER_AGENT},
        )

    def _destination(self) -> str:
        os.makedirs(self.upload_dir, exist_ok=True)
        while True:
            name = unique_image_name()
            path = os.path.join(self.upload_dir, name)
            if not os.path.exists(path):
                return path

    async def download_images(self, urls: List[str]) -> List[str]:
        """Download at most max_images of urls; successes only, in input order."""
        attempted = list(urls)[:self.max_images]
        if len(urls) > len(attempted):
            logger.info(f"Limiting gallery to {len(attempted)} of {len(urls)} images")
        if not attempted:
            return []

        semaphore = asyncio.Semaphore(self.concurrency)

        async def fetch(client: httpx.AsyncClient, url: str) -> Optional[str]:
            async with semaphore:
                return await self._download(client, url)

        async with self._client() as client:
            paths = await asyncio.gather(*(fetch(client, u) for u in attempted))
        return [p for p in paths if p]

    async def download_image(self, url: str) -> Optional[str]:
        """Download a single image; None if it could not be fetched."""
        if not url:
            return None
        async with self._client() as client:
            return await self._download(client, url)

    async def _download(self, client: httpx.AsyncClient, url: str) -> Optional[str]:
        path = None
        try:
            path = self._destination()
            # The client timeout bounds each read; this bounds the whole transfer
            await asyncio.wait_for(self._stream_to_file(client, url, path), self.timeout_s)
        except asyncio.TimeoutError:
            logger.warning(f"Timed out after {self.timeout_s} s downloading image {url}")
            self._discard(path)
            return None
        except (httpx.HTTPError, httpx.InvalidURL, OSError) as e:
            logger.warning(f"Error downloading image {url}: {e}")
            self._discard(path)
            return None

        return f"{self.url_prefix}/{os.path.basename(path)}"

    async def _stream_to_file(self, client: httpx.AsyncClient, url: str, path: str) -> None:
        async with client.stream("GET", url) as resp:
            resp.raise_for_status()
            with open(path, "wb") as fh:
                async for chunk in resp.aiter_bytes():
                    fh.write(chunk)

    @staticmethod
    def _discard(path: Optional[str]) -> None:
        if path and os.path.exists(path):
            os.remove(path)
