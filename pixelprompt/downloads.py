"""
Saving generated images to disk.
"""

import logging
import time
from pathlib import Path
from typing import Callable, Optional

import httpx

from pixelprompt.images import decode_data_url, generate_filename, numbered_filename
from pixelprompt.models import DownloadState, GeneratedImage

logger = logging.getLogger(__name__)

DOWNLOAD_DELAY = 0.5  # seconds between images in a multi-download


class ImageDownloader:
    """Downloads remote images and tracks progress in a DownloadState.

    Failures are recorded on ``state.error`` rather than raised, so one
    bad image never stops the caller.
    """

    def __init__(
        self,
        download_dir: Path,
        delay: float = DOWNLOAD_DELAY,
        timeout: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.download_dir = Path(download_dir)
        self.delay = delay
        self.state = DownloadState()
        self._sleep = sleep
        self._client = httpx.Client(timeout=timeout, transport=transport, follow_redirects=True)

    def _fetch(self, url: str, filename: str) -> Optional[Path]:
        """Fetch ``url`` into the download directory. Returns None on failure."""
        try:
            if url.startswith("data:"):
                content = decode_data_url(url)
            else:
                response = self._client.get(url)
                if not response.is_success:
                    raise RuntimeError(f"Failed to fetch image: {response.status_code}")
                content = response.content

            self.download_dir.mkdir(parents=True, exist_ok=True)
            path = self.download_dir / filename
            path.write_bytes(content)
            return path
        except (httpx.HTTPError, httpx.InvalidURL, RuntimeError, ValueError, OSError) as e:
            logger.error("Download failed for %.80s: %s", url, e)
            return None

    def download_image(self, image: GeneratedImage, filename: Optional[str] = None) -> Optional[Path]:
        """
        Download a single image.

        Args:
            image: The image to save
            filename: Optional filename; derived from the prompt if omitted

        Returns:
            Path of the saved file, or None if the download failed.
        """
        self.state.is_downloading = True
        self.state.download_progress = 0
        self.state.error = None

        filename = filename or generate_filename(image.prompt, image.style, image.size)
        self.state.download_progress = 50

        path = self._fetch(image.url, filename)
        self.state.is_downloading = False
        if path is None:
            self.state.download_progress = 0
            self.state.error = "Download failed - unable to save image"
            return None

        self.state.download_progress = 100
        self.state.last_downloaded_id = image.id
        return path

    def download_multiple(
        self,
        images: list[GeneratedImage],
        on_progress: Optional[Callable[[int, int, float], None]] = None,
    ) -> list[Path]:
        """
        Download images one at a time with a pause between them.

        Args:
            images: Images to save, in order
            on_progress: Called with (completed, total, percent) after each image

        Returns:
            Paths of the images that were saved.
        """
        if not images:
            return []

        self.state.is_downloading = True
        self.state.download_progress = 0
        self.state.error = None

        total = len(images)
        saved = []

        for i, image in enumerate(images):
            filename = numbered_filename(generate_filename(image.prompt, image.style, image.size), i + 1)
            path = self._fetch(image.url, filename)
            if path is not None:
                saved.append(path)
                self.state.last_downloaded_id = image.id

            self.state.download_progress = (i + 1) / total * 100
            if on_progress:
                on_progress(i + 1, total, self.state.download_progress)

            if i < total - 1:
                self._sleep(self.delay)

        self.state.is_downloading = False
        self.state.download_progress = 100
        if len(saved) < total:
            self.state.error = f"Downloaded {len(saved)}/{total} images successfully"

        return saved

    def clear_error(self) -> None:
        self.state.error = None

    def close(self):
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
