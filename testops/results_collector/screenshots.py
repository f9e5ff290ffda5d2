"""Download of failure screenshots into the reports directory."""

import logging
import time
from pathlib import Path
from urllib.parse import urlparse

import aiohttp

from testops.results_collector.errors import ScreenshotDownloadError
from testops.results_collector.file_utils import sanitize_test_name

logger = logging.getLogger(__name__)

SCREENSHOTS_DIR = "screenshots"


class ScreenshotStore:
    """Stores screenshots under ``<reports>/screenshots``.

    Returned paths are relative to the reports directory so the front end
    can resolve them next to the report files.
    """

    def __init__(
        self,
        reports_path: Path,
        session: aiohttp.ClientSession,
        timeout: float = 60.0,
    ) -> None:
        """Initialize the store writing below ``reports_path``."""
        self.directory = reports_path / SCREENSHOTS_DIR
        self.session = session
        self.timeout = timeout

    def _reserve_path(self, test_name: str) -> Path:
        """Create an empty ``<name>_<epoch-ms>.png`` file that no one else uses.

        The file is created right away so concurrent downloads of the same
        test name within one millisecond get distinct names.
        """
        stem = sanitize_test_name(test_name)
        timestamp = int(time.time() * 1000)
        while True:
            path = self.directory / f"{stem}_{timestamp}.png"
            try:
                path.touch(exist_ok=False)
            except FileExistsError:
                timestamp += 1
                continue
            return path

    async def download(self, image_url: str, test_name: str) -> str:
        """Download ``image_url`` and return its path relative to the reports.

        Raises:
            ScreenshotDownloadError: If the URL is not http(s) or the download fails

        """
        scheme = urlparse(image_url).scheme
        if scheme not in {"http", "https"}:
            raise ScreenshotDownloadError(
                f'Unsupported protocol "{scheme}" in image URL: {image_url}'
            )

        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._reserve_path(test_name)

        try:
            async with self.session.get(
                image_url,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                allow_redirects=True,
                max_redirects=5,
            ) as response:
                if not 200 <= response.status < 300:
                    raise ScreenshotDownloadError(
                        f"Failed to download image: {response.status} {image_url}"
                    )
                content = await response.read()
            path.write_bytes(content)
        except ScreenshotDownloadError:
            path.unlink(missing_ok=True)
            raise
        except (aiohttp.ClientError, TimeoutError, OSError) as e:
            path.unlink(missing_ok=True)
            raise ScreenshotDownloadError(f"Failed to download image: {e}") from e

        logger.info(f"Downloaded screenshot for failed test: {test_name}")
        return f"{SCREENSHOTS_DIR}/{path.name}"
