"""
Fetching raw audio bytes from a locator.

A locator is either an http(s) URL or a path on the local filesystem.
"""

import logging
from pathlib import Path
from typing import Optional

import requests

from ..config import Config


logger = logging.getLogger(__name__)


class AudioLoadError(Exception):
    """Raised when audio bytes cannot be fetched from a locator."""
    pass


def is_remote(locator: str) -> bool:
    return locator.startswith(('http://', 'https://'))


class AudioLoader:
    """Loads audio bytes from URLs or local files."""

    def __init__(self, session: Optional[requests.Session] = None,
                 timeout: float = Config.HTTP_TIMEOUT):
        self.session = session or requests.Session()
        self.timeout = timeout

    def load_bytes(self, locator: str) -> bytes:
        """
        Fetch the bytes behind a locator.

        Args:
            locator: URL or local file path

        Returns:
            Raw audio bytes

        Raises:
            AudioLoadError: If the locator cannot be read or is empty
        """
        if is_remote(locator):
            data = self._download(locator)
        else:
            path = Path(locator)
            if not path.is_file():
                raise AudioLoadError(f"Audio file not found: {locator}")
            data = path.read_bytes()

        if not data:
            raise AudioLoadError(f"Audio is empty: {locator}")
        return data

    def _download(self, url: str) -> bytes:
        try:
            response = self.session.get(
                url, headers={'Accept': 'audio/*'}, timeout=self.timeout
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise AudioLoadError(f"Download failed for {url}: {e}")

        logger.debug(f"Downloaded {len(response.content)} bytes from {url}")
        return response.content
