# tabload/extractors/http_fetcher.py
"""
HTTP retrieval of remote sources
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse
import uuid

import requests
from requests.adapters import HTTPAdapter

from tabload.config.settings import HttpConfig
from tabload.utils.logger import get_logger
from tabload.utils.exceptions import FetchError


@dataclass
class _Progress:
    """Byte counter that reports at most once per ``interval`` seconds"""
    total: int
    interval: float = 5.0
    received: int = 0
    started: float = field(default_factory=time.monotonic)
    reported: float = field(default_factory=time.monotonic)

    def add(self, count: int) -> bool:
        """Count ``count`` bytes; True when a report is due"""
        self.received += count
        now = time.monotonic()
        if now - self.reported < self.interval:
            return False
        self.reported = now
        return True

    @property
    def rate_mbps(self) -> float:
        elapsed = time.monotonic() - self.started
        return self.received / (1024 * 1024) / elapsed if elapsed > 0 else 0.0

    def describe(self) -> str:
        if self.total:
            return (
                f"{self.received / self.total:.0%} of {self.total:,} bytes "
                f"at {self.rate_mbps:.1f} MB/s"
            )
        return f"{self.received:,} bytes at {self.rate_mbps:.1f} MB/s"


class HttpFetcher:
    """
    Fetches remote sources with a single GET

    A failed request is fatal for the run: the session is mounted with
    zero retries and any non-2xx status raises FetchError.
    """

    def __init__(self, config: Optional[HttpConfig] = None):
        """
        Initialize HTTP fetcher

        Args:
            config: HTTP configuration, defaults to HttpConfig()
        """
        self.config = config or HttpConfig()
        self.logger = get_logger(__name__)
        self._session = self._create_session()

    def _create_session(self) -> requests.Session:
        """
        Create HTTP session without retries and with identifying headers

        Returns:
            Configured requests Session object
        """
        session = requests.Session()

        adapter = HTTPAdapter(max_retries=0)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        session.headers.update({
            'User-Agent': self.config.user_agent,
            'Accept': '*/*',
            'Accept-Encoding': 'gzip, deflate',
        })

        return session

    def fetch(self, url: str) -> bytes:
        """
        Retrieve the whole response body

        Args:
            url: http(s) URL of the source

        Returns:
            Response body

        Raises:
            FetchError: On network failure or a non-2xx status
        """
        self.logger.info(f"Fetching: {url}")
        start_time = time.monotonic()

        try:
            response = self._session.get(url, timeout=self.config.timeout_seconds)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise FetchError(
                f"Network error fetching {url}: {str(e)}",
                context={'url': url},
                cause=e
            ) from e

        body = response.content
        elapsed_time = time.monotonic() - start_time
        self.logger.info(f"Fetched {len(body):,} bytes in {elapsed_time:.1f}s")
        return body

    def download_to(self, url: str, directory: Path, suffix: str = "") -> Path:
        """
        Stream a source into a new file under ``directory``

        The body is written to a ``.tmp`` sibling and renamed once complete,
        so a failed download never leaves a truncated file behind.

        Raises:
            FetchError: On network or file I/O failure
        """
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        stem = Path(urlparse(url).path).stem or "download"
        local_path = directory / f"{stem}-{uuid.uuid4().hex[:8]}{suffix}"
        partial = local_path.with_name(local_path.name + ".tmp")

        self.logger.info(f"Downloading {url} to {local_path}")

        try:
            response = self._session.get(url, stream=True, timeout=self.config.timeout_seconds)
            response.raise_for_status()
            progress = _Progress(total=int(response.headers.get('content-length', 0)))

            with open(partial, 'wb') as sink:
                for chunk in response.iter_content(chunk_size=self.config.chunk_size):
                    if not chunk:
                        continue
                    sink.write(chunk)
                    if progress.add(len(chunk)):
                        self.logger.info(f"Downloading {url}: {progress.describe()}")

            partial.replace(local_path)

        except requests.exceptions.RequestException as e:
            partial.unlink(missing_ok=True)
            raise FetchError(
                f"Network error downloading {url}: {str(e)}",
                context={'url': url},
                cause=e
            ) from e

        except OSError as e:
            partial.unlink(missing_ok=True)
            raise FetchError(
                f"File I/O error saving {local_path}: {str(e)}",
                context={'url': url, 'path': str(local_path)},
                cause=e
            ) from e

        self.logger.info(f"Downloaded {url}: {progress.describe()}")
        return local_path

    def close(self) -> None:
        self._session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
