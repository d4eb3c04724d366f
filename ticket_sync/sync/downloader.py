"""
Hash-gated file downloader for Ticket Sync.

Streams one attachment to a temporary sibling file while hashing it, then
keeps or discards it depending on whether its content is already known.
"""

import os
import time
from pathlib import Path
from typing import Optional, Tuple, Union

import requests

from ..constants import TEMP_SUFFIX
from ..core.progress import ProgressTracker
from ..models import DownloadFailed, DownloadResult, Duplicate, Saved
from .hashing import ContentHasher, KnownHashes


def temp_path_for(destination: Path) -> Path:
    """In-flight download path: the destination with ".temp" appended."""
    return destination.with_name(destination.name + TEMP_SUFFIX)


def _remove_quietly(path: Path):
    try:
        path.unlink()
    except FileNotFoundError:
        pass


class FileDownloader:
    """
    Downloads attachments through an authenticated requests session.

    The session carries the ticketing service credentials; this class only
    decides what happens to the bytes.
    """

    def __init__(
        self,
        session: requests.Session,
        max_retries: int = 3,
        timeout: Tuple[int, int] = (10, 120),
        chunk_size: int = 32768,
        progress: Optional[ProgressTracker] = None,
        retry_delay: float = 0.5,
    ):
        """
        Initialize the downloader.

        Args:
            session: Authenticated session used for every GET
            max_retries: Attempts per file for timeouts, connection errors and 5xx
            timeout: Request timeout (connect, read)
            chunk_size: Download chunk size in bytes
            progress: Where to report warnings (defaults to stdout)
            retry_delay: Base delay between attempts, grows linearly
        """
        self.session = session
        self.max_retries = max_retries
        self.timeout = timeout
        self.chunk_size = chunk_size
        self.progress = progress or ProgressTracker()
        self.retry_delay = retry_delay

    def download(
        self,
        url: str,
        destination: Union[str, Path],
        known_hashes: KnownHashes,
    ) -> DownloadResult:
        """
        Download url to destination unless its content hash is already known.

        Returns:
            Saved(path, hash) when the file was kept,
            Duplicate(path, hash) when identical content already exists,
            DownloadFailed(path, cause) on any transfer or I/O error.
            No temporary file is left behind in any case.
        """
        destination = Path(destination)
        display_name = destination.name

        for attempt in range(self.max_retries):
            try:
                return self._download_once(url, destination, known_hashes)

            except requests.exceptions.HTTPError as e:
                status = e.response.status_code if e.response is not None else 0
                if 500 <= status < 600 and attempt < self.max_retries - 1:
                    time.sleep(self.retry_delay * (attempt + 1))
                    continue
                return DownloadFailed(destination, f"HTTP {status}: {display_name}")

            except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as e:
                if attempt < self.max_retries - 1:
                    time.sleep(self.retry_delay * (attempt + 1))
                    continue
                return DownloadFailed(destination, f"{type(e).__name__}: {display_name} - {e}")

            except requests.exceptions.RequestException as e:
                return DownloadFailed(destination, f"{display_name} - {e}")

            except OSError as e:
                return DownloadFailed(destination, f"write failed: {display_name} - {e}")

        return DownloadFailed(destination, f"{display_name} - failed after {self.max_retries} attempts")

    def _download_once(self, url: str, destination: Path, known_hashes: KnownHashes) -> DownloadResult:
        """One attempt. Raises on transfer errors after removing the temp file."""
        temp_path = temp_path_for(destination)
        hasher = ContentHasher()

        try:
            with self.session.get(url, stream=True, allow_redirects=True, timeout=self.timeout) as response:
                response.raise_for_status()

                destination.parent.mkdir(parents=True, exist_ok=True)
                with open(temp_path, "wb") as f:
                    for chunk in response.iter_content(chunk_size=self.chunk_size):
                        if chunk:
                            f.write(chunk)
                            hasher.update(chunk)
        except BaseException:
            _remove_quietly(temp_path)
            raise

        digest = hasher.hexdigest()

        if not known_hashes.claim(digest):
            _remove_quietly(temp_path)
            self.progress.write(f"  SKIP (duplicate): {destination.name}")
            return Duplicate(destination, digest)

        try:
            os.replace(temp_path, destination)
        except OSError:
            known_hashes.discard(digest)
            _remove_quietly(temp_path)
            raise

        return Saved(destination, digest)
