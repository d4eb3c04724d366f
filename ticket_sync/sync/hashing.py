"""
Content hashing for Ticket Sync.

Attachments are identified by the SHA-256 of their bytes, computed while they
stream in, so identical files are stored once no matter what they're called.
"""

import hashlib
import threading
from typing import Iterable, Optional

HASH_ALGORITHM = "sha256"


class ContentHasher:
    """Incremental digest over a byte stream."""

    def __init__(self):
        self._hash = hashlib.new(HASH_ALGORITHM)
        self.bytes_seen = 0

    def update(self, chunk: bytes):
        self._hash.update(chunk)
        self.bytes_seen += len(chunk)

    def hexdigest(self) -> str:
        return self._hash.hexdigest()


class KnownHashes:
    """
    Every content hash accepted so far, across the whole workspace.

    Seeded from the workspace index at the start of a sync pass and extended
    as new attachments are accepted, so duplicates inside one pass are caught
    too. claim() does the membership check and the insert under one lock;
    two transfers with identical bytes can't both be accepted.
    """

    def __init__(self, hashes: Optional[Iterable[str]] = None):
        self._lock = threading.Lock()
        self._hashes: set[str] = {h for h in (hashes or ()) if h}

    def claim(self, digest: str) -> bool:
        """Record digest as taken. Returns False if it was already known."""
        with self._lock:
            if digest in self._hashes:
                return False
            self._hashes.add(digest)
            return True

    def discard(self, digest: str):
        with self._lock:
            self._hashes.discard(digest)

    def __contains__(self, digest: str) -> bool:
        with self._lock:
            return digest in self._hashes

    def __len__(self) -> int:
        return len(self._hashes)
