"""
Sync operations module.

Handles hashing, hash-gated downloading, archive expansion and the
per-ticket sync pass.
"""

from .hashing import ContentHasher, KnownHashes
from .downloader import FileDownloader, temp_path_for
from .extractor import ArchiveEntry, extract_archive, is_archive_file, read_zip_entries, unique_folder
from .attachment_sync import AttachmentSync

__all__ = [
    # Hashing
    "ContentHasher",
    "KnownHashes",
    # Downloader
    "FileDownloader",
    "temp_path_for",
    # Archives
    "ArchiveEntry",
    "extract_archive",
    "is_archive_file",
    "read_zip_entries",
    "unique_folder",
    # Orchestration
    "AttachmentSync",
]
