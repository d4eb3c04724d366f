"""
Archive expansion for Ticket Sync.

Expands downloaded zip attachments next to where they were saved, into a
folder named after the archive's single root (or the archive itself), never
overwriting an existing folder.
"""

import shutil
import zipfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import BinaryIO, Callable, ContextManager, Iterator, List, Optional

from ..constants import ARCHIVE_EXTENSIONS
from ..core.formatting import safe_relative_path
from ..errors import ArchiveError
from ..models import Extracted, ExtractFailed, ExtractResult


@dataclass(frozen=True)
class ArchiveEntry:
    """One member of an archive, independent of the archive library."""
    relative_path: str
    is_directory: bool
    open: Callable[[], BinaryIO]


EntryReader = Callable[[Path], ContextManager[List[ArchiveEntry]]]


def is_archive_file(filename: str) -> bool:
    """Check if a filename has an extension that gets expanded."""
    return Path(filename).suffix.lower() in ARCHIVE_EXTENSIONS


@contextmanager
def read_zip_entries(archive_path: Path) -> Iterator[List[ArchiveEntry]]:
    """Yield the entries of a zip file; they can be opened until the block exits."""
    try:
        zf = zipfile.ZipFile(archive_path, "r")
    except zipfile.BadZipFile as e:
        raise ArchiveError(f"not a valid zip file ({e})") from e

    with zf:
        yield [
            ArchiveEntry(
                relative_path=info.filename,
                is_directory=info.is_dir(),
                open=lambda info=info: zf.open(info, "r"),
            )
            for info in zf.infolist()
        ]


def top_level_names(entries: List[ArchiveEntry]) -> set[str]:
    """Distinct first path segments across all entries."""
    names = set()
    for entry in entries:
        rel = safe_relative_path(entry.relative_path)
        if rel is not None:
            names.add(rel.parts[0])
    return names


def _is_rooted(entries: List[ArchiveEntry], root: str) -> bool:
    """
    True if every entry lives inside a single folder named root.

    An archive holding just one file at its top level has one top-level name
    too, but that name is the file itself and must not become a folder.
    """
    for entry in entries:
        rel = safe_relative_path(entry.relative_path)
        if rel is None:
            continue
        if len(rel.parts) == 1 and not entry.is_directory:
            return False
    return True


def unique_folder(parent: Path, name: str) -> Path:
    """
    First free folder path for name under parent.

    Tries name, then name(1), name(2), ... until nothing exists at that path.
    """
    candidate = parent / name
    counter = 1
    while candidate.exists():
        candidate = parent / f"{name}({counter})"
        counter += 1
    return candidate


def _entry_target(rel: PurePosixPath, strip_root: bool) -> Optional[PurePosixPath]:
    if strip_root:
        if len(rel.parts) == 1:
            return None
        return PurePosixPath(*rel.parts[1:])
    return rel


def extract_archive(
    archive_path: Path,
    destination_folder: Path,
    reader: EntryReader = read_zip_entries,
) -> ExtractResult:
    """
    Expand an archive into a new, collision-free folder under destination_folder.

    Args:
        archive_path: Downloaded archive file
        destination_folder: Folder the extraction folder is created in
        reader: Opens the archive and yields its entries

    Returns:
        Extracted(root_folder, file_count) on success, after deleting the archive.
        ExtractFailed(cause) otherwise; the archive and any partial output stay.
    """
    archive_path = Path(archive_path)
    destination_folder = Path(destination_folder)

    try:
        with reader(archive_path) as entries:
            roots = top_level_names(entries)
            strip_root = len(roots) == 1 and _is_rooted(entries, next(iter(roots)))
            folder_name = next(iter(roots)) if strip_root else archive_path.stem

            root_folder = unique_folder(destination_folder, folder_name)
            root_folder.mkdir(parents=True)

            file_count = 0
            for entry in entries:
                rel = safe_relative_path(entry.relative_path)
                if rel is None:
                    continue
                target = _entry_target(rel, strip_root)
                if target is None:
                    continue

                out_path = root_folder.joinpath(*target.parts)
                if entry.is_directory:
                    out_path.mkdir(parents=True, exist_ok=True)
                    continue

                out_path.parent.mkdir(parents=True, exist_ok=True)
                with entry.open() as src, open(out_path, "wb") as dst:
                    shutil.copyfileobj(src, dst)
                file_count += 1
    except Exception as e:
        return ExtractFailed(f"{archive_path.name}: {e}")

    try:
        archive_path.unlink()
    except OSError:
        pass

    return Extracted(root_folder, file_count)
