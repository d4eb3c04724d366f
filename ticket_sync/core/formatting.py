"""
Formatting and naming utilities for Ticket Sync.
"""

import re
import unicodedata
from pathlib import Path, PurePosixPath
from typing import Iterable, Optional


# ============================================================================
# Filename sanitization (cross-platform)
# ============================================================================

# Characters that can't appear in a file name on at least one platform
ILLEGAL_CHAR_MAP = {
    "<": "-",
    ">": "-",
    ":": "-",
    '"': "'",
    "\\": "-",
    "/": "-",
    "|": "-",
    "?": "",
    "*": "",
}

CONTROL_CHARS = set(chr(i) for i in range(32)) | {chr(127)}

WINDOWS_RESERVED_NAMES = {
    "CON", "PRN", "AUX", "NUL",
    "COM1", "COM2", "COM3", "COM4", "COM5", "COM6", "COM7", "COM8", "COM9",
    "LPT1", "LPT2", "LPT3", "LPT4", "LPT5", "LPT6", "LPT7", "LPT8", "LPT9",
}


def sanitize_filename(filename: str) -> str:
    """
    Make a single path component safe to create on any platform.

    Attachment names come straight from the ticketing service, so they can
    contain separators, control characters or reserved device names.
    """
    if not filename:
        return "_"

    filename = unicodedata.normalize("NFC", filename)

    cleaned = []
    for char in filename:
        if char in ILLEGAL_CHAR_MAP:
            cleaned.append(ILLEGAL_CHAR_MAP[char])
        elif char in CONTROL_CHARS:
            cleaned.append("_")
        else:
            cleaned.append(char)
    filename = "".join(cleaned).rstrip(". ")

    stem = filename.split(".")[0].upper()
    if stem in WINDOWS_RESERVED_NAMES:
        filename = "_" + filename

    return filename or "_"


def safe_relative_path(entry_path: str) -> Optional[PurePosixPath]:
    """
    Turn an archive entry path into a relative path that stays inside its root.

    Drops empty, "." and ".." segments and any drive or root prefix, and
    sanitizes what is left. Returns None when nothing remains.
    """
    parts = []
    for part in entry_path.replace("\\", "/").split("/"):
        if part in ("", ".", ".."):
            continue
        if re.match(r"^[A-Za-z]:$", part):
            continue
        parts.append(sanitize_filename(part))
    if not parts:
        return None
    return PurePosixPath(*parts)


# ============================================================================
# Attachment file naming
# ============================================================================

def append_counter(file_name: str, counter: int) -> str:
    """Insert "(n)" before the extension: log.txt -> log(2).txt."""
    path = Path(file_name)
    return f"{path.stem}({counter}){path.suffix}"


def dedupe_file_names(file_names: Iterable[str]) -> list[str]:
    """
    Make names unique within one batch by numbering repeats.

    The first occurrence keeps its name; later repeats get "(n)" appended
    before the extension, starting at 2 and skipping any name already used
    in the batch. Names are compared case-insensitively.
    """
    used: set[str] = set()
    counters: dict[str, int] = {}
    result = []
    for name in file_names:
        key = name.casefold()
        if key not in used:
            used.add(key)
            result.append(name)
            continue

        counter = counters.get(key, 1)
        while True:
            counter += 1
            candidate = append_counter(name, counter)
            if candidate.casefold() not in used:
                break
        counters[key] = counter
        used.add(candidate.casefold())
        result.append(candidate)
    return result


def ticket_sort_key(ticket_id: str):
    """Numeric ids sort numerically, anything else after them by name."""
    if ticket_id.isdigit():
        return (0, int(ticket_id), "")
    return (1, 0, ticket_id.casefold())


# ============================================================================
# Output formatting
# ============================================================================

def format_duration(seconds: float) -> str:
    """Format seconds as human readable duration."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        return f"{int(seconds // 60)}m {int(seconds % 60)}s"
    else:
        return f"{int(seconds // 3600)}h {int((seconds % 3600) // 60)}m"


def pluralize(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"
