"""
Data model for Ticket Sync.

Records stored in the workspace index, metadata returned by the ticketing
service, and the result types passed between sync components.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Generic, TypeVar, Union

from .constants import CLOSED_STATUSES

T = TypeVar("T")


# ============================================================================
# Ticketing service metadata
# ============================================================================

@dataclass
class AttachmentInfo:
    """An attachment as listed by the ticketing service."""
    url: str
    created_at: str  # e.g. "2024-12-19T23:02:36Z"
    file_name: str
    id: str = ""


@dataclass
class TicketStatus:
    """Current status of a ticket on the service."""
    id: str
    status: str

    @property
    def is_closed(self) -> bool:
        return self.status.lower() in CLOSED_STATUSES


# ============================================================================
# Persisted index records
# ============================================================================

def date_folder_name(created_at: str) -> str:
    """Day portion of an ISO timestamp, used as the date folder name."""
    return created_at.split("T")[0] or "undated"


@dataclass
class AttachmentRecord:
    """One downloaded attachment in the workspace index."""
    url: str
    created_at: str
    file_name: str
    hash: str = ""

    @property
    def date_folder(self) -> str:
        return date_folder_name(self.created_at)

    @classmethod
    def from_info(cls, info: AttachmentInfo, hash: str = "") -> "AttachmentRecord":
        return cls(url=info.url, created_at=info.created_at, file_name=info.file_name, hash=hash)

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "createdAt": self.created_at,
            "fileName": self.file_name,
            "hash": self.hash,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AttachmentRecord":
        return cls(
            url=data.get("url", ""),
            created_at=data.get("createdAt", ""),
            file_name=data.get("fileName", ""),
            hash=data.get("hash", ""),
        )


@dataclass
class TicketEntry:
    """Local state of one ticket: the attachments synced for it."""
    attachments: list[AttachmentRecord] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"attachments": [a.to_dict() for a in self.attachments]}

    @classmethod
    def from_dict(cls, data: dict) -> "TicketEntry":
        return cls(attachments=[AttachmentRecord.from_dict(a) for a in data.get("attachments", [])])


# ============================================================================
# Lookup results
# ============================================================================

@dataclass
class Found(Generic[T]):
    value: T


@dataclass
class NotFound:
    reason: str = ""


@dataclass
class Failed:
    cause: str


LookupResult = Union[Found, NotFound, Failed]


# ============================================================================
# Download / extraction results
# ============================================================================

@dataclass
class Saved:
    """Download finalized at path with the given content hash."""
    path: Path
    hash: str


@dataclass
class Duplicate:
    """Downloaded content was already known; nothing was kept."""
    path: Path
    hash: str


@dataclass
class DownloadFailed:
    path: Path
    cause: str


DownloadResult = Union[Saved, Duplicate, DownloadFailed]


@dataclass
class Extracted:
    root_folder: Path
    file_count: int = 0


@dataclass
class ExtractFailed:
    cause: str


ExtractResult = Union[Extracted, ExtractFailed]


# ============================================================================
# Operation reports
# ============================================================================

@dataclass
class AddResult:
    added: list[str] = field(default_factory=list)
    already_present: list[str] = field(default_factory=list)


@dataclass
class RemoveResult:
    removed: list[str] = field(default_factory=list)
    not_found: list[str] = field(default_factory=list)
    failed_deletions: dict[str, str] = field(default_factory=dict)  # ticket_id -> error


@dataclass
class SyncReport:
    """Outcome of one sync pass."""
    records: dict[str, list[AttachmentRecord]] = field(default_factory=dict)
    saved: int = 0
    duplicates: int = 0
    failed: int = 0
    extracted: int = 0
    extract_failed: int = 0
    skipped_tickets: list[str] = field(default_factory=list)
    add_result: AddResult = field(default_factory=AddResult)

    def summary(self) -> dict[str, Any]:
        return {
            "tickets": len(self.records),
            "saved": self.saved,
            "duplicates": self.duplicates,
            "failed": self.failed,
            "extracted": self.extracted,
            "added": len(self.add_result.added),
            "already_present": len(self.add_result.already_present),
        }


def lookup_message(result) -> str:
    """Human-readable reason for a NotFound or Failed lookup."""
    if isinstance(result, NotFound):
        return result.reason
    if isinstance(result, Failed):
        return result.cause
    return ""
