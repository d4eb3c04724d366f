"""
Exception types for Ticket Sync.

Per-item failures (one attachment, one ticket id) are turned into result
values where they happen: DownloadFailed for transfers, ExtractFailed for
archives, RemoveResult.failed_deletions for folders. Only PersistenceError
is allowed to escape a sync or removal, since the in-memory index would
otherwise drift from disk.
"""


class TicketSyncError(Exception):
    """Base class for Ticket Sync errors."""


class ArchiveError(TicketSyncError):
    """Corrupt or unreadable archive."""


class PersistenceError(TicketSyncError):
    """The workspace index could not be written."""


class ConfigError(TicketSyncError):
    """Missing or invalid configuration."""
