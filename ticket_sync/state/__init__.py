"""
Persisted state: the key-value store and the workspace index on top of it.
"""

from .store import JsonFileStore, MemoryStore
from .workspace import Workspace, normalize_ticket_ids

__all__ = [
    "JsonFileStore",
    "MemoryStore",
    "Workspace",
    "normalize_ticket_ids",
]
