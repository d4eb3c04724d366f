"""
Workspace index for Ticket Sync.

The index maps ticket id -> synced attachments and is the single source of
truth for what has been downloaded. The folder tree under the tickets root
mirrors it; removal keeps the two in step (best effort, not transactional).
"""

import shutil
import threading
from pathlib import Path
from typing import Iterable, Optional, Union

from ..constants import WORKSPACE_DATA_KEY
from ..core.formatting import pluralize, sanitize_filename
from ..models import AddResult, AttachmentRecord, RemoveResult, TicketEntry, TicketStatus


def normalize_ticket_ids(ticket_ids: Union[str, int, Iterable[Union[str, int]]]) -> list[str]:
    """Accept one id or a sequence of ids; always return an ordered list of strings."""
    if isinstance(ticket_ids, (str, int)):
        return [str(ticket_ids)]
    return [str(t) for t in ticket_ids]


class Workspace:
    """
    Owns the persisted ticket -> attachments index.

    Every mutating call runs its read-modify-write cycle under one lock and
    persists before returning. A failed write raises PersistenceError.
    """

    def __init__(self, store, tickets_root: Path):
        """
        Args:
            store: Key-value store with get(key, default) and set(key, value)
            tickets_root: Folder holding one subfolder per ticket id
        """
        self.store = store
        self.tickets_root = Path(tickets_root)
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _raw(self) -> dict:
        data = self.store.get(WORKSPACE_DATA_KEY, {})
        return data if isinstance(data, dict) else {}

    def load(self) -> dict[str, TicketEntry]:
        """Snapshot of the whole index."""
        with self._lock:
            return {tid: TicketEntry.from_dict(entry) for tid, entry in self._raw().items()}

    def get(self, ticket_id: str) -> Optional[TicketEntry]:
        with self._lock:
            entry = self._raw().get(str(ticket_id))
        return TicketEntry.from_dict(entry) if entry is not None else None

    def ticket_ids(self) -> list[str]:
        with self._lock:
            return list(self._raw().keys())

    def all_hashes(self) -> set[str]:
        """Every content hash currently in the index."""
        hashes = set()
        for entry in self.load().values():
            for attachment in entry.attachments:
                if attachment.hash:
                    hashes.add(attachment.hash)
        return hashes

    def ticket_folder(self, ticket_id: str) -> Path:
        return self.tickets_root / sanitize_filename(str(ticket_id))

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, entries: dict[str, list[AttachmentRecord]]) -> AddResult:
        """
        Insert tickets that aren't in the index yet.

        Tickets already present are left exactly as they are and reported
        as already present; their new attachments are not merged in.
        """
        entries = {str(ticket_id): attachments for ticket_id, attachments in entries.items()}
        result = AddResult()
        with self._lock:
            data = self._raw()
            for ticket_id, attachments in entries.items():
                if not attachments:
                    continue
                if ticket_id in data:
                    result.already_present.append(ticket_id)
                    continue
                data[ticket_id] = TicketEntry(attachments=list(attachments)).to_dict()
                result.added.append(ticket_id)

            self.store.set(WORKSPACE_DATA_KEY, data)

        if result.added:
            if len(result.added) == 1:
                count = len(entries[result.added[0]])
                print(f'Added ticket "{result.added[0]}" with {pluralize(count, "attachment")}.')
            else:
                print(f"Added {len(result.added)} tickets with their attachments.")
        if result.already_present:
            print(f"Already in the list: {', '.join(result.already_present)}")

        return result

    def remove(self, ticket_ids: Union[str, int, Iterable[Union[str, int]]]) -> RemoveResult:
        """
        Drop tickets from the index and delete their folders.

        A missing folder is fine. A folder that can't be deleted is recorded
        in failed_deletions; the index entry is still removed. Ids that aren't
        indexed are reported as not found and their folders are left alone.
        """
        result = RemoveResult()
        with self._lock:
            data = self._raw()
            for ticket_id in normalize_ticket_ids(ticket_ids):
                if ticket_id not in data:
                    result.not_found.append(ticket_id)
                    continue

                del data[ticket_id]
                result.removed.append(ticket_id)

                folder = self.ticket_folder(ticket_id)
                if not folder.exists():
                    continue
                try:
                    shutil.rmtree(folder)
                except FileNotFoundError:
                    pass
                except OSError as e:
                    result.failed_deletions[ticket_id] = str(e)

            self.store.set(WORKSPACE_DATA_KEY, data)

        if result.removed:
            print(f"Removed {pluralize(len(result.removed), 'ticket')}: {', '.join(result.removed)}")
        if result.not_found:
            print(f"Not found in workspace: {', '.join(result.not_found)}")
        for ticket_id, error in result.failed_deletions.items():
            print(f'  ERR: could not delete folder for ticket "{ticket_id}": {error}')

        return result

    def scrub_by_status(self, statuses: Iterable[TicketStatus]) -> RemoveResult:
        """Remove every ticket whose status is solved or closed."""
        closed_ids = [str(s.id) for s in statuses if s.is_closed]
        if not closed_ids:
            print("There are no solved tickets to remove.")
            return RemoveResult()
        return self.remove(closed_ids)

    def reset(self):
        """Forget every ticket. Folders on disk are left in place."""
        with self._lock:
            self.store.set(WORKSPACE_DATA_KEY, {})
