"""
Attachment sync orchestration for Ticket Sync.

Coordinates listing, downloading, deduplication and archive expansion for a
batch of tickets, then hands the results to the workspace index.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, Optional, Union

from ..core.formatting import format_duration
from ..core.progress import ProgressTracker
from ..models import (
    AttachmentInfo,
    AttachmentRecord,
    DownloadFailed,
    DownloadResult,
    Duplicate,
    Extracted,
    Found,
    SyncReport,
    date_folder_name,
    lookup_message,
)
from ..state.workspace import Workspace, normalize_ticket_ids
from .downloader import FileDownloader
from .extractor import extract_archive, is_archive_file
from .hashing import KnownHashes


class AttachmentSync:
    """
    Syncs ticket attachments into <tickets_root>/<ticket id>/<YYYY-MM-DD>/.

    By default every transfer runs one after another. With max_workers > 1
    the transfers of a single ticket overlap, but the known-hash check and
    insert still happen one at a time, and results are handled in
    attachment order on the calling thread.
    """

    def __init__(
        self,
        client,
        workspace: Workspace,
        downloader: FileDownloader,
        max_workers: int = 1,
        progress: Optional[ProgressTracker] = None,
    ):
        """
        Args:
            client: Ticketing client providing list_attachments() and list_open_ticket_ids()
            workspace: Index the results are added to
            downloader: Hash-gated downloader
            max_workers: Concurrent transfers per ticket
            progress: Output channel (defaults to stdout)
        """
        self.client = client
        self.workspace = workspace
        self.downloader = downloader
        self.max_workers = max(1, max_workers)
        self.progress = progress or ProgressTracker()

    @property
    def tickets_root(self) -> Path:
        return self.workspace.tickets_root

    def sync(self, ticket_ids: Union[str, int, Iterable[Union[str, int]]]) -> SyncReport:
        """
        Download every new attachment of the given tickets and index them.

        Tickets with at least one newly saved attachment end up in
        report.records and are passed to Workspace.add(). PersistenceError
        from that call propagates.
        """
        tickets = normalize_ticket_ids(ticket_ids)
        known_hashes = KnownHashes(self.workspace.all_hashes())
        report = SyncReport()
        start = time.time()

        for ticket_id in tickets:
            listing = self.client.list_attachments(ticket_id)
            if not isinstance(listing, Found) or not listing.value:
                reason = lookup_message(listing)
                self.progress.write(f"No attachments found for ticket {ticket_id}." + (f" ({reason})" if reason else ""))
                report.skipped_tickets.append(ticket_id)
                continue

            attachments = listing.value
            records = self.sync_ticket(ticket_id, attachments, known_hashes, report)
            self.progress.write(
                f"Downloaded {len(records)} out of {len(attachments)} attachments for ticket {ticket_id}."
            )
            if records:
                report.records[ticket_id] = records

        if report.records:
            report.add_result = self.workspace.add(report.records)
            for ticket_id in report.add_result.already_present:
                self.progress.write(
                    f"  WARN: ticket {ticket_id} is already indexed; its new files were kept on disk "
                    f"but not recorded. Remove the ticket and sync it again to index them."
                )
        else:
            self.progress.write("No new tickets were added to the workspace.")

        self.progress.write(
            f"Sync finished in {format_duration(time.time() - start)}: "
            f"{report.saved} saved, {report.duplicates} duplicate, {report.failed} failed"
        )
        return report

    def sync_assigned(self, assignee_id: str) -> SyncReport:
        """Sync every open ticket assigned to a user."""
        listing = self.client.list_open_ticket_ids(assignee_id)
        if not isinstance(listing, Found) or not listing.value:
            reason = lookup_message(listing)
            self.progress.write(reason or "No tickets found.")
            return SyncReport()

        self.progress.write(f"Ticket IDs: {', '.join(listing.value)}")
        return self.sync(listing.value)

    def sync_ticket(
        self,
        ticket_id: str,
        attachments: list[AttachmentInfo],
        known_hashes: KnownHashes,
        report: SyncReport,
    ) -> list[AttachmentRecord]:
        """Download one ticket's attachments; returns the records that were saved."""
        planned: list[tuple[AttachmentInfo, Path]] = []
        for info in attachments:
            date_folder = self.workspace.ticket_folder(ticket_id) / date_folder_name(info.created_at)
            try:
                date_folder.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                report.failed += 1
                self.progress.write(f"  ERR: could not create {date_folder}: {e}")
                continue
            planned.append((info, date_folder / info.file_name))

        def fetch(item: tuple[AttachmentInfo, Path]) -> DownloadResult:
            info, destination = item
            return self.downloader.download(info.url, destination, known_hashes)

        if self.max_workers > 1 and len(planned) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                results = list(executor.map(fetch, planned))
        else:
            results = (fetch(item) for item in planned)

        records = []
        for (info, _), result in zip(planned, results):
            record = self._handle_result(info, result, report)
            if record is not None:
                records.append(record)
        return records

    def _handle_result(
        self,
        info: AttachmentInfo,
        result: DownloadResult,
        report: SyncReport,
    ) -> Optional[AttachmentRecord]:
        if isinstance(result, Duplicate):
            report.duplicates += 1
            return None

        if isinstance(result, DownloadFailed):
            report.failed += 1
            self.progress.write(f"  ERR: {result.cause} ({info.url})")
            return None

        report.saved += 1
        self.progress.write(f"  OK: {result.path.name}")

        if is_archive_file(result.path.name):
            expanded = extract_archive(result.path, result.path.parent)
            if isinstance(expanded, Extracted):
                report.extracted += 1
                self.progress.write(f"  Extracted {expanded.file_count} files to {expanded.root_folder.name}/")
            else:
                report.extract_failed += 1
                self.progress.write(f"  ERR: failed to unzip {info.file_name}: {expanded.cause}")

        return AttachmentRecord.from_info(info, hash=result.hash)
