#!/usr/bin/env python3
"""
Ticket Sync - Download support ticket attachments to local storage.

Fetches the attachments of the tickets assigned to an agent into
~/Downloads/tickets/<ticket id>/<date>/, skipping content that is already
stored anywhere in the workspace, and cleans up tickets once they're solved.
"""

import argparse
import sys
from typing import Optional

from ticket_sync import __version__
from ticket_sync.config import SyncSettings, load_env, load_zendesk_config
from ticket_sync.constants import LAST_ASSIGNEE_KEY, LAST_EMAIL_KEY, LAST_FOLDER_KEY
from ticket_sync.core.formatting import pluralize, ticket_sort_key
from ticket_sync.errors import ConfigError, PersistenceError
from ticket_sync.models import Found, lookup_message
from ticket_sync.state import JsonFileStore, Workspace
from ticket_sync.sync import AttachmentSync, FileDownloader
from ticket_sync.utils import TeeOutput
from ticket_sync.zendesk import ZendeskClient


class SyncApp:
    """Main application controller."""

    def __init__(self, settings: Optional[SyncSettings] = None, client=None, store=None):
        self.settings = settings or SyncSettings.from_env()
        self.store = store if store is not None else JsonFileStore(self.settings.state_path)
        self.workspace = Workspace(self.store, self.settings.tickets_root)
        self._client = client

    @property
    def client(self):
        """Ticketing client, created on first use so offline commands need no credentials."""
        if self._client is None:
            self._client = ZendeskClient(load_zendesk_config())
        return self._client

    def make_syncer(self) -> AttachmentSync:
        downloader = FileDownloader(self.client.session, chunk_size=self.settings.chunk_size)
        return AttachmentSync(
            self.client,
            self.workspace,
            downloader,
            max_workers=self.settings.max_workers,
        )

    def _stored_assignee(self) -> Optional[str]:
        assignee_id = self.store.get(LAST_ASSIGNEE_KEY)
        if not assignee_id:
            print("No assignee ID stored. Run 'login EMAIL' first.")
            return None
        return assignee_id

    def handle_login(self, email: str) -> int:
        """Resolve an agent, remember them, and sync their open tickets."""
        result = self.client.search_assignee_id(email)
        if not isinstance(result, Found):
            print(lookup_message(result) or f"No user found for {email}")
            return 1

        assignee_id = result.value
        print(f"Assignee ID for {email}: {assignee_id}")
        self.store.set(LAST_EMAIL_KEY, email)
        self.store.set(LAST_ASSIGNEE_KEY, assignee_id)

        self.settings.tickets_root.mkdir(parents=True, exist_ok=True)
        self.store.set(LAST_FOLDER_KEY, str(self.settings.tickets_root))
        print(f"Tickets folder: {self.settings.tickets_root}")

        self.make_syncer().sync_assigned(assignee_id)
        return 0

    def handle_fetch(self) -> int:
        """Sync the open tickets of the remembered agent."""
        assignee_id = self._stored_assignee()
        if assignee_id is None:
            return 1
        self.make_syncer().sync_assigned(assignee_id)
        return 0

    def handle_attachments(self, ticket_ids: list[str]) -> int:
        """Sync specific tickets."""
        self.make_syncer().sync(ticket_ids)
        return 0

    def handle_scrub(self) -> int:
        """Remove indexed tickets that have been solved or closed."""
        ticket_ids = self.workspace.ticket_ids()
        if not ticket_ids:
            print("There are no tickets. Start with 'login EMAIL'.")
            return 0

        result = self.client.fetch_ticket_statuses(ticket_ids)
        if not isinstance(result, Found):
            print(lookup_message(result))
            return 1

        removed = self.workspace.scrub_by_status(result.value)
        return 1 if removed.failed_deletions else 0

    def handle_remove(self, ticket_ids: list[str]) -> int:
        removed = self.workspace.remove(ticket_ids)
        return 1 if removed.failed_deletions else 0

    def handle_list(self) -> int:
        """Print the indexed tickets and their attachments."""
        email = self.store.get(LAST_EMAIL_KEY)
        print(f"Current user: {email.split('@')[0] if email else '(none)'}")

        index = self.workspace.load()
        if not index:
            print("No tickets synced yet.")
            return 0

        for ticket_id in sorted(index, key=ticket_sort_key):
            attachments = index[ticket_id].attachments
            print(f"{ticket_id}  ({pluralize(len(attachments), 'attachment')})")
            for attachment in attachments:
                print(f"  {attachment.date_folder}/{attachment.file_name}  {attachment.hash[:12]}")
        return 0

    def handle_reset(self, confirmed: bool = False) -> int:
        """Forget every synced ticket (files on disk are kept)."""
        if not confirmed:
            answer = input("Reset all workspace data? This cannot be undone. [y/N] ")
            if answer.strip().lower() not in ("y", "yes"):
                print("Workspace data reset was canceled.")
                return 0
        self.workspace.reset()
        print("Workspace data has been reset.")
        return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Ticket Sync - Download support ticket attachments"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log",
        metavar="PATH",
        help="Also write all output to a log file"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="Find an agent by email and sync their open tickets")
    login.add_argument("email")

    sub.add_parser("fetch", help="Sync open tickets for the remembered agent")

    attachments = sub.add_parser("attachments", help="Sync specific tickets")
    attachments.add_argument("ticket_ids", nargs="+")

    sub.add_parser("scrub", help="Remove solved and closed tickets")

    remove = sub.add_parser("remove", help="Remove tickets and their folders")
    remove.add_argument("ticket_ids", nargs="+")

    sub.add_parser("list", help="Show synced tickets")

    reset = sub.add_parser("reset", help="Forget all synced tickets")
    reset.add_argument("--yes", action="store_true", help="Don't ask for confirmation")

    return parser


def run_command(app: SyncApp, args: argparse.Namespace) -> int:
    if args.command == "login":
        return app.handle_login(args.email)
    elif args.command == "fetch":
        return app.handle_fetch()
    elif args.command == "attachments":
        return app.handle_attachments(args.ticket_ids)
    elif args.command == "scrub":
        return app.handle_scrub()
    elif args.command == "remove":
        return app.handle_remove(args.ticket_ids)
    elif args.command == "list":
        return app.handle_list()
    elif args.command == "reset":
        return app.handle_reset(confirmed=args.yes)
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point."""
    args = build_parser().parse_args(argv)
    load_env()

    tee = None
    if args.log:
        tee = TeeOutput(args.log)
        sys.stdout = tee

    try:
        app = SyncApp()
        return run_command(app, args)
    except (ConfigError, PersistenceError) as e:
        print(f"Error: {e}")
        return 1
    finally:
        if tee:
            sys.stdout = tee.terminal
            tee.close()


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\n\nCancelled by user.")
        sys.exit(0)
