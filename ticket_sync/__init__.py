"""
Ticket Sync - Download support ticket attachments to local storage.

Keeps a persisted index of fetched attachments so re-running a sync is
incremental, stores each distinct file content only once, and expands
zip archives as they arrive.

Import from submodules directly:
    from ticket_sync.zendesk import ZendeskClient
    from ticket_sync.state import Workspace, JsonFileStore
    from ticket_sync.sync import AttachmentSync, FileDownloader
"""


def _get_version():
    """Read version from the VERSION file in a checkout, else from installed metadata."""
    from importlib.metadata import PackageNotFoundError, version
    from pathlib import Path
    version_file = Path(__file__).parent.parent / "VERSION"
    if version_file.exists():
        return version_file.read_text().strip()
    try:
        return version("ticket-sync")
    except PackageNotFoundError:
        return "0.0.0"


__version__ = _get_version()
