"""
Configuration for Ticket Sync.

Credentials come from the environment, optionally seeded from a .env file:
- ZENDESK_SUBDOMAIN, ZENDESK_EMAIL, ZENDESK_API_TOKEN

Paths and tuning can be overridden the same way:
- TICKET_SYNC_ROOT: where ticket folders go (default ~/Downloads/tickets)
- TICKET_SYNC_STATE: workspace state file (default ~/.ticket-sync/workspace.json)
- TICKET_SYNC_WORKERS, TICKET_SYNC_CHUNK_SIZE
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigError
from .zendesk.client import ZendeskConfig

CREDENTIAL_VARS = ("ZENDESK_SUBDOMAIN", "ZENDESK_EMAIL", "ZENDESK_API_TOKEN")


def load_env(env_path: Optional[Path] = None) -> bool:
    """
    Load a .env file (default: ./.env) into os.environ without overriding variables already set.

    Returns True if a file was found and read.
    """
    if env_path is None:
        env_path = Path.cwd() / ".env"
    if not Path(env_path).exists():
        return False
    return load_dotenv(env_path, override=False)


def load_zendesk_config(environ: Optional[Mapping[str, str]] = None) -> ZendeskConfig:
    """Build the client configuration, failing with every missing variable named."""
    environ = os.environ if environ is None else environ
    missing = [name for name in CREDENTIAL_VARS if not environ.get(name, "").strip()]
    if missing:
        raise ConfigError(f"Missing environment variables: {', '.join(missing)}")

    return ZendeskConfig(
        subdomain=environ["ZENDESK_SUBDOMAIN"].strip(),
        email=environ["ZENDESK_EMAIL"].strip(),
        api_token=environ["ZENDESK_API_TOKEN"].strip(),
    )


def _int_setting(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")
    if value < 1:
        raise ConfigError(f"{name} must be at least 1, got {value}")
    return value


@dataclass
class SyncSettings:
    """Paths and tuning for a sync run."""
    tickets_root: Path
    state_path: Path
    max_workers: int = 1
    chunk_size: int = 32768

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SyncSettings":
        environ = os.environ if environ is None else environ

        root = environ.get("TICKET_SYNC_ROOT", "").strip()
        state = environ.get("TICKET_SYNC_STATE", "").strip()

        return cls(
            tickets_root=Path(root).expanduser() if root else Path.home() / "Downloads" / "tickets",
            state_path=Path(state).expanduser() if state else Path.home() / ".ticket-sync" / "workspace.json",
            max_workers=_int_setting(environ, "TICKET_SYNC_WORKERS", 1),
            chunk_size=_int_setting(environ, "TICKET_SYNC_CHUNK_SIZE", 32768),
        )
