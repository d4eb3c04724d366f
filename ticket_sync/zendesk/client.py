"""
Zendesk API client for Ticket Sync.

Handles every metadata call to the ticketing service. Does NOT download
attachment bodies (see FileDownloader for that), but owns the authenticated
session the downloader uses.
"""

import time
from dataclasses import dataclass
from typing import Iterable, Optional

import requests

from ..constants import STATUS_BATCH_SIZE
from ..core.formatting import dedupe_file_names, sanitize_filename
from ..models import AttachmentInfo, Failed, Found, LookupResult, NotFound, TicketStatus


@dataclass
class ZendeskConfig:
    """Configuration for ZendeskClient."""
    subdomain: str
    email: str
    api_token: str
    timeout: int = 60
    max_retries: int = 3

    @property
    def base_url(self) -> str:
        return f"https://{self.subdomain}.zendesk.com/api/v2"


class ZendeskClient:
    """
    Zendesk API client.

    Authenticates with an API token over HTTP Basic ("email/token", token).
    Lookups return Found / NotFound / Failed instead of raising.
    """

    RETRY_STATUSES = {429, 500, 502, 503, 504}

    def __init__(self, config: ZendeskConfig, session: Optional[requests.Session] = None):
        """
        Initialize the client.

        Args:
            config: Client configuration
            session: Optional session to reuse (a new one is created otherwise)
        """
        self.config = config
        self.session = session or requests.Session()
        self.session.auth = (f"{config.email}/token", config.api_token)
        self._api_calls = 0

    @property
    def api_calls(self) -> int:
        """Total API calls made by this client."""
        return self._api_calls

    def _url(self, path: str) -> str:
        return f"{self.config.base_url}/{path.lstrip('/')}"

    def _request_with_retry(self, method: str, url: str, **kwargs) -> requests.Response:
        """Make a request, retrying timeouts, rate limits and server errors."""
        timeout = kwargs.pop("timeout", self.config.timeout)

        for attempt in range(self.config.max_retries):
            try:
                response = self.session.request(method, url, timeout=timeout, **kwargs)
                self._api_calls += 1
                if response.status_code in self.RETRY_STATUSES and attempt < self.config.max_retries - 1:
                    time.sleep(self._retry_after(response, attempt))
                    continue
                response.raise_for_status()
                return response
            except (requests.exceptions.Timeout, requests.exceptions.ConnectionError):
                if attempt < self.config.max_retries - 1:
                    time.sleep(2 ** attempt)
                    continue
                raise

        raise RuntimeError(f"Request failed after {self.config.max_retries} attempts")

    @staticmethod
    def _retry_after(response: requests.Response, attempt: int) -> float:
        header = response.headers.get("Retry-After", "")
        if header.isdigit():
            return float(header)
        return float(2 ** attempt)

    def _get_pages(self, url: str, key: str, params: Optional[dict] = None) -> list:
        """GET url and follow next_page links, collecting data[key] from each page."""
        items = []
        while url:
            data = self._request_with_retry("GET", url, params=params).json()
            items.extend(data.get(key) or [])
            url = data.get("next_page")
            params = None  # next_page already carries the query
        return items

    # ------------------------------------------------------------------
    # Users and tickets
    # ------------------------------------------------------------------

    def search_assignee_id(self, email: str) -> LookupResult:
        """Find the user id for an agent email."""
        try:
            response = self._request_with_retry(
                "GET", self._url("users/search.json"), params={"query": email}
            )
            users = response.json().get("users") or []
        except requests.exceptions.RequestException as e:
            return Failed(f"Error fetching assignee ID: {e}")

        if not users:
            return NotFound(f"No user found for email: {email}")
        return Found(str(users[0]["id"]))

    def list_open_ticket_ids(self, assignee_id: str) -> LookupResult:
        """Ids of the tickets assigned to a user that aren't solved or closed yet."""
        query = f"type:ticket assignee:{assignee_id} status<solved"
        try:
            results = self._get_pages(self._url("search.json"), "results", params={"query": query})
        except requests.exceptions.RequestException as e:
            return Failed(f"Error fetching tickets for user ID {assignee_id}: {e}")

        ticket_ids = [str(t["id"]) for t in results if "id" in t]
        if not ticket_ids:
            return NotFound(f"No tickets found for user ID: {assignee_id}")
        return Found(ticket_ids)

    def list_attachments(self, ticket_id: str) -> LookupResult:
        """
        All attachments across a ticket's comments, in comment order.

        File names are made unique within this result: a second "log.txt"
        becomes "log(2).txt". Each attachment takes the creation time of the
        comment it belongs to.
        """
        url = self._url(f"tickets/{ticket_id}/comments.json")
        try:
            comments = self._get_pages(url, "comments")
        except requests.exceptions.RequestException as e:
            return Failed(f"Error fetching attachments for ticket {ticket_id}: {e}")

        if not comments:
            return NotFound(f"No comments found for ticket ID: {ticket_id}")

        raw = []
        for comment in comments:
            for attach in comment.get("attachments") or []:
                raw.append((comment.get("created_at", ""), attach))

        if not raw:
            return NotFound(f"No attachments found in comments for ticket ID: {ticket_id}")

        # Sanitize before numbering so names that clean up alike are numbered too
        names = dedupe_file_names(sanitize_filename(attach.get("file_name", "")) for _, attach in raw)
        return Found([
            AttachmentInfo(
                url=attach.get("content_url", ""),
                created_at=created_at,
                file_name=name,
                id=str(attach.get("id", "")),
            )
            for (created_at, attach), name in zip(raw, names)
        ])

    def fetch_ticket_statuses(self, ticket_ids: Iterable[str]) -> LookupResult:
        """Current status of each ticket, looked up in batches of 100 ids."""
        ids = [str(t) for t in ticket_ids]
        statuses: list[TicketStatus] = []

        for start in range(0, len(ids), STATUS_BATCH_SIZE):
            batch = ids[start:start + STATUS_BATCH_SIZE]
            try:
                response = self._request_with_retry(
                    "GET", self._url("tickets/show_many.json"), params={"ids": ",".join(batch)}
                )
                tickets = response.json().get("tickets") or []
            except requests.exceptions.RequestException as e:
                return Failed(f"Error fetching ticket statuses: {e}")

            statuses.extend(
                TicketStatus(id=str(t["id"]), status=str(t.get("status", "")))
                for t in tickets
            )

        return Found(statuses)
