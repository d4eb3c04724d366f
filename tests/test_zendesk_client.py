"""
Tests for the Zendesk API client.

The HTTP session is mocked; each test scripts the JSON pages it returns.
"""

from unittest.mock import Mock, patch

import pytest
import requests

from ticket_sync.models import Failed, Found, NotFound
from ticket_sync.zendesk import ZendeskClient, ZendeskConfig


def json_response(payload, status=200, headers=None):
    response = Mock()
    response.status_code = status
    response.headers = headers or {}
    response.json.return_value = payload
    if status >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(
            f"{status} Error", response=response
        )
    else:
        response.raise_for_status.return_value = None
    return response


@pytest.fixture
def session():
    return Mock()


@pytest.fixture
def client(session):
    config = ZendeskConfig(subdomain="acme", email="agent@acme.com", api_token="secret")
    return ZendeskClient(config, session=session)


def comment(created_at, *names):
    return {
        "created_at": created_at,
        "attachments": [
            {"id": i, "file_name": n, "content_url": f"https://acme.zendesk.com/a/{i}/{n}"}
            for i, n in enumerate(names)
        ],
    }


class TestAuth:

    def test_token_basic_auth(self, client, session):
        assert session.auth == ("agent@acme.com/token", "secret")

    def test_base_url(self, client):
        assert client.config.base_url == "https://acme.zendesk.com/api/v2"


class TestSearchAssignee:

    def test_found(self, client, session):
        session.request.return_value = json_response({"users": [{"id": 42, "name": "Agent"}]})

        result = client.search_assignee_id("agent@acme.com")

        assert result == Found("42")
        _, kwargs = session.request.call_args
        assert kwargs["params"] == {"query": "agent@acme.com"}

    def test_not_found(self, client, session):
        session.request.return_value = json_response({"users": []})

        result = client.search_assignee_id("nobody@acme.com")

        assert isinstance(result, NotFound)
        assert "nobody@acme.com" in result.reason

    def test_http_error_is_failed(self, client, session):
        session.request.return_value = json_response({}, status=401)

        result = client.search_assignee_id("agent@acme.com")

        assert isinstance(result, Failed)


class TestOpenTickets:

    def test_follows_pagination(self, client, session):
        session.request.side_effect = [
            json_response({
                "results": [{"id": 1}, {"id": 2}],
                "next_page": "https://acme.zendesk.com/api/v2/search.json?page=2",
            }),
            json_response({"results": [{"id": 3}], "next_page": None}),
        ]

        result = client.list_open_ticket_ids("42")

        assert result == Found(["1", "2", "3"])
        first, second = session.request.call_args_list
        assert first.kwargs["params"] == {"query": "type:ticket assignee:42 status<solved"}
        assert second.args[1].endswith("page=2")
        assert second.kwargs["params"] is None

    def test_none_open(self, client, session):
        session.request.return_value = json_response({"results": []})

        assert isinstance(client.list_open_ticket_ids("42"), NotFound)


class TestListAttachments:

    def test_attachments_across_comments(self, client, session):
        session.request.return_value = json_response({
            "comments": [
                comment("2024-12-19T23:02:36Z", "screenshot.png"),
                {"created_at": "2024-12-20T01:00:00Z", "attachments": []},
                comment("2024-12-21T09:30:00Z", "trace.log"),
            ]
        })

        result = client.list_attachments("100")

        assert isinstance(result, Found)
        assert [(a.file_name, a.created_at) for a in result.value] == [
            ("screenshot.png", "2024-12-19T23:02:36Z"),
            ("trace.log", "2024-12-21T09:30:00Z"),
        ]
        assert result.value[0].url.endswith("screenshot.png")

    def test_repeated_names_numbered(self, client, session):
        session.request.return_value = json_response({
            "comments": [
                comment("2024-12-19T10:00:00Z", "log.txt"),
                comment("2024-12-19T11:00:00Z", "log.txt", "log.txt"),
            ]
        })

        result = client.list_attachments("100")

        assert [a.file_name for a in result.value] == ["log.txt", "log(2).txt", "log(3).txt"]

    def test_unsafe_names_sanitized(self, client, session):
        session.request.return_value = json_response({
            "comments": [comment("2024-12-19T10:00:00Z", "../evil:name?.txt")]
        })

        result = client.list_attachments("100")

        assert "/" not in result.value[0].file_name
        assert ":" not in result.value[0].file_name

    def test_names_equal_after_sanitizing_are_numbered(self, client, session):
        session.request.return_value = json_response({
            "comments": [
                comment("2024-12-19T10:00:00Z", "a:b.txt"),
                comment("2024-12-19T11:00:00Z", "a-b.txt"),
            ]
        })

        result = client.list_attachments("100")

        assert [a.file_name for a in result.value] == ["a-b.txt", "a-b(2).txt"]

    def test_no_comments(self, client, session):
        session.request.return_value = json_response({"comments": []})

        assert isinstance(client.list_attachments("100"), NotFound)

    def test_comments_without_attachments(self, client, session):
        session.request.return_value = json_response({
            "comments": [{"created_at": "2024-12-19T10:00:00Z", "attachments": []}]
        })

        result = client.list_attachments("100")

        assert isinstance(result, NotFound)
        assert "No attachments" in result.reason

    def test_connection_error_is_failed(self, client, session):
        session.request.side_effect = requests.exceptions.ConnectionError("down")

        with patch("ticket_sync.zendesk.client.time.sleep"):
            result = client.list_attachments("100")

        assert isinstance(result, Failed)
        assert session.request.call_count == 3


class TestTicketStatuses:

    def test_batches_of_100_in_order(self, client, session):
        ids = [str(i) for i in range(1, 251)]

        def respond(method, url, params=None, **kwargs):
            batch = params["ids"].split(",")
            return json_response({"tickets": [{"id": int(t), "status": "open"} for t in batch]})

        session.request.side_effect = respond

        result = client.fetch_ticket_statuses(ids)

        batches = [c.kwargs["params"]["ids"].split(",") for c in session.request.call_args_list]
        assert [len(b) for b in batches] == [100, 100, 50]
        assert [t for b in batches for t in b] == ids
        assert [s.id for s in result.value] == ids

    def test_closed_flag(self, client, session):
        session.request.return_value = json_response({"tickets": [
            {"id": 1, "status": "solved"},
            {"id": 2, "status": "pending"},
        ]})

        result = client.fetch_ticket_statuses(["1", "2"])

        assert [s.is_closed for s in result.value] == [True, False]

    def test_batch_failure_is_failed(self, client, session):
        session.request.return_value = json_response({}, status=403)

        assert isinstance(client.fetch_ticket_statuses(["1"]), Failed)


class TestRetry:

    def test_rate_limit_honours_retry_after(self, client, session):
        session.request.side_effect = [
            json_response({}, status=429, headers={"Retry-After": "7"}),
            json_response({"users": [{"id": 5}]}),
        ]

        with patch("ticket_sync.zendesk.client.time.sleep") as sleep:
            result = client.search_assignee_id("agent@acme.com")

        assert result == Found("5")
        sleep.assert_called_once_with(7.0)
        assert client.api_calls == 2
