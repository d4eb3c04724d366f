"""Pytest configuration and fixtures."""

import tempfile
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests

from ticket_sync.errors import PersistenceError
from ticket_sync.state import MemoryStore


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "stress: stress tests with many attachments (skipped in CI)"
    )


def make_response(body):
    """
    Build a streamed response stand-in.

    body may be bytes (served in 4-byte chunks), an int HTTP error status,
    or a list of chunks where an Exception item is raised mid-stream.
    """
    response = MagicMock()
    response.__enter__.return_value = response
    response.__exit__.return_value = False

    if isinstance(body, int):
        response.status_code = body
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(
            f"{body} Error", response=response
        )
        response.iter_content.return_value = iter([])
        return response

    response.status_code = 200
    if isinstance(body, bytes):
        chunks = [body[i:i + 4] for i in range(0, len(body), 4)]
    else:
        chunks = body

    def iter_content(chunk_size=None):
        for chunk in chunks:
            if isinstance(chunk, Exception):
                raise chunk
            yield chunk

    response.iter_content.side_effect = iter_content
    return response


class FakeSession:
    """Serves canned bodies by URL; records every requested URL."""

    def __init__(self, files: dict):
        self.files = files
        self.requested: list[str] = []

    def get(self, url, **kwargs):
        self.requested.append(url)
        body = self.files[url]
        if isinstance(body, Exception):
            raise body
        return make_response(body)


class FailingStore(MemoryStore):
    """In-memory store whose writes fail once fail_writes is set."""

    def __init__(self, data=None):
        super().__init__(data)
        self.fail_writes = False

    def set(self, key, value):
        if self.fail_writes:
            raise PersistenceError("Could not write store: disk full")
        super().set(key, value)


@pytest.fixture
def temp_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fake_session():
    """Factory: fake_session({url: body}) -> FakeSession."""
    return FakeSession


@pytest.fixture
def fake_response():
    """Factory: fake_response(body) -> streamed response stand-in."""
    return make_response


@pytest.fixture
def failing_store():
    """A store that accepts writes until fail_writes is set."""
    return FailingStore()
