# Copyright: Ankitects Pty Ltd and contributors
# License: GNU AGPL, version 3 or later; http://www.gnu.org/licenses/agpl.html

"""
Shared test utilities and configuration for sync client tests.
"""

import os
from typing import Any, Optional
from unittest.mock import MagicMock

import pytest
import requests

from .. import SyncAuth, SyncService

# Live server configuration (tests needing it are skipped unless set)
ENDPOINT = os.getenv("CRMSYNC_ENDPOINT", "")
ACCESS_TOKEN = os.getenv("CRMSYNC_ACCESS_TOKEN", "")
DEVICE_UUID = os.getenv("CRMSYNC_DEVICE_UUID", "")

DEVICE = "6dadcec8-6e61-4691-b318-1aab27b8fecf"


class SpyTransport:
    """Transport double that records calls and replays canned responses."""

    def __init__(self, *responses: tuple[int, Any]):
        self.responses = list(responses)
        self.calls: list[tuple[str, str, Optional[dict], dict]] = []

    def queue(self, status: int, body: Any = None) -> "SpyTransport":
        self.responses.append((status, body))
        return self

    def call(self, method, path, payload=None, headers=None):
        self.calls.append((method, path, payload, dict(headers or {})))
        if not self.responses:
            raise AssertionError(f"unexpected call: {method} {path}")
        status, body = self.responses.pop(0)
        return status, {}, body


def session_body(session_id: str = "s1", *queues: str) -> dict:
    return {
        "data": {
            "id": session_id,
            "queues": [{"data": {"name": name, "pages": 1}} for name in queues],
        },
        "meta": {"type": "sync_session"},
    }


def item(type_id: str, ack_key: str, **data) -> dict:
    return {
        "meta": {
            "type": type_id,
            "sync": {"event_type": "created", "ack_key": ack_key, "revision": 1},
        },
        "data": data,
    }


def items_body(*items: dict) -> dict:
    return {"items": list(items), "meta": {"type": "collection", "count": len(items)}}


def create_mock_response(status_code=200, json_data=None, text_data=""):
    """Creates a mock requests.Response object."""
    mock_resp = MagicMock()
    mock_resp.status_code = status_code
    mock_resp.headers = {}
    if json_data is not None:
        mock_resp.content = b"{...}"
        mock_resp.json.return_value = json_data
    else:
        mock_resp.content = text_data.encode()
        mock_resp.text = text_data
        mock_resp.json.side_effect = ValueError("No JSON object could be decoded")
    return mock_resp


@pytest.fixture
def transport():
    return SpyTransport()


@pytest.fixture
def service(transport):
    return SyncService(transport)


@pytest.fixture
def http_session():
    """A mocked requests.Session for HttpClient tests."""
    return MagicMock(spec=requests.Session)


@pytest.fixture
def auth():
    return SyncAuth.with_endpoint("http://localhost:8080", access_token="t0ken")
