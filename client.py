# Copyright: Ankitects Pty Ltd and contributors
# License: GNU AGPL, version 3 or later; http://www.gnu.org/licenses/agpl.html

"""Sync client implementation."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Optional

import requests

from .models import DEFAULT_REGISTRY, Meta, SyncSession, TypeRegistry

logger = logging.getLogger(__name__)

VERSION = "1.0.0"
DEFAULT_ENDPOINT = "https://api.getbase.com/"
API_PREFIX = "/v2"
DEFAULT_QUEUE = "main"

STATUS_NO_CONTENT = 204
STATUS_ACCEPTED = 202


# --- Config ---


@dataclass
class SyncAuth:
    """Credentials and connection settings for the sync API."""

    access_token: str = ""
    endpoint: str = DEFAULT_ENDPOINT
    io_timeout_secs: int = 30
    verify_ssl: bool = True

    @classmethod
    def with_endpoint(
        cls, endpoint: str, access_token: str = "", io_timeout_secs: int = 30
    ) -> SyncAuth:
        if endpoint and not endpoint.endswith("/"):
            endpoint += "/"
        return cls(
            access_token=access_token,
            endpoint=endpoint or DEFAULT_ENDPOINT,
            io_timeout_secs=io_timeout_secs,
        )

    @classmethod
    def from_env(cls) -> SyncAuth:
        """Build from CRMSYNC_ACCESS_TOKEN, CRMSYNC_ENDPOINT and CRMSYNC_TIMEOUT."""
        return cls.with_endpoint(
            os.getenv("CRMSYNC_ENDPOINT", DEFAULT_ENDPOINT),
            access_token=os.getenv("CRMSYNC_ACCESS_TOKEN", ""),
            io_timeout_secs=int(os.getenv("CRMSYNC_TIMEOUT", "30")),
        )


# --- Exceptions ---


class SyncError(Exception):
    pass


class InvalidArgument(SyncError, ValueError):
    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


class TransportError(SyncError):
    pass


class APIConnectionError(TransportError):
    def __init__(self, url: str, cause: Exception):
        self.url, self.cause = url, cause
        super().__init__(f"Connection error to {url}: {cause}")


class ResponseError(TransportError):
    def __init__(self, status_code: int, message: str, body: Any = None):
        self.status_code, self.body = status_code, body
        super().__init__(f"HTTP {status_code}: {message}")


class AuthenticationError(ResponseError):
    pass


class RequestError(ResponseError):
    pass


class ServerError(ResponseError):
    pass


# --- HTTP Client ---


class HttpClient:
    """
    Transport for the sync API.

    `call` returns (status_code, response_headers, decoded_body) and raises a
    TransportError subclass for network failures and error responses.
    """

    def __init__(self, auth: SyncAuth, session: Optional[requests.Session] = None):
        self.auth = auth
        self.base_url = (auth.endpoint or DEFAULT_ENDPOINT).rstrip("/") + API_PREFIX
        self._session = session
        self._owns_session = session is None

    def __enter__(self) -> HttpClient:
        return self

    def __exit__(self, *exc):
        self.close()

    def close(self):
        if self._owns_session and self._session:
            self._session.close()
            self._session = None

    def default_headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "User-Agent": f"crmsync/{VERSION}+requests/{requests.__version__}",
        }
        if self.auth.access_token:
            headers["Authorization"] = f"Bearer {self.auth.access_token}"
        return headers

    def call(
        self,
        method: str,
        path: str,
        payload: Optional[dict] = None,
        headers: Optional[dict] = None,
    ) -> tuple[int, Mapping, Any]:
        if self._session is None:
            self._session = requests.Session()

        method = method.upper()
        url = f"{self.base_url}{path}"
        request_headers = {**self.default_headers(), **(headers or {})}
        kwargs: dict[str, Any] = {
            "headers": request_headers,
            "timeout": self.auth.io_timeout_secs,
            "verify": self.auth.verify_ssl,
        }
        if method == "GET":
            kwargs["params"] = payload or None
        else:
            kwargs["json"] = payload if payload is not None else {}

        logger.debug("%s %s", method, url)
        try:
            resp = self._session.request(method, url, **kwargs)
        except requests.RequestException as e:
            raise APIConnectionError(url, e) from e
        logger.debug("%s %s -> %s", method, url, resp.status_code)

        body = self._decode(resp)
        if resp.status_code >= 400:
            raise self._error_for(resp.status_code, body)
        return resp.status_code, resp.headers, body

    def get(self, path: str, params: Optional[dict] = None, headers=None):
        return self.call("GET", path, params, headers)

    def post(self, path: str, payload: Optional[dict] = None, headers=None):
        return self.call("POST", path, payload, headers)

    @staticmethod
    def _decode(resp: requests.Response) -> Any:
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            raise ResponseError(
                resp.status_code, "Failed to decode JSON response", body=resp.text
            )

    @staticmethod
    def _error_for(status: int, body: Any) -> ResponseError:
        message = _error_message(body) or "request failed"
        if status in (401, 403):
            return AuthenticationError(status, message, body)
        if status >= 500:
            return ServerError(status, message, body)
        return RequestError(status, message, body)


def _error_message(body: Any) -> str:
    """Pull a readable message out of an API error envelope."""
    if not isinstance(body, dict):
        return ""
    errors = body.get("errors") or []
    if errors and isinstance(errors[0], dict):
        error = errors[0].get("error") or {}
        return error.get("message") or error.get("details") or ""
    return body.get("message", "")


# --- Sync Service ---


def build_headers(device_uuid: str) -> dict[str, str]:
    return {
        "X-Basecrm-Device-UUID": device_uuid,
        "X-Client-Type": "api",
        "X-Client-Version": VERSION,
        "X-Device-Id": "Python",
    }


def _require(name: str, value: Any):
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgument(name, f"{name} must not be None nor empty")


class SyncService:
    """
    Sync protocol engine: start a session, drain its queues, acknowledge data.

    Usage:
        service = SyncService(HttpClient(SyncAuth.from_env()))
        session = service.start(device_uuid)
        if session:
            while items := service.fetch(device_uuid, session.id):
                ...
                service.ack(device_uuid, [meta.sync.ack_key for meta, _ in items])

    The client only needs a `call(method, path, payload, headers)` method
    returning (status_code, headers, decoded_body).
    """

    def __init__(
        self,
        client: Any,
        registry: TypeRegistry = DEFAULT_REGISTRY,
        on_skip: Optional[Callable[[Optional[str], Meta], None]] = None,
    ):
        self.client = client
        self.registry = registry
        self.on_skip = on_skip

    def start(self, device_uuid: str) -> Optional[SyncSession]:
        """
        Start a new synchronization session.

        Returns None if there is nothing to synchronize.
        """
        _require("device_uuid", device_uuid)

        status, _, root = self.client.call(
            "POST", "/sync/start", {}, build_headers(device_uuid)
        )
        if status == STATUS_NO_CONTENT:
            return None
        return SyncSession.from_dict((root or {}).get("data"))

    def fetch(
        self, device_uuid: str, session_id: str, queue: str = DEFAULT_QUEUE
    ) -> Optional[list[tuple[Meta, Any]]]:
        """
        Fetch the next batch of a session's queue.

        Returns (meta, record) pairs in server order, or None once the queue
        has been drained. Items whose type is not registered are skipped.
        """
        _require("device_uuid", device_uuid)
        _require("session_id", session_id)
        _require("queue", queue)

        status, _, root = self.client.call(
            "GET", f"/sync/{session_id}/queues/{queue}", {}, build_headers(device_uuid)
        )
        if status == STATUS_NO_CONTENT:
            return None

        out = []
        for item in (root or {}).get("items") or []:
            raw_meta = item.get("meta") or {}
            factory = self.registry.resolve(raw_meta.get("type"))
            meta = Meta.from_dict(raw_meta)
            if factory is None:
                self._skip(meta)
                continue
            out.append((meta, factory(item.get("data") or {})))
        return out

    def ack(self, device_uuid: str, ack_keys) -> bool:
        """
        Acknowledge consumed items. True if the server accepted the keys.
        """
        _require("device_uuid", device_uuid)
        if not isinstance(ack_keys, (list, tuple, set, frozenset)):
            raise InvalidArgument("ack_keys", "ack_keys must be a list of keys")
        if not ack_keys:
            return True

        payload = {"ack_keys": [str(key) for key in ack_keys]}
        status, _, _ = self.client.call(
            "POST", "/sync/ack", payload, build_headers(device_uuid)
        )
        return status == STATUS_ACCEPTED

    def _skip(self, meta: Meta):
        logger.debug(
            "Skipping item of unknown type %r (ack_key=%r)", meta.type, meta.ack_key
        )
        if self.on_skip:
            self.on_skip(meta.type or None, meta)
