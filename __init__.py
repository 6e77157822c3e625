# Copyright: Ankitects Pty Ltd and contributors
# License: GNU AGPL, version 3 or later; http://www.gnu.org/licenses/agpl.html

"""
crmsync - Python client for a pull based, acknowledgement driven sync API.

Usage:
    from crmsync import HttpClient, SyncAuth, SyncService

    service = SyncService(HttpClient(SyncAuth.from_env()))
    session = service.start(device_uuid)
    if session:
        for queue in session.queues:
            while items := service.fetch(device_uuid, session.id, queue.name):
                keys = [meta.sync.ack_key for meta, record in items if store(record)]
                service.ack(device_uuid, keys)

    # Or let Sync run the loop
    report = Sync(service, device_uuid).run(lambda meta, record: SyncAction.ACK)
"""

from .client import (
    # Config
    SyncAuth,
    DEFAULT_ENDPOINT,
    DEFAULT_QUEUE,
    VERSION,
    # Exceptions
    SyncError,
    InvalidArgument,
    TransportError,
    APIConnectionError,
    ResponseError,
    AuthenticationError,
    RequestError,
    ServerError,
    # Clients
    HttpClient,
    SyncService,
    build_headers,
)
from .models import (
    # Data structures
    SyncSession,
    SyncQueue,
    Meta,
    SyncMeta,
    # Records
    Account,
    Contact,
    Deal,
    Lead,
    Note,
    Task,
    User,
    # Registry
    TypeRegistry,
    DEFAULT_REGISTRY,
    RECORD_TYPES,
)
from .sync import Sync, SyncAction, SyncReport

__all__ = [
    "SyncAuth",
    "DEFAULT_ENDPOINT",
    "DEFAULT_QUEUE",
    "SyncError",
    "InvalidArgument",
    "TransportError",
    "APIConnectionError",
    "ResponseError",
    "AuthenticationError",
    "RequestError",
    "ServerError",
    "HttpClient",
    "SyncService",
    "build_headers",
    "SyncSession",
    "SyncQueue",
    "Meta",
    "SyncMeta",
    "Account",
    "Contact",
    "Deal",
    "Lead",
    "Note",
    "Task",
    "User",
    "TypeRegistry",
    "DEFAULT_REGISTRY",
    "RECORD_TYPES",
    "Sync",
    "SyncAction",
    "SyncReport",
]

__version__ = VERSION
