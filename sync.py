# Copyright: Ankitects Pty Ltd and contributors
# License: GNU AGPL, version 3 or later; http://www.gnu.org/licenses/agpl.html

"""
High level sync loop on top of SyncService.

Usage:
    service = SyncService(HttpClient(auth))

    def handle(meta, record):
        store(record)
        return SyncAction.ACK

    report = Sync(service, device_uuid).run(handle)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

from .client import SyncService
from .models import Meta, SyncQueue

logger = logging.getLogger(__name__)


class SyncAction(Enum):
    ACK = "ack"
    NACK = "nack"


Handler = Callable[[Meta, Any], Any]


@dataclass
class SyncReport:
    """Result of a sync run."""

    session_id: Optional[str] = None
    fetched: int = 0
    acked: int = 0
    nacked: int = 0
    unacked_keys: list[str] = field(default_factory=list)

    @property
    def nothing_to_sync(self) -> bool:
        return self.session_id is None


class Sync:
    """Drains every queue of a fresh session and acknowledges handled items."""

    def __init__(self, service: SyncService, device_uuid: str):
        self.service = service
        self.device_uuid = device_uuid

    def run(self, handler: Handler) -> SyncReport:
        report = SyncReport()
        session = self.service.start(self.device_uuid)
        if session is None:
            logger.debug("Nothing to synchronize for device %s", self.device_uuid)
            return report

        report.session_id = session.id
        for queue in session.queues:
            self._drain(session.id, queue, handler, report)
        return report

    def _drain(
        self, session_id: str, queue: SyncQueue, handler: Handler, report: SyncReport
    ):
        while True:
            items = self.service.fetch(self.device_uuid, session_id, queue.name)
            if not items:
                # 204, an empty batch, or a batch of record types we skip
                break

            ack_keys = []
            for meta, record in items:
                report.fetched += 1
                if _wants_ack(handler(meta, record)):
                    ack_keys.append(meta.sync.ack_key)
                else:
                    report.nacked += 1

            if not ack_keys:
                continue
            if self.service.ack(self.device_uuid, ack_keys):
                report.acked += len(ack_keys)
            else:
                logger.warning(
                    "Server rejected %d ack keys for queue %s of session %s",
                    len(ack_keys),
                    queue.name,
                    session_id,
                )
                report.unacked_keys.extend(str(key) for key in ack_keys)


def _wants_ack(result: Any) -> bool:
    return result is SyncAction.ACK or result is True
