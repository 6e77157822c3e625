# Copyright: Ankitects Pty Ltd and contributors
# License: GNU AGPL, version 3 or later; http://www.gnu.org/licenses/agpl.html

"""Sync data model and record type registry."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from typing import Any, Callable, Optional

RecordFactory = Callable[[dict], Any]


def _split(cls, d: Optional[dict]) -> tuple[dict, dict]:
    """Split a decoded mapping into (known dataclass fields, everything else).

    Anything that is not a mapping splits into two empty dicts.
    """
    names = {f.name for f in fields(cls) if f.name != "extra"}
    known, extra = {}, {}
    if not isinstance(d, Mapping):
        return known, extra
    for key, value in d.items():
        (known if key in names else extra)[key] = value
    return known, extra


# --- Session ---


@dataclass(frozen=True)
class SyncQueue:
    """A named partition of the change stream declared by a session."""

    name: str = ""
    pages: int = 0
    extra: dict = field(default_factory=dict, hash=False)

    @classmethod
    def from_dict(cls, d: Optional[dict]) -> SyncQueue:
        known, extra = _split(cls, d)
        return cls(extra=extra, **known)


@dataclass(frozen=True)
class SyncSession:
    """An active synchronization session."""

    id: str = ""
    queues: tuple[SyncQueue, ...] = ()
    extra: dict = field(default_factory=dict, hash=False)

    @classmethod
    def from_dict(cls, d: Optional[dict]) -> SyncSession:
        known, extra = _split(cls, d)
        queues = known.pop("queues", None) or []
        return cls(
            queues=tuple(SyncQueue.from_dict(q.get("data")) for q in queues),
            extra=extra,
            **known,
        )

    def queue_names(self) -> list[str]:
        return [q.name for q in self.queues]


# --- Item metadata ---


@dataclass(frozen=True)
class SyncMeta:
    """Cursor information of a queue item. `ack_key` is what gets acknowledged."""

    ack_key: Any = None
    event_type: str = ""
    revision: Optional[int] = None
    extra: dict = field(default_factory=dict, hash=False)

    @classmethod
    def from_dict(cls, d: Optional[dict]) -> SyncMeta:
        known, extra = _split(cls, d)
        return cls(extra=extra, **known)


@dataclass(frozen=True)
class Meta:
    """Metadata envelope delivered with every queue item."""

    type: str = ""
    sync: SyncMeta = field(default_factory=SyncMeta)
    id: Any = None
    extra: dict = field(default_factory=dict, hash=False)

    @classmethod
    def from_dict(cls, d: Optional[dict]) -> Meta:
        known, extra = _split(cls, d)
        known["sync"] = SyncMeta.from_dict(known.get("sync"))
        return cls(extra=extra, **known)

    @property
    def ack_key(self) -> Any:
        return self.sync.ack_key


# --- Records ---


class _Record:
    """Mixin building a record dataclass from an item's data payload."""

    @classmethod
    def from_dict(cls, d: Optional[dict]):
        known, extra = _split(cls, d)
        return cls(extra=extra, **known)


@dataclass
class Account(_Record):
    id: Optional[int] = None
    name: str = ""
    currency: str = ""
    time_zone: str = ""
    extra: dict = field(default_factory=dict)


@dataclass
class Contact(_Record):
    id: Optional[int] = None
    name: str = ""
    first_name: str = ""
    last_name: str = ""
    is_organization: bool = False
    email: str = ""
    phone: str = ""
    owner_id: Optional[int] = None
    contact_id: Optional[int] = None
    tags: list[str] = field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""
    extra: dict = field(default_factory=dict)


@dataclass
class Deal(_Record):
    id: Optional[int] = None
    name: str = ""
    value: Any = None
    currency: str = ""
    stage_id: Optional[int] = None
    contact_id: Optional[int] = None
    owner_id: Optional[int] = None
    hot: bool = False
    tags: list[str] = field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""
    extra: dict = field(default_factory=dict)


@dataclass
class Lead(_Record):
    id: Optional[int] = None
    first_name: str = ""
    last_name: str = ""
    organization_name: str = ""
    status: str = ""
    email: str = ""
    owner_id: Optional[int] = None
    tags: list[str] = field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""
    extra: dict = field(default_factory=dict)


@dataclass
class Note(_Record):
    id: Optional[int] = None
    content: str = ""
    resource_type: str = ""
    resource_id: Optional[int] = None
    creator_id: Optional[int] = None
    created_at: str = ""
    updated_at: str = ""
    extra: dict = field(default_factory=dict)


@dataclass
class Task(_Record):
    id: Optional[int] = None
    content: str = ""
    due_date: Optional[str] = None
    completed: bool = False
    resource_type: str = ""
    resource_id: Optional[int] = None
    owner_id: Optional[int] = None
    created_at: str = ""
    updated_at: str = ""
    extra: dict = field(default_factory=dict)


@dataclass
class User(_Record):
    id: Optional[int] = None
    name: str = ""
    email: str = ""
    role: str = ""
    status: str = ""
    extra: dict = field(default_factory=dict)


# --- Type registry ---


class TypeRegistry:
    """
    Maps a record type tag (e.g. "contact") to the factory building its record.

    Fill it before handing it to a SyncService and treat it as read-only
    afterwards; lookups take no lock.
    """

    def __init__(self, catalog: Optional[dict[str, RecordFactory]] = None):
        self._factories: dict[str, RecordFactory] = dict(catalog or {})

    def register(self, type_id: str, factory: RecordFactory) -> None:
        if not isinstance(type_id, str) or not type_id:
            raise ValueError("type_id must not be empty")
        self._factories[type_id] = factory

    def resolve(self, type_id: Optional[str]) -> Optional[RecordFactory]:
        """Return the factory for `type_id`, or None if it is empty or unknown."""
        if not isinstance(type_id, str) or not type_id:
            return None
        return self._factories.get(type_id)

    def copy(self) -> TypeRegistry:
        return TypeRegistry(self._factories)

    def __contains__(self, type_id: object) -> bool:
        return type_id in self._factories

    def __iter__(self):
        return iter(sorted(self._factories))

    def __len__(self) -> int:
        return len(self._factories)


RECORD_TYPES = {
    "account": Account,
    "contact": Contact,
    "deal": Deal,
    "lead": Lead,
    "note": Note,
    "task": Task,
    "user": User,
}

DEFAULT_REGISTRY = TypeRegistry(
    {type_id: cls.from_dict for type_id, cls in RECORD_TYPES.items()}
)
