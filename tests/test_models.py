# Copyright: Ankitects Pty Ltd and contributors
# License: GNU AGPL, version 3 or later; http://www.gnu.org/licenses/agpl.html

"""Tests for the data model and the record type registry."""

import pytest

from .. import (
    DEFAULT_REGISTRY,
    RECORD_TYPES,
    Contact,
    Meta,
    SyncMeta,
    SyncSession,
    Task,
    TypeRegistry,
)


def test_default_registry_catalog():
    assert list(DEFAULT_REGISTRY) == sorted(RECORD_TYPES)
    assert len(DEFAULT_REGISTRY) == 7
    assert "contact" in DEFAULT_REGISTRY


@pytest.mark.parametrize("type_id", [None, "", "unknown_x", "Contact"])
def test_resolve_unknown_is_absent(type_id):
    assert DEFAULT_REGISTRY.resolve(type_id) is None


def test_resolve_builds_record():
    factory = DEFAULT_REGISTRY.resolve("task")
    task = factory({"id": 7, "content": "Call Bob", "completed": True})
    assert task == Task(id=7, content="Call Bob", completed=True)


def test_record_keeps_unknown_fields():
    contact = Contact.from_dict({"name": "Bob", "custom_fields": {"tier": "gold"}})
    assert contact.name == "Bob"
    assert contact.extra == {"custom_fields": {"tier": "gold"}}


def test_register_on_copy_leaves_default_untouched():
    registry = DEFAULT_REGISTRY.copy()
    registry.register("widget", dict)

    assert registry.resolve("widget") is dict
    assert DEFAULT_REGISTRY.resolve("widget") is None


def test_register_requires_type_id():
    with pytest.raises(ValueError):
        TypeRegistry().register("", dict)


def test_meta_wraps_sync_cursor():
    meta = Meta.from_dict(
        {
            "type": "deal",
            "sync": {"ack_key": "Deal-1-1", "event_type": "updated", "revision": 3},
            "links": {"self": "/v2/deals/1"},
        }
    )
    assert meta.type == "deal"
    assert meta.sync == SyncMeta(ack_key="Deal-1-1", event_type="updated", revision=3)
    assert meta.extra == {"links": {"self": "/v2/deals/1"}}


def test_meta_without_sync():
    meta = Meta.from_dict({"type": "deal"})
    assert meta.sync == SyncMeta()
    assert meta.ack_key is None


def test_session_from_dict():
    session = SyncSession.from_dict(
        {"id": "s1", "queues": [{"data": {"name": "main", "pages": 2}}]}
    )
    assert session.id == "s1"
    assert session.queues[0].name == "main"
    assert session.queues[0].pages == 2


def test_session_is_read_only():
    session = SyncSession.from_dict({"id": "s1"})
    with pytest.raises(AttributeError):
        session.id = "s2"


def test_session_queue_and_meta_are_hashable():
    session = SyncSession.from_dict(
        {"id": "s1", "queues": [{"data": {"name": "main"}}], "expires_at": "soon"}
    )
    meta = Meta.from_dict({"type": "deal", "sync": {"ack_key": "k1"}, "links": {}})

    assert hash(SyncSession(id="s1")) == hash(SyncSession(id="s1"))
    assert hash(session) == hash(SyncSession.from_dict(
        {"id": "s1", "queues": [{"data": {"name": "main"}}], "expires_at": "soon"}
    ))
    assert {session.queues[0], meta, meta.sync}


@pytest.mark.parametrize("sync", ["Deal-1-1", 42, ["k1"], None])
def test_meta_tolerates_non_mapping_sync(sync):
    meta = Meta.from_dict({"type": "deal", "sync": sync})
    assert meta.type == "deal"
    assert meta.sync == SyncMeta()


@pytest.mark.parametrize("type_id", [42, ["contact"], {"contact": 1}])
def test_resolve_non_string_is_absent(type_id):
    assert DEFAULT_REGISTRY.resolve(type_id) is None
