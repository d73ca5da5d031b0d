import json

import pytest

from olda.db import SessionLocal
from olda.models.client_storage import ClientStorageEntry
from olda.services.client_storage import (
    MemoryStore,
    SqlKeyValueStore,
    StorageWriteError,
    read_json_list,
    write_json,
)


def test_listener_gets_event_from_other_writer():
    store = MemoryStore()
    writer, reader = object(), object()
    seen = []
    store.subscribe(seen.append, owner=reader)

    store.set("k", "v", origin=writer)
    assert seen == ["k"]


def test_writer_does_not_get_own_event():
    store = MemoryStore()
    writer = object()
    seen = []
    store.subscribe(seen.append, owner=writer)

    store.set("k", "v", origin=writer)
    assert seen == []
    assert store.get("k") == "v"


def test_unsubscribe_stops_events():
    store = MemoryStore()
    seen = []
    unsubscribe = store.subscribe(seen.append, owner=object())
    unsubscribe()
    unsubscribe()
    store.set("k", "v")
    assert seen == []


def test_deferred_events_wait_for_dispatch():
    store = MemoryStore(auto_dispatch=False)
    seen = []
    store.subscribe(seen.append, owner=object())

    store.set("a", "1")
    store.remove("a")
    assert seen == []
    assert store.dispatch_events() == 2
    assert seen == ["a", "a"]
    assert store.dispatch_events() == 0


def test_quota_rejects_write_and_keeps_old_value():
    store = MemoryStore(quota=5)
    store.set("k", "abc")
    with pytest.raises(StorageWriteError):
        store.set("k", "abcdef")
    assert store.get("k") == "abc"


def test_write_json_swallows_write_error():
    store = MemoryStore(quota=2)
    assert write_json(store, "k", ["long value"]) is False
    assert store.get("k") is None
    assert write_json(MemoryStore(), "k", ["é"]) is True


@pytest.mark.parametrize("raw", ["{broken", '{"a": 1}', "42", ""])
def test_read_json_list_falls_back_to_empty(raw):
    store = MemoryStore()
    store.set("k", raw)
    assert read_json_list(store, "k") == []


def test_read_json_list_missing_key():
    assert read_json_list(MemoryStore(), "nope") == []


def test_sql_store_round_trip():
    store = SqlKeyValueStore(SessionLocal)
    assert store.get("prt_requests_v1") is None

    store.set("prt_requests_v1", json.dumps([{"id": "prt1"}]))
    store.set("prt_requests_v1", json.dumps([{"id": "prt2"}]))
    assert read_json_list(store, "prt_requests_v1") == [{"id": "prt2"}]

    db = SessionLocal()
    try:
        assert db.query(ClientStorageEntry).count() == 1
    finally:
        db.close()

    store.remove("prt_requests_v1")
    assert store.get("prt_requests_v1") is None


def test_sql_store_notifies_listeners():
    store = SqlKeyValueStore(SessionLocal)
    seen = []
    store.subscribe(seen.append, owner=object())
    store.set("olda-todos-1", "[]")
    assert seen == ["olda-todos-1"]
