"""
Tests for the SQLite document store and its instrumented connection.
"""

import sqlite3

import pytest
from knowledge_base.core.db import InstrumentedConnection, connect, health_check
from knowledge_base.core.exceptions import NotFound, StoreUnavailable
from knowledge_base.core.schema import DocumentPayload
from knowledge_base.core.store import DocumentStore, SqliteDocumentStore


def payload(title="Doc", content="some content", tags=None, **metadata):
    return DocumentPayload(title=title, content=content, source="text_input", metadata=metadata, tags=tags or [])


def test_store_implements_interface(store):
    assert isinstance(store, DocumentStore)
    assert store.health_check() is True


def test_append_assigns_sequential_ids(store):
    first = store.append([0.1, 0.2], payload("one"))
    second = store.append([0.3, 0.4], payload("two"))

    assert (first, second) == (1, 2)
    assert store.count() == 2


def test_all_returns_insertion_order_snapshot(store):
    for i in range(5):
        store.append([float(i), 1.0], payload(f"doc {i}"))

    snapshot = store.all()
    assert [doc_id for doc_id, _, _ in snapshot] == [1, 2, 3, 4, 5]
    assert snapshot[2][1] == [2.0, 1.0]
    assert snapshot[2][2].title == "doc 2"

    # Later writes do not leak into an existing snapshot
    store.append([9.0, 9.0], payload("late"))
    assert len(snapshot) == 5


def test_get_round_trips_payload(store):
    doc_id = store.append([0.25, 0.5, 0.75], payload("Title", "Body text", tags=["b", "a"], author="me"))

    vector, record = store.get(doc_id)
    assert vector == [0.25, 0.5, 0.75]
    assert record.id == doc_id
    assert record.title == "Title"
    assert record.content == "Body text"
    assert record.source == "text_input"
    assert record.metadata == {"author": "me"}
    assert record.tags == ["a", "b"]
    assert record.created_at == record.updated_at


def test_get_unknown_id(store):
    with pytest.raises(NotFound) as excinfo:
        store.get(42)
    assert excinfo.value.status_code == 404


def test_delete(store):
    doc_id = store.append([1.0], payload())

    assert store.delete(doc_id) is True
    with pytest.raises(NotFound):
        store.get(doc_id)
    with pytest.raises(NotFound):
        store.delete(doc_id)


def test_ids_are_never_reused(store):
    store.append([1.0], payload("one"))
    second = store.append([1.0], payload("two"))
    store.delete(second)

    assert store.append([1.0], payload("three")) == 3


def test_update_replaces_vector_payload_and_tags(store):
    doc_id = store.append([1.0, 0.0], payload("old", tags=["x"]))

    record = store.update(doc_id, [0.0, 1.0], payload("new", "new body", tags=["y", "z"]))
    assert record.title == "new"
    assert record.content == "new body"
    assert record.tags == ["y", "z"]
    assert record.updated_at >= record.created_at
    assert store.get(doc_id)[0] == [0.0, 1.0]


def test_update_unknown_id(store):
    with pytest.raises(NotFound):
        store.update(7, [1.0], payload())


def test_tags_are_shared_between_documents(store):
    first = store.append([1.0], payload(tags=["shared", "only-first"]))
    second = store.append([1.0], payload(tags=["shared", "shared"]))

    assert store.get(first)[1].tags == ["only-first", "shared"]
    assert store.get(second)[1].tags == ["shared"]

    store.delete(first)
    assert store.get(second)[1].tags == ["shared"]


def test_list_pages_in_insertion_order(store):
    for i in range(7):
        store.append([1.0], payload(f"doc {i}"))

    page = store.list(limit=3, offset=2)
    assert [r.title for r in page] == ["doc 2", "doc 3", "doc 4"]
    assert store.list(limit=10, offset=7) == []


def test_file_store_persists_across_reopen(tmp_path):
    db_path = str(tmp_path / "nested" / "kb.db")
    store = SqliteDocumentStore(db_path)
    doc_id = store.append([0.5, 0.5], payload("persisted", tags=["keep"]))
    store.close()

    reopened = SqliteDocumentStore(db_path)
    try:
        vector, record = reopened.get(doc_id)
        assert vector == [0.5, 0.5]
        assert record.title == "persisted"
        assert record.tags == ["keep"]
    finally:
        reopened.close()


def test_closed_store_is_unavailable():
    store = SqliteDocumentStore(":memory:")
    store.close()

    assert store.health_check() is False
    with pytest.raises(StoreUnavailable) as excinfo:
        store.count()
    assert excinfo.value.status_code == 503


def test_connect_retries_then_fails(tmp_path):
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("")

    with pytest.raises(StoreUnavailable):
        connect(str(blocker / "kb.db"), retries=2, retry_delay=0)


def test_instrumented_connection_counts_queries():
    conn = InstrumentedConnection(sqlite3.connect(":memory:"))
    conn.execute("CREATE TABLE t (x INTEGER)")
    conn.execute("INSERT INTO t VALUES (?)", (1,))

    assert conn.query_count == 2
    assert conn.last_query.startswith("INSERT")
    assert conn.execute("SELECT x FROM t").fetchone() == (1,)
    assert conn.query_count == 3

    with pytest.raises(sqlite3.OperationalError):
        conn.execute("SELECT * FROM missing")
    assert conn.query_count == 4
    conn.close()


def test_transaction_rolls_back_on_error():
    conn = InstrumentedConnection(sqlite3.connect(":memory:"))
    conn.execute("CREATE TABLE t (x INTEGER)")
    conn.commit()

    with pytest.raises(RuntimeError):
        with conn.transaction():
            conn.execute("INSERT INTO t VALUES (1)")
            raise RuntimeError("boom")

    assert conn.execute("SELECT COUNT(*) FROM t").fetchone() == (0,)
    conn.close()


def test_health_check_requires_tables():
    conn = InstrumentedConnection(sqlite3.connect(":memory:"))
    assert health_check(conn) is False
    conn.close()
