"""Tests for hearth.adapters.sqlite_store — SQLiteDocumentStore."""

import sqlite3
import threading
from unittest.mock import patch

import pytest

from hearth.adapters.sqlite_store import SQLiteDocumentStore
from hearth.ports.store_port import DuplicateKey, StoreUnavailable


class TestCreateAndGet:
    def test_create_generates_id(self, store):
        doc_id = store.create("things", {"name": "a"})
        assert doc_id
        assert store.get("things", doc_id) == {"id": doc_id, "name": "a"}

    def test_create_with_explicit_id(self, store):
        assert store.create("things", {"name": "a"}, doc_id="x1") == "x1"
        assert store.get("things", "x1")["name"] == "a"

    def test_create_duplicate_id_raises(self, store):
        store.create("things", {"name": "a"}, doc_id="x1")
        with pytest.raises(DuplicateKey):
            store.create("things", {"name": "b"}, doc_id="x1")

    def test_same_id_in_other_collection_is_fine(self, store):
        store.create("things", {"name": "a"}, doc_id="x1")
        store.create("others", {"name": "b"}, doc_id="x1")
        assert store.get("others", "x1")["name"] == "b"

    def test_get_missing_returns_none(self, store):
        assert store.get("things", "nope") is None

    def test_id_in_data_is_not_stored_twice(self, store):
        doc_id = store.create("things", {"id": "ignored", "name": "a"})
        assert store.get("things", doc_id)["id"] == doc_id


class TestUniqueFields:
    def test_unique_violation_raises(self, store):
        store.create("households", {"code": "ABC123"}, unique_fields=("code",))
        with pytest.raises(DuplicateKey) as exc_info:
            store.create("households", {"code": "ABC123"}, unique_fields=("code",))
        assert exc_info.value.field == "code"
        assert exc_info.value.value == "ABC123"

    def test_violation_inserts_nothing(self, store):
        store.create("households", {"code": "ABC123"}, unique_fields=("code",))
        with pytest.raises(DuplicateKey):
            store.create("households", {"code": "ABC123"}, unique_fields=("code",))
        assert len(store.query("households", "code", "ABC123")) == 1

    def test_distinct_values_ok(self, store):
        store.create("households", {"code": "ABC123"}, unique_fields=("code",))
        store.create("households", {"code": "XYZ789"}, unique_fields=("code",))
        assert len(store.query("households", "code", "XYZ789")) == 1


class TestQuery:
    def test_filters_by_field(self, store):
        store.create("chores", {"household_id": "h1", "n": 1})
        store.create("chores", {"household_id": "h2", "n": 2})
        store.create("chores", {"household_id": "h1", "n": 3})
        docs = store.query("chores", "household_id", "h1")
        assert [d["n"] for d in docs] == [1, 3]

    def test_insertion_order(self, store):
        for n in range(5):
            store.create("items", {"list": "l", "n": n})
        assert [d["n"] for d in store.query("items", "list", "l")] == [0, 1, 2, 3, 4]

    def test_no_match(self, store):
        assert store.query("chores", "household_id", "h1") == []

    def test_invalid_field_name_rejected(self, store):
        with pytest.raises(ValueError):
            store.query("chores", "a.b') OR 1=1 --", "x")


class TestUpdateAndUpsert:
    def test_update_merges(self, store):
        doc_id = store.create("chores", {"status": "pending", "type": "trash"})
        assert store.update("chores", doc_id, {"status": "completed"}) is True
        assert store.get("chores", doc_id) == {
            "id": doc_id, "status": "completed", "type": "trash",
        }

    def test_update_missing_returns_false(self, store):
        assert store.update("chores", "nope", {"status": "completed"}) is False
        assert store.get("chores", "nope") is None

    def test_upsert_creates(self, store):
        store.upsert("members", "u1", {"name": "Ana"})
        assert store.get("members", "u1") == {"id": "u1", "name": "Ana"}

    def test_upsert_merges(self, store):
        store.upsert("members", "u1", {"name": "Ana", "email": "a@x.com"})
        store.upsert("members", "u1", {"household_id": "h1"})
        assert store.get("members", "u1") == {
            "id": "u1", "name": "Ana", "email": "a@x.com", "household_id": "h1",
        }


class TestSwapField:
    def test_returns_previous_value(self, store):
        store.create("members", {"name": "Ana", "household_id": "h1"}, doc_id="u1")
        assert store.swap_field("members", "u1", "household_id", "h2") == "h1"
        assert store.get("members", "u1") == {"id": "u1", "name": "Ana", "household_id": "h2"}

    def test_missing_field_returns_none(self, store):
        store.create("members", {"name": "Ana"}, doc_id="u1")
        assert store.swap_field("members", "u1", "household_id", "h1") is None
        assert store.get("members", "u1")["household_id"] == "h1"

    def test_creates_missing_doc(self, store):
        assert store.swap_field("members", "u9", "household_id", "h1") is None
        assert store.get("members", "u9") == {"id": "u9", "household_id": "h1"}

    def test_concurrent_swaps_see_each_other(self, tmp_db_path):
        SQLiteDocumentStore(db_path=tmp_db_path, timeout=10.0).create(
            "members", {"household_id": None}, doc_id="u1",
        )
        previous = []

        def swap(value):
            previous.append(
                SQLiteDocumentStore(db_path=tmp_db_path, timeout=10.0).swap_field(
                    "members", "u1", "household_id", value,
                )
            )

        threads = [threading.Thread(target=swap, args=(f"h{i}",)) for i in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        # Every value but the last one written is handed back exactly once.
        final = SQLiteDocumentStore(db_path=tmp_db_path).get("members", "u1")["household_id"]
        assert sorted(previous, key=str) == sorted(
            [None] + [f"h{i}" for i in range(10) if f"h{i}" != final], key=str,
        )


class TestArrayOperations:
    def test_union_appends_new_values(self, store):
        store.create("households", {"members": ["u1"]}, doc_id="h1")
        assert store.array_union("households", "h1", "members", ["u2"]) is True
        assert store.get("households", "h1")["members"] == ["u1", "u2"]

    def test_union_is_idempotent(self, store):
        store.create("households", {"members": ["u1"]}, doc_id="h1")
        store.array_union("households", "h1", "members", ["u2"])
        store.array_union("households", "h1", "members", ["u2", "u1"])
        assert store.get("households", "h1")["members"] == ["u1", "u2"]

    def test_union_on_missing_field(self, store):
        store.create("households", {}, doc_id="h1")
        store.array_union("households", "h1", "members", ["u1"])
        assert store.get("households", "h1")["members"] == ["u1"]

    def test_union_missing_doc(self, store):
        assert store.array_union("households", "nope", "members", ["u1"]) is False

    def test_remove(self, store):
        store.create("households", {"members": ["u1", "u2", "u3"]}, doc_id="h1")
        assert store.array_remove("households", "h1", "members", ["u2"]) is True
        assert store.get("households", "h1")["members"] == ["u1", "u3"]

    def test_remove_absent_value_is_noop(self, store):
        store.create("households", {"members": ["u1"]}, doc_id="h1")
        store.array_remove("households", "h1", "members", ["u9"])
        assert store.get("households", "h1")["members"] == ["u1"]

    def test_concurrent_unions_lose_nothing(self, tmp_db_path):
        SQLiteDocumentStore(db_path=tmp_db_path, timeout=10.0).create(
            "households", {"members": []}, doc_id="h1",
        )

        def join(user_id):
            SQLiteDocumentStore(db_path=tmp_db_path, timeout=10.0).array_union(
                "households", "h1", "members", [user_id],
            )

        threads = [threading.Thread(target=join, args=(f"u{i}",)) for i in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        members = SQLiteDocumentStore(db_path=tmp_db_path).get("households", "h1")["members"]
        assert sorted(members) == sorted(f"u{i}" for i in range(10))


class TestDelete:
    def test_delete_existing(self, store):
        doc_id = store.create("items", {"name": "Milk"})
        assert store.delete("items", doc_id) is True
        assert store.get("items", doc_id) is None

    def test_delete_missing(self, store):
        assert store.delete("items", "nope") is False


class TestStoreUnavailable:
    def test_sqlite_errors_are_wrapped(self, store):
        with patch.object(
            SQLiteDocumentStore, "_connect", side_effect=sqlite3.OperationalError("disk I/O error"),
        ):
            with pytest.raises(StoreUnavailable):
                store.get("things", "x")

    def test_failure_mid_transaction_is_wrapped(self, store):
        store.create("chores", {"household_id": "h1"})
        with patch.object(
            SQLiteDocumentStore, "_fetch", side_effect=sqlite3.DatabaseError("corrupt"),
        ):
            with pytest.raises(StoreUnavailable):
                store.update("chores", "x", {"a": 1})

    def test_retryable_flag(self):
        assert StoreUnavailable.retryable is True
        assert DuplicateKey.retryable is False
