from unittest.mock import MagicMock

import pytest
from pymongo.errors import PyMongoError

from herbaltrace.errors import DuplicateRow, StoreError
from herbaltrace.row_store import Relation, RowStore
from herbaltrace.services.relations import COLLECTOR_WITH_PROFILE, HERB


class TestWrites:
    def test_insert_sets_id_and_created_at(self, store):
        row = store.insert("herbs", {"botanical_name": "Bacopa monnieri", "local_name": "Brahmi"})
        assert row["id"]
        assert row["created_at"]
        assert "_id" not in row

    def test_insert_keeps_given_id(self, store):
        row = store.insert("herbs", {"id": "H9", "botanical_name": "x", "local_name": "y"})
        assert row["id"] == "H9"
        assert store.get("herbs", "H9")["botanical_name"] == "x"

    def test_duplicate_unique_column(self, store):
        store.insert("profiles", {"email": "a@b.com", "role": "lab"})
        with pytest.raises(DuplicateRow):
            store.insert("profiles", {"email": "a@b.com", "role": "factory"})

    def test_password_hash_never_returned(self, store):
        row = store.insert("profiles", {"email": "a@b.com", "role": "lab", "password_hash": "h"})
        assert "password_hash" not in row
        assert "password_hash" not in store.get("profiles", row["id"])
        hidden = store.select_one("profiles", {"email": "a@b.com"}, include_hidden=True)
        assert hidden["password_hash"] == "h"

    def test_update_with_guard(self, store):
        row = store.insert("quality_tests", {"test_status": "pending"})
        assert store.update("quality_tests", row["id"], {"test_status": "completed"},
                            guard={"test_status": "pending"})["test_status"] == "completed"
        assert store.update("quality_tests", row["id"], {"test_status": "completed"},
                            guard={"test_status": "pending"}) is None

    def test_update_missing_row(self, store):
        assert store.update("herbs", "nope", {"local_name": "x"}) is None


class TestReads:
    def test_filters_and_order(self, store, seeded):
        rows = store.select("batches", {"batch_status": "approved"}, order_by="creation_timestamp", descending=True)
        assert [b["id"] for b in rows] == ["B2", "B1"]

    def test_in_filter(self, store, seeded):
        rows = store.select("quality_tests", in_filters={"batch_id": ["B1", "B2"]})
        assert {t["id"] for t in rows} == {"T1", "T2"}

    def test_limit(self, store, seeded):
        assert len(store.select("collection_events", limit=2)) == 2

    def test_relation_expansion(self, store, seeded):
        events = store.select("collection_events", {"herb_id": "H1"}, relations=(HERB,))
        assert all(e["herbs"]["local_name"] == "Ashwagandha" for e in events)

    def test_nested_relation(self, store, seeded):
        ev = store.get("collection_events", "E1", relations=(COLLECTOR_WITH_PROFILE,))
        assert ev["collectors"]["id"] == "C1"
        assert ev["collectors"]["profiles"]["id"] == seeded["farmer"]["id"]
        assert "password_hash" not in ev["collectors"]["profiles"]

    def test_missing_relation_is_none(self, store):
        store.insert("collection_events", {"id": "E9", "herb_id": "gone"})
        assert store.get("collection_events", "E9", relations=(HERB,))["herbs"] is None

    def test_one_query_per_relation(self, store, seeded):
        """Expansion does not issue a query per row"""
        calls = []
        original = store._find

        def spy(table, query, *args, **kwargs):
            calls.append(table)
            return original(table, query, *args, **kwargs)

        store._find = spy
        store.select("collection_events", relations=(HERB, Relation("collectors", "collectors", "collector_id")))
        assert calls == ["collection_events", "herbs", "collectors"]


class TestStoreFailures:
    def _broken(self):
        db = MagicMock()
        db.__getitem__.return_value.find.side_effect = PyMongoError("boom")
        db.__getitem__.return_value.insert_one.side_effect = PyMongoError("boom")
        return RowStore(db)

    def test_read_failure(self):
        with pytest.raises(StoreError):
            self._broken().select("herbs")

    def test_write_failure(self):
        with pytest.raises(StoreError) as exc:
            self._broken().insert("herbs", {"local_name": "x"})
        assert not isinstance(exc.value, DuplicateRow)
