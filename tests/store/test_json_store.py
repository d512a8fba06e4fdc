"""Tests for the JSON-file record store."""

import json

import pytest

from matching.models import SubItem
from shared_types import RecordKind
from store.base import RecordNotFoundError, StoreError


class TestFetch:
    def test_snapshot_grouped_by_kind(self, json_store):
        snapshot = json_store.fetch_all()
        assert [r.id for r in snapshot[RecordKind.WORK]] == ["w1", "w2", "w3"]
        assert all(r.kind == RecordKind.PERSONAL for r in snapshot[RecordKind.PERSONAL])

    def test_sub_items_parsed(self, json_store):
        grocery = json_store.get("personal", "p3")
        assert grocery.is_list
        assert [i.text for i in grocery.sub_items] == ["Greek yogurt", "Milk", "Bread", "Eggs"]

    def test_records_flattens_work_first(self, json_store):
        assert [r.id for r in json_store.records()][:4] == ["w1", "w2", "w3", "p1"]
        assert [r.id for r in json_store.records("work")] == ["w1", "w2", "w3"]

    def test_missing_file_created_empty(self, empty_store):
        assert empty_store.fetch_all() == {RecordKind.WORK: [], RecordKind.PERSONAL: []}
        assert empty_store.path.exists()

    def test_numeric_ids_coerced(self, tmp_path):
        from store.json_store import JsonRecordStore

        path = tmp_path / "tasks.json"
        path.write_text(json.dumps({"work": [{"id": 1700000000000, "text": "Old task"}]}))
        assert JsonRecordStore(path).records()[0].id == "1700000000000"

    def test_corrupt_file_raises_store_error(self, tmp_path):
        from store.json_store import JsonRecordStore

        path = tmp_path / "tasks.json"
        path.write_text("{not json")
        with pytest.raises(StoreError):
            JsonRecordStore(path).fetch_all()

    def test_record_without_text_raises_store_error(self, tmp_path):
        from store.json_store import JsonRecordStore

        path = tmp_path / "tasks.json"
        path.write_text(json.dumps({"personal": [{"id": "x", "text": "   "}]}))
        with pytest.raises(StoreError):
            JsonRecordStore(path).fetch_all()

    def test_null_kind_treated_as_empty(self, tmp_path):
        from store.json_store import JsonRecordStore

        path = tmp_path / "tasks.json"
        path.write_text(json.dumps({"work": None, "personal": []}))
        store = JsonRecordStore(path)
        created = store.create("work", "Renew passport")
        assert [r.id for r in store.records("work")] == [created.id]

    @pytest.mark.parametrize("work", [{"id": "x"}, "Renew passport", ["Renew passport"]])
    def test_malformed_kind_raises_store_error(self, tmp_path, work):
        from store.json_store import JsonRecordStore

        path = tmp_path / "tasks.json"
        path.write_text(json.dumps({"work": work, "personal": []}))
        store = JsonRecordStore(path)
        with pytest.raises(StoreError, match="must be a list of task objects"):
            store.create("work", "Renew passport")
        with pytest.raises(StoreError):
            store.fetch_all()

    def test_unknown_kind_rejected(self, json_store):
        with pytest.raises(StoreError, match="Invalid record kind"):
            json_store.records("errands")


class TestWrites:
    def test_create_persists_camel_case(self, empty_store):
        record = empty_store.create("personal", "Packing List", ["Socks", "Charger"])
        raw = json.loads(empty_store.path.read_text())
        stored = raw["personal"][0]
        assert stored["id"] == record.id
        assert [i["text"] for i in stored["subItems"]] == ["Socks", "Charger"]
        assert "kind" not in stored
        assert "lastUpdated" in raw

    def test_mutate_completed(self, json_store):
        updated = json_store.mutate("work", "w1", {"completed": True})
        assert updated.completed
        assert updated.last_modified is not None
        assert json_store.get("work", "w1").completed

    def test_mutate_sub_items(self, json_store):
        grocery = json_store.get("personal", "p3")
        items = grocery.sub_items[1:] + [SubItem(id="i5", text="Apples")]
        json_store.mutate("personal", "p3", {"sub_items": items})
        assert [i.text for i in json_store.get("personal", "p3").sub_items] == [
            "Milk", "Bread", "Eggs", "Apples",
        ]

    def test_mutate_unknown_id(self, json_store):
        with pytest.raises(RecordNotFoundError):
            json_store.mutate("work", "nope", {"text": "x"})

    def test_delete_returns_record(self, json_store):
        deleted = json_store.delete("work", "w2")
        assert deleted.text == "Complete CFA study session"
        assert [r.id for r in json_store.records("work")] == ["w1", "w3"]
