from unittest.mock import MagicMock

import pytest
from pymongo.errors import PyMongoError

from config import Settings
from database import CATEGORY, PAGE_CONFIG, VIDEO, MemoryStore, MongoStore, build_store
from errors import StoreError


def test_memory_store_partitions_by_page():
    store = MemoryStore()
    store.replace_all(VIDEO, "oz", [{"id": "a", "order": 2}, {"id": "b", "order": 1}])
    store.replace_all(CATEGORY, "oz", [{"id": "c"}])
    assert [r["id"] for r in store.list_records(VIDEO, "oz")] == ["b", "a"]
    assert store.list_records(VIDEO, "disc") == []
    assert store.list_records(CATEGORY, "oz") == [{"id": "c", "page": "oz"}]


def test_memory_store_returns_copies():
    store = MemoryStore()
    records = [{"id": "a", "tags": ["x"]}]
    store.replace_all(VIDEO, "oz", records)
    records[0]["tags"].append("y")
    store.list_records(VIDEO, "oz")[0]["tags"].append("z")
    assert store.list_records(VIDEO, "oz")[0]["tags"] == ["x"]


def test_memory_store_upsert_page_config():
    store = MemoryStore()
    assert store.get_page_config("oz") is None
    created = store.upsert_page_config("oz", {"accentColor": "#112233"}, {"pageTitle": "Oz", "accentColor": "#008f67"})
    assert created == {"page": "oz", "pageTitle": "Oz", "accentColor": "#112233"}
    updated = store.upsert_page_config("oz", {"pageTitle": "Wizard"}, {"pageTitle": "ignored"})
    assert updated["pageTitle"] == "Wizard"
    assert updated["accentColor"] == "#112233"
    assert store.list_page_configs() == [updated]
    assert store.collection_names() == [PAGE_CONFIG]


def test_build_store_without_url():
    assert build_store(Settings()) is None


def test_mongo_replace_all_deletes_then_inserts():
    client = MagicMock()
    store = MongoStore(client, "vidshare")
    collection = store.db[VIDEO]
    store.replace_all(VIDEO, "oz", [{"id": "a"}, {"id": "b"}])

    collection.delete_many.assert_called_once_with({"page": "oz"}, session=None)
    docs = collection.insert_many.call_args[0][0]
    assert [(d["id"], d["page"], d["_position"]) for d in docs] == [("a", "oz", 0), ("b", "oz", 1)]


def test_mongo_replace_all_with_no_records_only_deletes():
    client = MagicMock()
    store = MongoStore(client, "vidshare")
    store.replace_all(CATEGORY, "oz", [])
    store.db[CATEGORY].insert_many.assert_not_called()


def test_mongo_upsert_splits_set_and_set_on_insert():
    client = MagicMock()
    store = MongoStore(client, "vidshare")
    store.upsert_page_config("oz", {"accentColor": "#112233"},
                             {"page": "oz", "accentColor": "#008f67", "pageTitle": "Oz"})
    update = store.db[PAGE_CONFIG].find_one_and_update.call_args[0][1]
    assert update == {"$set": {"accentColor": "#112233"}, "$setOnInsert": {"pageTitle": "Oz"}}


def test_mongo_errors_become_store_errors():
    client = MagicMock()
    store = MongoStore(client, "vidshare")
    store.db[VIDEO].find.side_effect = PyMongoError("boom")
    store.db[VIDEO].delete_many.side_effect = PyMongoError("boom")
    with pytest.raises(StoreError):
        store.list_records(VIDEO, "oz")
    with pytest.raises(StoreError):
        store.replace_all(VIDEO, "oz", [{"id": "a"}])
