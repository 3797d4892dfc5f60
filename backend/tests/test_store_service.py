import json
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from stockbook.domain import InventoryItem, Sale, SaleLineItem
from stockbook.extensions import db
from stockbook.models import InventoryItemRecord, SaleLineRecord
from stockbook.services.concurrency import commit_with_retry
from stockbook.services.store_service import JsonFileStore, MemoryStore, SqlStore, build_store
from stockbook.validation import StorageError


def _items():
    return [
        InventoryItem(3, "Shirt", "Tops", Decimal("29.90"), 6, "file:///shirt.png"),
        InventoryItem(1, "Cap", "Accessories", Decimal("15.00"), 0),
    ]


def _sales():
    return [
        Sale(id=2, date="2024-05-17", items=[
            SaleLineItem(3, "Shirt", Decimal("29.90"), 4),
            SaleLineItem(1, "Cap", Decimal("15.00"), 3),
        ]),
        Sale(id=1, date="free text date", items=[SaleLineItem(9, "Deleted thing", Decimal("2.50"), 1)]),
    ]


class TestSqlStore:
    def test_empty_database_loads_empty(self, app):
        assert SqlStore().load() == ([], [])

    def test_save_then_load_keeps_order_and_nesting(self, app):
        store = SqlStore()
        store.save(_items(), _sales())

        items, sales = store.load()

        assert items == _items()
        assert sales == _sales()
        assert sales[0].total == Decimal("164.60")

    def test_lines_are_stored_one_row_each(self, app):
        SqlStore().save(_items(), _sales())
        assert db.session.query(SaleLineRecord).count() == 3

    def test_save_overwrites_whole_collections(self, app):
        store = SqlStore()
        store.save(_items(), _sales())
        store.save(_items()[:1], [])

        items, sales = store.load()
        assert [item.id for item in items] == [3]
        assert sales == []
        assert db.session.query(SaleLineRecord).count() == 0

    def test_missing_tables_raise_storage_error(self, app):
        db.drop_all()
        with pytest.raises(StorageError):
            SqlStore().load()
        db.create_all()

    def test_unbindable_value_raises_storage_error_and_next_save_works(self, app):
        store = SqlStore()
        huge = InventoryItem(1, "Bolt", "Hardware", Decimal("1.00"), 10 ** 20)

        with pytest.raises(StorageError):
            store.save([huge], [])

        store.save(_items(), [])
        assert [item.id for item in store.load()[0]] == [3, 1]

    def test_records_round_trip(self, app):
        record = InventoryItemRecord.from_item(_items()[0], position=0)
        assert record.to_item() == _items()[0]


class TestJsonFileStore:
    def test_missing_file_loads_empty(self, tmp_path):
        assert JsonFileStore(tmp_path / "data.json").load() == ([], [])

    def test_save_then_load(self, tmp_path):
        store = JsonFileStore(tmp_path / "nested" / "data.json")
        store.save(_items(), _sales())

        assert store.load() == (_items(), _sales())

    def test_file_layout_has_inventory_and_sales_keys(self, tmp_path):
        path = tmp_path / "data.json"
        JsonFileStore(path).save(_items(), _sales())

        data = json.loads(path.read_text(encoding="utf-8"))
        assert set(data) == {"inventory", "sales"}
        assert data["inventory"][0] == {
            "id": 3, "name": "Shirt", "category": "Tops", "price": "29.90",
            "quantity": 6, "photo_ref": "file:///shirt.png",
        }
        assert data["sales"][0]["total"] == "164.60"
        assert data["sales"][0]["items"][0]["item_id"] == 3

    def test_corrupt_file_raises_storage_error(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(StorageError):
            JsonFileStore(path).load()

    def test_unwritable_location_raises_storage_error(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        with pytest.raises(StorageError):
            JsonFileStore(blocker / "data.json").save(_items(), [])


def test_memory_store_keeps_private_copies():
    store = MemoryStore()
    items = _items()
    store.save(items, [])
    items[0].quantity = 99

    loaded, _ = store.load()
    assert loaded[0].quantity == 6
    assert store.save_count == 1


@pytest.mark.parametrize("backend,expected", [
    ("sql", SqlStore),
    ("JSON", JsonFileStore),
    ("memory", MemoryStore),
])
def test_build_store(backend, expected):
    assert isinstance(build_store({"STOCKBOOK_STORE": backend}), expected)


def test_build_store_unknown_backend():
    with pytest.raises(ValueError):
        build_store({"STOCKBOOK_STORE": "redis"})


def test_commit_with_retry_starts_over_after_lock(app, monkeypatch):
    monkeypatch.setattr("stockbook.services.concurrency.time.sleep", lambda seconds: None)
    attempts = []

    def write():
        attempts.append(1)
        if len(attempts) == 1:
            raise OperationalError("INSERT", {}, Exception("database is locked"))
        db.session.add(InventoryItemRecord.from_item(_items()[0], position=0))

    commit_with_retry(write)

    assert len(attempts) == 2
    assert db.session.query(InventoryItemRecord).count() == 1


def test_commit_with_retry_gives_up(app, monkeypatch):
    monkeypatch.setattr("stockbook.services.concurrency.time.sleep", lambda seconds: None)

    def write():
        raise OperationalError("INSERT", {}, Exception("database is locked"))

    with pytest.raises(OperationalError):
        commit_with_retry(write, attempts=2)
