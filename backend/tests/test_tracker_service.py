from datetime import date
from decimal import Decimal

import pytest

from stockbook.domain import InventoryItem, Sale, SaleLineItem
from stockbook.services.store_service import MemoryStore
from stockbook.services.tracker_service import InventoryTracker
from stockbook.validation import StorageError


def fixed_clock():
    return date(2024, 5, 17)


class FlakyStore(MemoryStore):
    """MemoryStore whose saves can be switched to fail."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.failing = False

    def save(self, items, sales):
        if self.failing:
            raise StorageError("disk full")
        super().save(items, sales)


class BrokenStore:
    def load(self):
        raise StorageError("unreadable")

    def save(self, items, sales):
        raise StorageError("unwritable")


@pytest.fixture
def store():
    return FlakyStore()


@pytest.fixture
def tracker(store):
    tracker = InventoryTracker(store, clock=fixed_clock)
    tracker.load()
    tracker.save_item({"name": "Shirt", "category": "Tops", "price": "29.90", "quantity": "10"})
    return tracker


def test_every_mutation_is_saved(tracker, store):
    tracker.add_to_draft(1)
    sale, saved = tracker.commit_draft()

    assert saved is True
    items, sales = store.load()
    assert items[0].quantity == 9
    assert sales == [sale]


def test_failed_save_keeps_memory_authoritative(tracker, store):
    store.failing = True
    tracker.add_to_draft("1")
    sale, saved = tracker.commit_draft()

    assert saved is False
    assert isinstance(tracker.last_save_error, StorageError)
    assert tracker.catalog.available_quantity(1) == 9
    assert tracker.ledger.list() == [sale]
    assert store.load()[1] == []

    # Next successful save reconciles
    store.failing = False
    tracker.save_item({"name": "Cap", "category": "Acc", "price": "5", "quantity": "1"})
    assert tracker.last_save_error is None
    assert store.load()[1] == [sale]


def test_open_edit_is_not_saved_as_restored_stock(tracker, store):
    tracker.add_to_draft(1)
    tracker.change_line_quantity(0, 3)
    sale, _ = tracker.commit_draft()

    tracker.begin_edit(sale.id)
    assert tracker.catalog.available_quantity(1) == 10
    # Some unrelated change persists while the edit is open
    tracker.save_item({"name": "Cap", "category": "Acc", "price": "5", "quantity": "1"})

    items, _ = store.load()
    assert items[0].quantity == 6


def test_reset_draft_cancels_open_edit(tracker):
    tracker.add_to_draft(1)
    sale, _ = tracker.commit_draft()
    tracker.begin_edit(sale.id)

    assert tracker.reset_draft() is True
    assert tracker.builder.is_editing is False
    assert tracker.catalog.available_quantity(1) == 9


def test_item_recreated_during_edit_is_not_charged(tracker, store):
    tracker.add_to_draft(1)
    tracker.change_line_quantity(0, 3)
    sale, _ = tracker.commit_draft()
    tracker.begin_edit(sale.id)

    tracker.delete_item(1)
    tracker.save_item({"id": 1, "name": "Shirt", "category": "Tops", "price": "29.90", "quantity": "5"})
    assert store.load()[0][0].quantity == 5

    tracker.cancel_edit()
    assert tracker.available_quantity(1) == 5
    assert store.load()[0][0].quantity == 5
    assert tracker.get_sale(sale.id).items[0].quantity == 4


def test_delete_sale_saves_restored_stock(tracker, store):
    tracker.add_to_draft(1)
    sale, _ = tracker.commit_draft()

    tracker.delete_sale(sale.id)

    items, sales = store.load()
    assert items[0].quantity == 10
    assert sales == []


def test_load_propagates_storage_error():
    with pytest.raises(StorageError):
        InventoryTracker(BrokenStore()).load()


def test_load_rejects_inconsistent_data():
    store = MemoryStore(
        items=[InventoryItem(1, "A", "B", Decimal("1"), 1)],
        sales=[Sale(1, "2024-01-01", [SaleLineItem(1, "A", Decimal("1"), 1)]),
               Sale(1, "2024-01-02", [SaleLineItem(1, "A", Decimal("1"), 1)])],
    )
    with pytest.raises(StorageError):
        InventoryTracker(store).load()


def test_dashboard_defaults_to_today(tracker):
    tracker.add_to_draft(1)
    tracker.commit_draft()

    report = tracker.dashboard("daily")
    assert report["date"] == "2024-05-17"
    assert report["summary"]["count"] == 1
