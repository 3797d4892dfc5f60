"""
Inventory Tracker - wires the catalog, the sale builder and the ledger to a
store.

WHY: the presentation layer needs one object to call. Each mutator below
changes the in-memory state first and then saves the whole collections. A
failed save never rolls memory back: it is logged, remembered in
last_save_error, and the next successful save reconciles the store.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Mapping

from ..domain import InventoryItem, Sale, SaleLineItem
from ..time_utils import today, today_iso
from ..validation import StorageError, ValidationError, parse_int
from . import analytics_service
from .catalog_service import Catalog
from .draft_service import SaleBuilder
from .ledger_service import Ledger
from .store_service import Store

logger = logging.getLogger(__name__)


class InventoryTracker:
    def __init__(self, store: Store, clock: Callable[[], date] = today):
        self.store = store
        self.clock = clock
        self.catalog = Catalog()
        self.ledger = Ledger()
        self.builder = SaleBuilder(clock=clock)
        self.loaded = False
        self.last_save_error: StorageError | None = None

    # ── persistence ──────────────────────────────────────────

    def load(self) -> None:
        """Replace in-memory state with the store's contents. Raises StorageError."""
        items, sales = self.store.load()
        try:
            catalog = Catalog(items)
            ledger = Ledger(sales)
        except ValidationError as exc:
            raise StorageError(f"Stored data is inconsistent: {exc}", details=exc.details) from exc
        self.catalog = catalog
        self.ledger = ledger
        self.builder = SaleBuilder(clock=self.clock)
        self.loaded = True
        logger.info("Loaded %d items and %d sales", len(catalog), len(ledger))

    def ensure_loaded(self) -> "InventoryTracker":
        if not self.loaded:
            self.load()
        return self

    def snapshot(self) -> tuple[list[InventoryItem], list[Sale]]:
        """The authoritative (inventory, sales) pair."""
        return self.catalog.list(), self.ledger.list()

    def _committed_items(self) -> list[InventoryItem]:
        """
        Catalog as it stands outside any open edit: stock handed back by
        begin_edit is taken out again so a crash mid-edit cannot double it.
        """
        restored = self.builder.restored if self.builder.is_editing else {}
        items = []
        for item in self.catalog.list():
            held = restored.get(item.id, 0)
            if held:
                item = item.copy()
                item.quantity = max(item.quantity - held, 0)
            items.append(item)
        return items

    def persist(self) -> bool:
        """Save everything; a failure is a warning, not a rollback."""
        items, sales = self._committed_items(), self.ledger.list()
        try:
            self.store.save(items, sales)
        except StorageError as exc:
            self.last_save_error = exc
            logger.warning("Save failed, keeping in-memory state: %s", exc)
            return False
        self.last_save_error = None
        return True

    # ── catalog ──────────────────────────────────────────────

    def save_item(self, draft: Mapping) -> tuple[InventoryItem, bool]:
        item = self.catalog.add_or_update(draft)
        return item, self.persist()

    def delete_item(self, item_id: int) -> tuple[bool, bool]:
        removed = self.catalog.delete(item_id)
        if removed and self.builder.restored.pop(item_id, None) is not None:
            # Stock handed back by begin_edit left with the item; a later item
            # created under the same id must not be charged for it.
            logger.info("Item %s deleted during edit of sale %s", item_id, self.builder.editing_id)
        return removed, (self.persist() if removed else True)

    def list_items(self, term: str | None = None) -> list[InventoryItem]:
        return self.catalog.search(term)

    def available_quantity(self, item_id: int) -> int:
        return self.catalog.available_quantity(item_id)

    # ── draft ────────────────────────────────────────────────

    def add_to_draft(self, item_id) -> SaleLineItem:
        item = self.catalog.require(parse_int(item_id, "item_id"))
        return self.builder.add_item(item, self.catalog)

    def change_line_quantity(self, index, delta) -> SaleLineItem:
        return self.builder.change_line_quantity(index, delta, self.catalog)

    def remove_line(self, index) -> SaleLineItem:
        return self.builder.remove_line(index)

    def set_draft_date(self, value) -> str:
        return self.builder.set_date(value)

    def reset_draft(self) -> bool:
        """Clear the draft; an open edit is cancelled so its stock is re-taken."""
        if self.builder.is_editing:
            self.ledger.cancel_edit(self.builder, self.catalog)
            return self.persist()
        self.builder.reset()
        return True

    def commit_draft(self) -> tuple[Sale, bool]:
        sale = self.builder.commit(self.ledger, self.catalog)
        return sale, self.persist()

    # ── ledger ───────────────────────────────────────────────

    def list_sales(self, start: date | None = None, end: date | None = None) -> list[Sale]:
        return self.ledger.between(start, end)

    def get_sale(self, sale_id: int) -> Sale:
        return self.ledger.require(sale_id)

    def begin_edit(self, sale_id: int) -> SaleBuilder:
        # Not saved: restored stock is transient until commit or cancel.
        return self.ledger.begin_edit(sale_id, self.catalog, self.builder)

    def commit_edit(self) -> tuple[Sale, bool]:
        sale = self.ledger.commit_edit(self.builder, self.catalog)
        return sale, self.persist()

    def cancel_edit(self) -> tuple[Sale, bool]:
        sale = self.ledger.cancel_edit(self.builder, self.catalog)
        return sale, self.persist()

    def delete_sale(self, sale_id: int) -> tuple[Sale, bool]:
        sale = self.ledger.delete(sale_id, self.catalog, self.builder)
        return sale, self.persist()

    # ── analytics ────────────────────────────────────────────

    def dashboard(self, mode: str, reference_date: str | None = None, n: int = 5) -> dict:
        return analytics_service.dashboard(
            items=self.catalog.list(),
            sales=self.ledger.list(),
            mode=mode,
            reference_date=reference_date or today_iso(self.clock),
            n=n,
        )
