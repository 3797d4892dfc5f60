"""
Sale Builder - the in-progress sale being composed.

Drafts reserve no stock: every availability check reads the catalog as it is
right now, and commit re-validates all lines before touching any quantity.
A catalog item appears on at most one draft line; adding it again bumps that
line by one unit.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from decimal import Decimal
from typing import TYPE_CHECKING, Callable

from ..domain import InventoryItem, Sale, SaleLineItem, compute_total
from ..time_utils import today
from ..validation import (
    EmptySaleError,
    InsufficientStockError,
    InvalidQuantityError,
    NotFoundError,
    OutOfStockError,
    parse_int,
    require_text,
)

if TYPE_CHECKING:
    from datetime import date
    from .catalog_service import Catalog
    from .ledger_service import Ledger

logger = logging.getLogger(__name__)


class SaleBuilder:
    def __init__(self, clock: Callable[[], "date"] = today):
        self._clock = clock
        self.date: str = clock().isoformat()
        self.items: list[SaleLineItem] = []
        # Set while an existing sale is loaded for editing
        self.editing_id: int | None = None
        # item_id -> quantity handed back to the catalog by begin_edit
        self.restored: dict[int, int] = {}

    @property
    def total(self) -> Decimal:
        return compute_total(self.items)

    @property
    def is_editing(self) -> bool:
        return self.editing_id is not None

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "items": [line.to_dict() for line in self.items],
            "total": str(self.total),
            "editing_sale_id": self.editing_id,
        }

    def _line(self, index) -> SaleLineItem:
        index = parse_int(index, "line_index")
        if index < 0 or index >= len(self.items):
            raise NotFoundError("Sale line not found", details={"line_index": index})
        return self.items[index]

    def _check_stock(self, catalog: "Catalog", item_id: int, wanted: int) -> None:
        available = catalog.available_quantity(item_id)
        if wanted > available:
            raise InsufficientStockError(
                "Insufficient stock",
                details={"item_id": item_id, "on_hand": available, "requested_quantity": wanted},
            )

    def set_date(self, value) -> str:
        self.date = require_text("date", value)
        return self.date

    def add_item(self, item: InventoryItem, catalog: "Catalog") -> SaleLineItem:
        """Add one unit of a catalog item, snapshotting its name and price."""
        if catalog.available_quantity(item.id) <= 0:
            raise OutOfStockError("Item out of stock", details={"item_id": item.id})

        for line in self.items:
            if line.item_id == item.id:
                self._check_stock(catalog, item.id, line.quantity + 1)
                line.quantity += 1
                return line

        line = SaleLineItem.snapshot(item)
        self.items.append(line)
        return line

    def change_line_quantity(self, index, delta, catalog: "Catalog") -> SaleLineItem:
        line = self._line(index)
        delta = parse_int(delta, "delta")
        new_quantity = line.quantity + delta
        if new_quantity < 1:
            raise InvalidQuantityError(
                "Line quantity cannot drop below 1; remove the line instead",
                details={"line_index": index, "quantity": line.quantity, "delta": delta},
            )
        if delta > 0:
            self._check_stock(catalog, line.item_id, new_quantity)
        line.quantity = new_quantity
        return line

    def remove_line(self, index) -> SaleLineItem:
        line = self._line(index)
        self.items.remove(line)
        return line

    def reset(self) -> None:
        self.date = self._clock().isoformat()
        self.items = []
        self.editing_id = None
        self.restored = {}

    def load(self, sale: Sale, restored: dict[int, int]) -> None:
        """Load a committed sale as an editable draft under its own id."""
        self.date = sale.date
        self.items = [replace(line) for line in sale.items]
        self.editing_id = sale.id
        self.restored = dict(restored)

    def commit(self, ledger: "Ledger", catalog: "Catalog") -> Sale:
        """
        Turn the draft into a ledger entry and take its stock out of the catalog.

        All-or-nothing: every line is re-validated against current stock before
        any decrement is applied.
        """
        if not self.items:
            raise EmptySaleError("Add at least one item before completing the sale")

        if self.editing_id is not None and ledger.get(self.editing_id) is None:
            raise NotFoundError("Sale not found", details={"sale_id": self.editing_id})

        needed: dict[int, int] = {}
        for line in self.items:
            needed[line.item_id] = needed.get(line.item_id, 0) + line.quantity

        insufficient = []
        for item_id, qty in needed.items():
            on_hand = catalog.available_quantity(item_id)
            if on_hand < qty:
                insufficient.append({
                    "item_id": item_id,
                    "requested_quantity": qty,
                    "on_hand": on_hand,
                })
        if insufficient:
            raise InsufficientStockError(
                "Insufficient stock to complete sale",
                details={"items": insufficient},
            )

        for item_id, qty in needed.items():
            catalog.adjust_quantity(item_id, -qty)

        sale = Sale(
            id=self.editing_id if self.editing_id is not None else ledger.next_id(),
            date=self.date,
            items=[replace(line) for line in self.items],
        )
        if self.editing_id is not None:
            ledger.replace(sale)
            logger.info("Sale %s updated (total=%s)", sale.id, sale.total)
        else:
            ledger.append(sale)
            logger.info("Sale %s recorded (total=%s)", sale.id, sale.total)

        self.reset()
        return sale
