# Overview: Service-layer operations for the sale ledger; committed sales history and the edit/delete flows.

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING, Iterable

from ..domain import Sale
from ..time_utils import parse_calendar_date
from ..validation import NotFoundError, ValidationError

if TYPE_CHECKING:
    from .catalog_service import Catalog
    from .draft_service import SaleBuilder

"""
Stockbook Ledger Invariants (authoritative)

- Sales are kept in insertion order; nothing here sorts them.
- A sale's id never changes; an edit replaces its lines and date under the same id.
- Editing never double-counts stock: begin_edit hands the sale's quantities back
  to the catalog, and the draft's commit takes them out again atomically.
- cancel_edit re-applies exactly what begin_edit handed back, so the catalog
  returns to its pre-edit state and the ledger entry is untouched.
- A failed commit of an edit leaves the original entry in place.
- delete restores stock symmetrically with begin_edit, then drops the sale.
"""

logger = logging.getLogger(__name__)


class Ledger:
    def __init__(self, sales: Iterable[Sale] = ()):
        self._sales: list[Sale] = []
        for sale in sales:
            if self.get(sale.id) is not None:
                raise ValidationError(f"Duplicate sale id {sale.id}", details={"sale_id": sale.id})
            self._sales.append(sale)

    def __len__(self) -> int:
        return len(self._sales)

    def list(self) -> list[Sale]:
        return list(self._sales)

    def get(self, sale_id: int) -> Sale | None:
        for sale in self._sales:
            if sale.id == sale_id:
                return sale
        return None

    def require(self, sale_id: int) -> Sale:
        sale = self.get(sale_id)
        if sale is None:
            raise NotFoundError("Sale not found", details={"sale_id": sale_id})
        return sale

    def next_id(self) -> int:
        return max(sale.id for sale in self._sales) + 1 if self._sales else 1

    def append(self, sale: Sale) -> None:
        if self.get(sale.id) is not None:
            raise ValidationError(f"Duplicate sale id {sale.id}", details={"sale_id": sale.id})
        self._sales.append(sale)

    def replace(self, sale: Sale) -> None:
        for i, existing in enumerate(self._sales):
            if existing.id == sale.id:
                self._sales[i] = sale
                return
        raise NotFoundError("Sale not found", details={"sale_id": sale.id})

    def between(self, start: date | None = None, end: date | None = None) -> list[Sale]:
        """Sales dated within [start, end]; either bound may be open."""
        result = []
        for sale in self._sales:
            if start is None and end is None:
                result.append(sale)
                continue
            sale_date = parse_calendar_date(sale.date)
            if sale_date is None:
                logger.warning("Sale %s has unparseable date %r; excluded from range", sale.id, sale.date)
                continue
            if start is not None and sale_date < start:
                continue
            if end is not None and sale_date > end:
                continue
            result.append(sale)
        return result

    def _restore_stock(self, sale: Sale, catalog: "Catalog") -> dict[int, int]:
        restored: dict[int, int] = {}
        for line in sale.items:
            if line.item_id not in catalog:
                logger.warning(
                    "Sale %s line %r refers to deleted item %s; stock not restored",
                    sale.id, line.name, line.item_id,
                )
                continue
            catalog.adjust_quantity(line.item_id, line.quantity)
            restored[line.item_id] = restored.get(line.item_id, 0) + line.quantity
        return restored

    def begin_edit(self, sale_id: int, catalog: "Catalog", builder: "SaleBuilder") -> "SaleBuilder":
        """
        Hand the sale's stock back to the catalog and load it into the builder.

        Any unsaved new-sale draft in the builder is replaced.
        """
        if builder.is_editing:
            raise ValidationError(
                "Another sale is already being edited",
                details={"editing_sale_id": builder.editing_id},
            )
        sale = self.require(sale_id)
        if builder.items:
            logger.info("Discarding unsaved draft (%d lines) to edit sale %s", len(builder.items), sale_id)
        restored = self._restore_stock(sale, catalog)
        builder.load(sale, restored)
        logger.info("Sale %s opened for editing", sale_id)
        return builder

    def commit_edit(self, builder: "SaleBuilder", catalog: "Catalog") -> Sale:
        if not builder.is_editing:
            raise ValidationError("No sale is being edited")
        return builder.commit(self, catalog)

    def cancel_edit(self, builder: "SaleBuilder", catalog: "Catalog") -> Sale:
        """Roll back to the pre-edit world: re-take restored stock, drop the draft."""
        if not builder.is_editing:
            raise ValidationError("No sale is being edited")
        sale = self.require(builder.editing_id)

        for item_id, qty in builder.restored.items():
            if item_id not in catalog:
                # Deleted while the edit was open; nothing left to take back.
                logger.warning("Item %s deleted during edit of sale %s", item_id, sale.id)
                continue
            item = catalog.require(item_id)
            # Stock may have been lowered by hand during the edit
            if item.quantity < qty:
                logger.warning(
                    "Item %s has %s on hand, %s expected back from sale %s; clamping to zero",
                    item_id, item.quantity, qty, sale.id,
                )
            catalog.adjust_quantity(item_id, -min(qty, item.quantity))

        builder.reset()
        logger.info("Edit of sale %s cancelled", sale.id)
        return sale

    def delete(self, sale_id: int, catalog: "Catalog", builder: "SaleBuilder | None" = None) -> Sale:
        """Restore the sale's stock, then drop it from the ledger."""
        sale = self.require(sale_id)
        if builder is not None and builder.editing_id == sale_id:
            raise ValidationError(
                "Sale is being edited; cancel the edit first",
                details={"sale_id": sale_id},
            )
        self._restore_stock(sale, catalog)
        self._sales.remove(sale)
        logger.info("Sale %s deleted (total=%s)", sale_id, sale.total)
        return sale
