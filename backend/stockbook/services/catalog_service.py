# Overview: Service-layer operations for the catalog; owns inventory items and their stock levels.

from __future__ import annotations

import logging
from typing import Iterable, Mapping

from ..domain import InventoryItem, PLACEHOLDER_PHOTO
from ..validation import (
    InsufficientStockError,
    NotFoundError,
    ValidationError,
    parse_int,
    parse_optional_id,
    parse_price,
    parse_quantity,
    require_text,
)

logger = logging.getLogger(__name__)

ITEM_FIELDS = {"id", "name", "category", "price", "quantity", "photo_ref"}


class Catalog:
    """
    Mapping of item id -> InventoryItem, kept in insertion order.

    Single-writer: ids are allocated as max(existing) + 1, which is only safe
    with exactly one active mutator.
    """

    def __init__(self, items: Iterable[InventoryItem] = ()):
        self._items: dict[int, InventoryItem] = {}
        for item in items:
            if item.id in self._items:
                raise ValidationError(f"Duplicate item id {item.id}", details={"id": item.id})
            if item.quantity < 0:
                raise ValidationError(f"Item {item.id} has negative stock", details={"id": item.id})
            self._items[item.id] = item

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id) -> bool:
        return item_id in self._items

    def list(self) -> list[InventoryItem]:
        return list(self._items.values())

    def get(self, item_id: int) -> InventoryItem | None:
        return self._items.get(item_id)

    def require(self, item_id: int) -> InventoryItem:
        item = self._items.get(item_id)
        if item is None:
            raise NotFoundError("Item not found", details={"item_id": item_id})
        return item

    def next_id(self) -> int:
        return max(self._items) + 1 if self._items else 1

    def search(self, term: str | None) -> list[InventoryItem]:
        """Case-insensitive substring match on name or category."""
        needle = (term or "").strip().lower()
        if not needle:
            return self.list()
        return [
            item for item in self._items.values()
            if needle in item.name.lower() or needle in item.category.lower()
        ]

    def add_or_update(self, draft: Mapping) -> InventoryItem:
        """
        Create or fully replace an item from form input.

        - no id: new item under max(ids) + 1 (1 for an empty catalog)
        - known id: content replaced, id and catalog position kept
        - unknown id: new item created under that id

        Raises:
            ValidationError: empty name/category, bad price or quantity
        """
        unknown = set(draft) - ITEM_FIELDS
        if unknown:
            raise ValidationError(
                f"Unknown field(s): {', '.join(sorted(unknown))}",
                details={"fields": sorted(unknown)},
            )

        item_id = parse_optional_id(draft.get("id"))
        name = require_text("name", draft.get("name"))
        category = require_text("category", draft.get("category"))
        price = parse_price(draft.get("price"))
        quantity = parse_quantity(draft.get("quantity"))
        photo_ref = str(draft.get("photo_ref") or "").strip() or PLACEHOLDER_PHOTO

        if item_id is None:
            item_id = self.next_id()

        item = InventoryItem(
            id=item_id,
            name=name,
            category=category,
            price=price,
            quantity=quantity,
            photo_ref=photo_ref,
        )
        created = item_id not in self._items
        self._items[item_id] = item
        logger.info("Item %s %s (%s, qty=%s)", item_id, "created" if created else "updated", name, quantity)
        return item

    def delete(self, item_id: int) -> bool:
        """Remove an item; past sales keep their own snapshots. No-op when absent."""
        removed = self._items.pop(item_id, None)
        if removed is not None:
            logger.info("Item %s deleted", item_id)
        return removed is not None

    def available_quantity(self, item_id: int) -> int:
        item = self._items.get(item_id)
        return item.quantity if item is not None else 0

    def adjust_quantity(self, item_id: int, delta) -> InventoryItem:
        """Apply quantity += delta, refusing to go below zero."""
        delta = parse_int(delta, "delta")
        item = self.require(item_id)
        new_quantity = item.quantity + delta
        if new_quantity < 0:
            raise InsufficientStockError(
                "Insufficient stock",
                details={
                    "item_id": item_id,
                    "on_hand": item.quantity,
                    "requested_quantity": -delta,
                },
            )
        item.quantity = new_quantity
        return item
