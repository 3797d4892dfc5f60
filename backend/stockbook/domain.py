"""
Stockbook Domain Values (authoritative)

In-memory shapes shared by the catalog, the sale builder, the ledger and the
analytics functions. Persistence rows live in stockbook.models and are
converted to and from these values by the stores.

Invariants:
- InventoryItem.quantity >= 0 at all times.
- SaleLineItem.name/price are value copies taken when the line was added;
  later catalog edits never reach them.
- Sale.total == sum(line.price * line.quantity), always derived, never set.
- Sale.date is kept exactly as entered (free text is allowed).
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any

from .validation import parse_price, quantize_money

PLACEHOLDER_PHOTO = "https://placehold.co/150x150/?text=Item+Photo"


@dataclass
class InventoryItem:
    id: int
    name: str
    category: str
    price: Decimal
    quantity: int
    photo_ref: str = PLACEHOLDER_PHOTO

    def copy(self) -> "InventoryItem":
        return replace(self)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "price": str(self.price),
            "quantity": self.quantity,
            "photo_ref": self.photo_ref,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "InventoryItem":
        return cls(
            id=int(data["id"]),
            name=data["name"],
            category=data["category"],
            price=parse_price(data["price"]),
            quantity=int(data["quantity"]),
            photo_ref=data.get("photo_ref") or PLACEHOLDER_PHOTO,
        )


@dataclass
class SaleLineItem:
    """One product-quantity entry within a sale; a snapshot, not a reference."""
    item_id: int
    name: str
    price: Decimal
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return quantize_money(self.price * self.quantity)

    @classmethod
    def snapshot(cls, item: InventoryItem, quantity: int = 1) -> "SaleLineItem":
        return cls(item_id=item.id, name=item.name, price=item.price, quantity=quantity)

    def to_dict(self) -> dict:
        return {
            "item_id": self.item_id,
            "name": self.name,
            "price": str(self.price),
            "quantity": self.quantity,
            "line_total": str(self.line_total),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SaleLineItem":
        return cls(
            item_id=int(data["item_id"]),
            name=data["name"],
            price=parse_price(data["price"]),
            quantity=int(data["quantity"]),
        )


def compute_total(lines) -> Decimal:
    return quantize_money(sum((line.price * line.quantity for line in lines), Decimal("0")))


@dataclass
class Sale:
    id: int
    date: str
    items: list[SaleLineItem] = field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return compute_total(self.items)

    @property
    def units(self) -> int:
        return sum(line.quantity for line in self.items)

    def copy(self) -> "Sale":
        return Sale(id=self.id, date=self.date, items=[replace(line) for line in self.items])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date,
            "items": [line.to_dict() for line in self.items],
            "total": str(self.total),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Sale":
        return cls(
            id=int(data["id"]),
            date=str(data["date"]),
            items=[SaleLineItem.from_dict(line) for line in data.get("items", [])],
        )
