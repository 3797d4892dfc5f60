from __future__ import annotations

from ..extensions import db
from ..domain import InventoryItem, PLACEHOLDER_PHOTO


class InventoryItemRecord(db.Model):
    """
    Persisted inventory item.

    The catalog in memory is authoritative; this table is rewritten as a whole
    by SqlStore.save and read back by SqlStore.load.
    """
    __tablename__ = "inventory_items"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_inventory_items_quantity_nonneg"),
        db.CheckConstraint("price >= 0", name="ck_inventory_items_price_nonneg"),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    # Insertion order of the catalog
    position = db.Column(db.Integer, nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(120), nullable=False)
    price = db.Column(db.Numeric(12, 2, asdecimal=True), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    photo_ref = db.Column(db.Text, nullable=True)

    def __repr__(self) -> str:
        return f"<InventoryItemRecord id={self.id} name={self.name!r} quantity={self.quantity}>"

    @classmethod
    def from_item(cls, item: InventoryItem, position: int) -> "InventoryItemRecord":
        return cls(
            id=item.id,
            position=position,
            name=item.name,
            category=item.category,
            price=item.price,
            quantity=item.quantity,
            photo_ref=item.photo_ref,
        )

    def to_item(self) -> InventoryItem:
        return InventoryItem(
            id=self.id,
            name=self.name,
            category=self.category,
            price=self.price,
            quantity=self.quantity,
            photo_ref=self.photo_ref or PLACEHOLDER_PHOTO,
        )
