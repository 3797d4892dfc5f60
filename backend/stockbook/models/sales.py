from __future__ import annotations

from ..extensions import db
from ..domain import Sale, SaleLineItem


class SaleRecord(db.Model):
    """
    Persisted sale header.

    date is free text exactly as entered; total is stored for reporting
    convenience but recomputed from the lines on load.
    """
    __tablename__ = "sales"

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    # Insertion order of the ledger
    position = db.Column(db.Integer, nullable=False, index=True)
    date = db.Column(db.String(64), nullable=False, index=True)
    total = db.Column(db.Numeric(14, 2, asdecimal=True), nullable=False)

    lines = db.relationship(
        "SaleLineRecord",
        backref="sale",
        order_by="SaleLineRecord.line_number",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<SaleRecord id={self.id} date={self.date!r} total={self.total}>"

    @classmethod
    def from_sale(cls, sale: Sale, position: int) -> "SaleRecord":
        record = cls(id=sale.id, position=position, date=sale.date, total=sale.total)
        record.lines = [
            SaleLineRecord.from_line(line, line_number)
            for line_number, line in enumerate(sale.items, start=1)
        ]
        return record

    def to_sale(self) -> Sale:
        return Sale(id=self.id, date=self.date, items=[line.to_line() for line in self.lines])


class SaleLineRecord(db.Model):
    """One row per sold line (normalized shape of Sale.items)."""
    __tablename__ = "sale_lines"
    __table_args__ = (
        db.UniqueConstraint("sale_id", "line_number", name="uq_sale_lines_sale_line"),
        db.CheckConstraint("quantity >= 1", name="ck_sale_lines_quantity_positive"),
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    line_number = db.Column(db.Integer, nullable=False)

    # Weak reference: the item may since have been deleted from the catalog
    item_id = db.Column(db.Integer, nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    price = db.Column(db.Numeric(12, 2, asdecimal=True), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)

    @classmethod
    def from_line(cls, line: SaleLineItem, line_number: int) -> "SaleLineRecord":
        return cls(
            line_number=line_number,
            item_id=line.item_id,
            name=line.name,
            price=line.price,
            quantity=line.quantity,
        )

    def to_line(self) -> SaleLineItem:
        return SaleLineItem(item_id=self.item_id, name=self.name, price=self.price, quantity=self.quantity)
