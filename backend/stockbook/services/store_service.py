# Overview: Store collaborators; whole-collection load/save of the catalog and the ledger.

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError

from ..domain import InventoryItem, Sale
from ..extensions import db
from ..models import InventoryItemRecord, SaleLineRecord, SaleRecord
from ..validation import StorageError
from .concurrency import commit_with_retry

logger = logging.getLogger(__name__)

INVENTORY_KEY = "inventory"
SALES_KEY = "sales"

# The sqlite3 driver raises OverflowError and friends for values it cannot
# bind; SQLAlchemy passes those through unwrapped.
DRIVER_ERRORS = (SQLAlchemyError, OverflowError, ValueError, TypeError)


# ══════════════════════════════════════════════════════════════
# PROTOCOL
# ══════════════════════════════════════════════════════════════

class Store(Protocol):
    """
    Whole-collection persistence: load returns everything, save overwrites
    everything. Both raise StorageError; load returns empty collections when
    nothing was saved yet.
    """

    def load(self) -> tuple[list[InventoryItem], list[Sale]]:
        ...

    def save(self, items: list[InventoryItem], sales: list[Sale]) -> None:
        ...


# ══════════════════════════════════════════════════════════════
# IMPLEMENTATIONS
# ══════════════════════════════════════════════════════════════

class MemoryStore:
    """In-process store; keeps private copies so callers cannot mutate it."""

    def __init__(self, items: list[InventoryItem] | None = None, sales: list[Sale] | None = None):
        self._items = [item.copy() for item in items or []]
        self._sales = [sale.copy() for sale in sales or []]
        self.save_count = 0

    def load(self) -> tuple[list[InventoryItem], list[Sale]]:
        return [item.copy() for item in self._items], [sale.copy() for sale in self._sales]

    def save(self, items: list[InventoryItem], sales: list[Sale]) -> None:
        self._items = [item.copy() for item in items]
        self._sales = [sale.copy() for sale in sales]
        self.save_count += 1


class JsonFileStore:
    """
    Key-value blob layout: one JSON document holding the inventory list and
    the sales list under their own keys.
    """

    def __init__(self, path: str | os.PathLike):
        self.path = Path(path)

    def load(self) -> tuple[list[InventoryItem], list[Sale]]:
        if not self.path.exists():
            return [], []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
            items = [InventoryItem.from_dict(row) for row in data.get(INVENTORY_KEY) or []]
            sales = [Sale.from_dict(row) for row in data.get(SALES_KEY) or []]
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.exception("Failed to load %s", self.path)
            raise StorageError("Failed to load data", details={"path": str(self.path)}) from exc
        return items, sales

    def save(self, items: list[InventoryItem], sales: list[Sale]) -> None:
        payload = {
            INVENTORY_KEY: [item.to_dict() for item in items],
            SALES_KEY: [sale.to_dict() for sale in sales],
        }
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, indent=2)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            logger.exception("Failed to save %s", self.path)
            raise StorageError("Failed to save data", details={"path": str(self.path)}) from exc


class SqlStore:
    """
    Relational layout through Flask-SQLAlchemy: items, sale headers and one
    row per sold line. Requires an application context.
    """

    def load(self) -> tuple[list[InventoryItem], list[Sale]]:
        try:
            item_rows = db.session.query(InventoryItemRecord).order_by(
                InventoryItemRecord.position.asc(), InventoryItemRecord.id.asc()
            ).all()
            sale_rows = db.session.query(SaleRecord).order_by(
                SaleRecord.position.asc(), SaleRecord.id.asc()
            ).all()
            items = [row.to_item() for row in item_rows]
            sales = [row.to_sale() for row in sale_rows]
        except DRIVER_ERRORS as exc:
            db.session.rollback()
            logger.exception("Failed to load from database")
            raise StorageError(
                "Failed to load data; has the database been initialized (flask system init-db)?"
            ) from exc
        return items, sales

    def save(self, items: list[InventoryItem], sales: list[Sale]) -> None:
        def _replace_all():
            db.session.query(SaleLineRecord).delete()
            db.session.query(SaleRecord).delete()
            db.session.query(InventoryItemRecord).delete()
            db.session.flush()
            db.session.add_all(
                InventoryItemRecord.from_item(item, position) for position, item in enumerate(items)
            )
            db.session.add_all(
                SaleRecord.from_sale(sale, position) for position, sale in enumerate(sales)
            )

        try:
            commit_with_retry(_replace_all)
        except DRIVER_ERRORS as exc:
            db.session.rollback()
            logger.exception("Failed to save to database")
            raise StorageError("Failed to save data") from exc


def build_store(config) -> Store:
    """Pick the store backend named by STOCKBOOK_STORE."""
    backend = (config.get("STOCKBOOK_STORE") or "sql").lower()
    if backend == "sql":
        return SqlStore()
    if backend == "json":
        return JsonFileStore(config.get("STOCKBOOK_JSON_PATH") or "stockbook.json")
    if backend == "memory":
        return MemoryStore()
    raise ValueError(f"Unknown STOCKBOOK_STORE {backend!r}; expected sql, json or memory")
