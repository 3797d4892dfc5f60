# Overview: Reporting views derived from the catalog and the ledger; pure functions, recomputed on demand.

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from ..domain import InventoryItem, Sale
from ..time_utils import parse_calendar_date
from ..validation import ValidationError, parse_int

logger = logging.getLogger(__name__)

MODES = ("daily", "monthly", "yearly")
NO_DATA_LABEL = "no data"


@dataclass(frozen=True)
class PeriodSummary:
    count: int
    total_revenue: Decimal
    total_units: int

    def to_dict(self) -> dict:
        return {
            "count": self.count,
            "total_revenue": str(self.total_revenue),
            "total_units": self.total_units,
        }


def _check_mode(mode: str) -> str:
    if mode not in MODES:
        raise ValidationError("mode must be daily, monthly, or yearly", details={"mode": mode})
    return mode


def _check_limit(n) -> int:
    n = parse_int(n, "n")
    if n < 0:
        raise ValidationError("n cannot be negative", details={"n": n})
    return n


def filter_by_period(sales: Iterable[Sale], mode: str, reference_date: str) -> list[Sale]:
    """
    Sales falling in the same day/month/year as reference_date.

    daily compares the literal date text, so a free-text date still matches
    itself. monthly and yearly compare parsed calendar dates; sales whose
    date does not parse are logged and left out.
    """
    _check_mode(mode)
    if mode == "daily":
        return [sale for sale in sales if sale.date == reference_date]

    ref = parse_calendar_date(reference_date)
    if ref is None:
        raise ValidationError("reference date must be YYYY-MM-DD", details={"date": reference_date})

    result = []
    for sale in sales:
        sale_date = parse_calendar_date(sale.date)
        if sale_date is None:
            logger.warning("Sale %s has unparseable date %r; excluded from %s view", sale.id, sale.date, mode)
            continue
        if sale_date.year != ref.year:
            continue
        if mode == "monthly" and sale_date.month != ref.month:
            continue
        result.append(sale)
    return result


def _bucket_key(sale: Sale, mode: str) -> str | None:
    if mode == "daily":
        return sale.date
    sale_date = parse_calendar_date(sale.date)
    if sale_date is None:
        return None
    if mode == "monthly":
        return f"{sale_date.year:04d}-{sale_date.month:02d}"
    return f"{sale_date.year:04d}"


def revenue_series(sales: Iterable[Sale], mode: str) -> list[tuple[str, Decimal]]:
    """
    Sum of sale totals per day ("YYYY-MM-DD" as entered), month ("YYYY-MM")
    or year ("YYYY"), ordered by bucket key.

    Never empty: without data the series is the single ("no data", 0) bucket
    so a chart always has something to draw.
    """
    _check_mode(mode)
    buckets: dict[str, Decimal] = {}
    for sale in sales:
        key = _bucket_key(sale, mode)
        if key is None:
            logger.warning("Sale %s has unparseable date %r; left out of %s series", sale.id, sale.date, mode)
            continue
        buckets[key] = buckets.get(key, Decimal("0")) + sale.total

    if not buckets:
        return [(NO_DATA_LABEL, Decimal("0"))]
    return sorted(buckets.items())


def top_products(sales: Iterable[Sale], n: int = 5) -> list[tuple[str, int]]:
    """Product names by units sold, descending; ties keep first-seen order."""
    n = _check_limit(n)
    units: dict[str, int] = {}
    for sale in sales:
        for line in sale.items:
            units[line.name] = units.get(line.name, 0) + line.quantity
    # sorted() is stable, so equal counts stay in first-encountered order
    return sorted(units.items(), key=lambda pair: pair[1], reverse=True)[:n]


def top_stock_items(items: Iterable[InventoryItem], n: int = 5) -> list[tuple[InventoryItem, int]]:
    """Items by current quantity, descending; ties keep catalog order."""
    n = _check_limit(n)
    ranked = sorted(items, key=lambda item: item.quantity, reverse=True)
    return [(item, item.quantity) for item in ranked[:n]]


def period_summary(sales: Iterable[Sale]) -> PeriodSummary:
    count = 0
    revenue = Decimal("0")
    units = 0
    for sale in sales:
        count += 1
        revenue += sale.total
        units += sale.units
    return PeriodSummary(count=count, total_revenue=revenue, total_units=units)


def dashboard(
    *,
    items: Iterable[InventoryItem],
    sales: Iterable[Sale],
    mode: str,
    reference_date: str,
    n: int = 5,
) -> dict:
    """
    Everything the dashboard screen shows: the period's revenue series and
    summary, plus all-time top products and the best-stocked items.
    """
    sales = list(sales)
    in_period = filter_by_period(sales, mode, reference_date)
    summary = period_summary(in_period)
    return {
        "mode": mode,
        "date": reference_date,
        "summary": summary.to_dict(),
        "revenue_series": [
            {"bucket": key, "revenue": str(value)}
            for key, value in revenue_series(in_period, mode)
        ],
        "top_products": [
            {"name": name, "quantity": qty}
            for name, qty in top_products(sales, n)
        ],
        "top_stock_items": [
            {"item": item.to_dict(), "quantity": qty}
            for item, qty in top_stock_items(items, n)
        ],
    }
