"""
Join, grouping and derived-metric helpers shared by the revenue reports.

The snapshot and the supplier scorecard differ only in their group key and
in which joined lines they keep, so both run through ``grouped_metrics``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Hashable, Iterable, Iterator, NamedTuple

from buyerlens.analytics.errors import InputValidationError
from buyerlens.analytics.records import ProductRecord, SaleOrderRecord, SupplierRecord

logger = logging.getLogger(__name__)


def money(value: float) -> float:
    return round(value, 2)


def ratio_pct(numerator: float, denominator: float) -> float:
    """numerator / denominator * 100, or 0 when the denominator is 0."""
    if denominator == 0:
        return 0.0
    return numerator / denominator * 100.0


@dataclass(frozen=True)
class DateWindow:
    """Inclusive ``[start, end]`` range on order dates. A missing bound is open."""

    start: datetime | None = None
    end: datetime | None = None

    def __post_init__(self):
        if self.start is not None and self.end is not None and self.start > self.end:
            raise InputValidationError(f"window start {self.start} is after end {self.end}")

    @classmethod
    def lookback(cls, reference: datetime, days: int) -> "DateWindow":
        if days < 0:
            raise InputValidationError("lookback_days must be >= 0")
        return cls(start=reference - timedelta(days=days), end=reference)

    def contains(self, ts: datetime) -> bool:
        if self.start is not None and ts < self.start:
            return False
        if self.end is not None and ts > self.end:
            return False
        return True


def index_by(records: Iterable[Any], attr: str) -> dict[Any, Any]:
    return {getattr(r, attr): r for r in records}


class SaleLine(NamedTuple):
    order: SaleOrderRecord
    product: ProductRecord
    supplier: SupplierRecord | None = None


def join_sales(
    orders: Iterable[SaleOrderRecord],
    products: Iterable[ProductRecord],
    suppliers: Iterable[SupplierRecord] | None = None,
) -> Iterator[SaleLine]:
    """Inner join orders to products; optionally attach each product's supplier.

    Orders whose product is unknown are dropped. When suppliers are given, a
    product whose supplier_id is unmatched yields a line with supplier=None.
    """
    products_by_id = index_by(products, "product_id")
    suppliers_by_id = index_by(suppliers, "supplier_id") if suppliers is not None else {}

    dropped = 0
    for order in orders:
        product = products_by_id.get(order.product_id)
        if product is None:
            dropped += 1
            continue
        supplier = suppliers_by_id.get(product.supplier_id) if product.supplier_id else None
        yield SaleLine(order, product, supplier)

    if dropped:
        logger.debug("join_sales dropped %d orders with unknown product_id", dropped)


@dataclass
class GroupTotals:
    revenue: float = 0.0
    cost_of_goods: float = 0.0
    items_sold: int = 0
    returns: int = 0
    rating_sum: float = 0.0
    rating_count: int = 0

    def add(self, line: SaleLine) -> None:
        order, product, supplier = line
        self.revenue += order.price
        self.cost_of_goods += order.quantity * (product.cost_price or 0.0)
        self.items_sold += order.quantity
        if order.return_status:
            self.returns += order.quantity
        # one observation per joined line, like an average over the fanned-out join
        if supplier is not None and supplier.quality_rating is not None:
            self.rating_sum += supplier.quality_rating
            self.rating_count += 1

    @property
    def profit(self) -> float:
        return self.revenue - self.cost_of_goods

    @property
    def return_rate(self) -> float:
        return ratio_pct(self.returns, self.items_sold)

    @property
    def profit_margin(self) -> float:
        return ratio_pct(self.profit, self.revenue)

    @property
    def average_quality_rating(self) -> float | None:
        if not self.rating_count:
            return None
        return self.rating_sum / self.rating_count


def grouped_metrics(
    lines: Iterable[SaleLine],
    key: Callable[[SaleLine], Hashable],
    where: Callable[[SaleLine], bool] | None = None,
) -> dict[Hashable, GroupTotals]:
    """Single pass over joined lines, keeping running totals per group key."""
    groups: dict[Hashable, GroupTotals] = {}
    for line in lines:
        if where is not None and not where(line):
            continue
        k = key(line)
        totals = groups.get(k)
        if totals is None:
            totals = groups[k] = GroupTotals()
        totals.add(line)
    return groups
