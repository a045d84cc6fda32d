"""
The four buyer reports.

Every builder is a pure read over a ``RecordStore`` snapshot. Reference dates
are always passed in by the caller, so two runs over the same data give the
same output.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Protocol

from buyerlens.analytics.aggregation import (
    DateWindow,
    grouped_metrics,
    join_sales,
    money,
)
from buyerlens.analytics.errors import InputValidationError
from buyerlens.analytics.records import (
    NOT_APPLICABLE,
    CategorySnapshot,
    ProductRecord,
    SupplierScorecard,
    UnderperformingProduct,
)
from buyerlens.analytics.store import RecordStore

logger = logging.getLogger(__name__)


def _sort_text(value: str | None) -> str:
    return "" if value is None else value


def sales_profit_snapshot(store: RecordStore, window: DateWindow | None = None) -> list[CategorySnapshot]:
    """Sales, profit and return metrics per product category."""
    lines = join_sales(store.sale_orders(window), store.products())
    groups = grouped_metrics(lines, key=lambda line: line.product.category)

    report = [
        CategorySnapshot(
            category=category,
            total_sales=money(t.revenue),
            total_profit=money(t.profit),
            total_items_sold=t.items_sold,
            total_returns=t.returns,
            return_rate_percentage=money(t.return_rate),
            gross_profit_margin_percentage=money(t.profit_margin),
        )
        for category, t in groups.items()
    ]
    report.sort(key=lambda r: (-r.total_sales, _sort_text(r.category)))
    logger.info("sales snapshot: %d categories", len(report))
    return report


def underperforming_products(
    store: RecordStore,
    reference_date: datetime,
    lookback_days: int = 90,
    sales_threshold: int = 50,
    limit: int = 10,
) -> list[UnderperformingProduct]:
    """Stocked products that sold fewer than ``sales_threshold`` units in the window.

    Ranked by capital tied up in stock (current_stock * cost_price). Products
    that never sold qualify too; they are dead stock.
    """
    if limit < 1:
        raise InputValidationError("limit must be >= 1")
    window = DateWindow.lookback(reference_date, lookback_days)

    sold_in_window: dict[str, int] = {}
    last_sale: dict[str, datetime] = {}
    for order in store.sale_orders():
        pid = order.product_id
        if window.contains(order.order_date):
            sold_in_window[pid] = sold_in_window.get(pid, 0) + order.quantity
        if pid not in last_sale or order.order_date > last_sale[pid]:
            last_sale[pid] = order.order_date

    candidates = []
    for product in store.products():
        if product.current_stock <= 0:
            continue
        units = sold_in_window.get(product.product_id, 0)
        if units >= sales_threshold:
            continue
        last = last_sale.get(product.product_id)
        loss = product.current_stock * (product.cost_price or 0.0)
        candidates.append((loss, product, units, last))

    candidates.sort(key=lambda c: (-c[0], c[1].product_id))

    report = [
        UnderperformingProduct(
            product_id=product.product_id,
            name=product.name,
            category=product.category,
            current_stock=product.current_stock,
            last_sale_date=last,
            sales_in_window=units,
            last_sold_days_ago=(reference_date - last).days if last is not None else NOT_APPLICABLE,
            potential_loss_value=money(loss),
        )
        for loss, product, units, last in candidates[:limit]
    ]
    logger.info("underperformers: %d of %d candidates", len(report), len(candidates))
    return report


def supplier_performance(store: RecordStore, window: DateWindow | None = None) -> list[SupplierScorecard]:
    """Sales, margin and return metrics per supplier with at least one attributable sale."""
    suppliers = store.suppliers()
    lines = join_sales(store.sale_orders(window), store.products(), suppliers)
    groups = grouped_metrics(
        lines,
        key=lambda line: line.supplier.supplier_id,
        where=lambda line: line.supplier is not None,
    )

    names = {s.supplier_id: s.name for s in suppliers}
    report = []
    for supplier_id, t in groups.items():
        rating = t.average_quality_rating
        report.append(SupplierScorecard(
            supplier_id=supplier_id,
            supplier_name=names[supplier_id],
            total_sales=money(t.revenue),
            total_profit=money(t.profit),
            avg_profit_margin=money(t.profit_margin),
            avg_return_rate=money(t.return_rate),
            total_items_sold=t.items_sold,
            total_returns=t.returns,
            average_quality_rating=money(rating) if rating is not None else None,
        ))
    report.sort(key=lambda r: (-r.total_sales, r.supplier_id))
    logger.info("supplier scorecard: %d suppliers", len(report))
    return report


class TrendMatcher(Protocol):
    def matches(self, keyword: str, product: ProductRecord) -> bool: ...


class SubstringMatcher:
    """Case-insensitive literal substring match on name, description, category and material."""

    fields = ("name", "description", "category", "material")

    def matches(self, keyword: str, product: ProductRecord) -> bool:
        # plain substring test, so "S/M" or "100%" match literally
        needle = keyword.casefold()
        for field in self.fields:
            value = getattr(product, field)
            if value and needle in value.casefold():
                return True
        return False


def trend_products(
    store: RecordStore,
    keyword: str,
    limit: int = 20,
    matcher: TrendMatcher | None = None,
) -> list[ProductRecord]:
    """First ``limit`` catalog products matching ``keyword``, in store order."""
    if keyword is None or not keyword.strip():
        raise InputValidationError("keyword is required")
    if limit < 1:
        raise InputValidationError("limit must be >= 1")
    matcher = matcher or SubstringMatcher()

    found = []
    for product in store.products():
        if matcher.matches(keyword, product):
            found.append(product)
            if len(found) >= limit:
                break
    logger.info("trend search %r: %d products", keyword, len(found))
    return found
