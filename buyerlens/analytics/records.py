"""
Record shapes flowing in and out of the aggregation engine.

Input records mirror the three entity tables and can be built straight from
ORM rows (``model_validate(row)``). Report records are flat and JSON-ready,
with currency and percentage fields already rounded to 2 decimals.
"""
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict

NOT_APPLICABLE = "N/A"


class _Record(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)


class ProductRecord(_Record):
    product_id: str
    name: str
    category: str | None = None
    material: str | None = None
    description: str | None = None
    cost_price: float | None = None
    selling_price: float | None = None
    supplier_id: str | None = None
    current_stock: int = 0
    last_sold_date: datetime | None = None


class SaleOrderRecord(_Record):
    order_id: str
    product_id: str
    quantity: int
    price: float
    order_date: datetime
    return_status: bool = False
    discount_applied: float = 0.0
    customer_id: str | None = None


class SupplierRecord(_Record):
    supplier_id: str
    name: str
    lead_time_days: int | None = None
    quality_rating: float | None = None


class CategorySnapshot(_Record):
    category: str | None
    total_sales: float
    total_profit: float
    total_items_sold: int
    total_returns: int
    return_rate_percentage: float
    gross_profit_margin_percentage: float


class UnderperformingProduct(_Record):
    product_id: str
    name: str
    category: str | None
    current_stock: int
    last_sale_date: datetime | None
    sales_in_window: int
    last_sold_days_ago: int | Literal["N/A"]
    potential_loss_value: float


class SupplierScorecard(_Record):
    supplier_id: str
    supplier_name: str
    total_sales: float
    total_profit: float
    avg_profit_margin: float
    avg_return_rate: float
    total_items_sold: int
    total_returns: int
    average_quality_rating: float | None
