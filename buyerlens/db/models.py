from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class Supplier(Base):
    __tablename__ = "suppliers"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    supplier_id: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(200))
    lead_time_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    quality_rating: Mapped[float | None] = mapped_column(Float, nullable=True)


class Product(Base):
    __tablename__ = "products"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    product_id: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(200))
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    material: Mapped[str | None] = mapped_column(String(100), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    cost_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    selling_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    # no FK constraint: dangling supplier references are tolerated and dropped by the scorecard join
    supplier_id: Mapped[str | None] = mapped_column(String(64), index=True, nullable=True)
    current_stock: Mapped[int] = mapped_column(Integer, default=0)
    last_sold_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)


class SaleOrder(Base):
    __tablename__ = "sale_orders"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_id: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    product_id: Mapped[str] = mapped_column(String(64), index=True)
    quantity: Mapped[int] = mapped_column(Integer)
    price: Mapped[float] = mapped_column(Float)
    order_date: Mapped[datetime] = mapped_column(DateTime, index=True)
    return_status: Mapped[bool] = mapped_column(Boolean, default=False)
    discount_applied: Mapped[float] = mapped_column(Float, default=0.0)
    customer_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
