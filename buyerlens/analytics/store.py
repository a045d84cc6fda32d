from __future__ import annotations

from typing import Iterable, Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from buyerlens.analytics.aggregation import DateWindow
from buyerlens.analytics.errors import ComputationFault
from buyerlens.analytics.records import ProductRecord, SaleOrderRecord, SupplierRecord
from buyerlens.db.models import Product, SaleOrder, Supplier


class RecordStore(Protocol):
    def products(self) -> list[ProductRecord]: ...

    def suppliers(self) -> list[SupplierRecord]: ...

    def sale_orders(self, window: DateWindow | None = None) -> list[SaleOrderRecord]: ...


class InMemoryRecordStore:
    """Record store over plain collections."""

    def __init__(
        self,
        products: Iterable[ProductRecord] = (),
        sale_orders: Iterable[SaleOrderRecord] = (),
        suppliers: Iterable[SupplierRecord] = (),
    ):
        self._products = list(products)
        self._sale_orders = list(sale_orders)
        self._suppliers = list(suppliers)

    def products(self) -> list[ProductRecord]:
        return list(self._products)

    def suppliers(self) -> list[SupplierRecord]:
        return list(self._suppliers)

    def sale_orders(self, window: DateWindow | None = None) -> list[SaleOrderRecord]:
        if window is None:
            return list(self._sale_orders)
        return [o for o in self._sale_orders if window.contains(o.order_date)]


class SqlRecordStore:
    """Record store reading the ORM tables through a SQLAlchemy session.

    Database errors surface as ComputationFault; nothing is retried here.
    """

    def __init__(self, db: Session):
        self.db = db

    def _fetch(self, stmt, record_type):
        try:
            rows = self.db.execute(stmt).scalars().all()
        except SQLAlchemyError as e:
            raise ComputationFault(f"record store read failed: {e}") from e
        return [record_type.model_validate(r) for r in rows]

    def products(self) -> list[ProductRecord]:
        return self._fetch(select(Product).order_by(Product.id), ProductRecord)

    def suppliers(self) -> list[SupplierRecord]:
        return self._fetch(select(Supplier).order_by(Supplier.id), SupplierRecord)

    def sale_orders(self, window: DateWindow | None = None) -> list[SaleOrderRecord]:
        stmt = select(SaleOrder).order_by(SaleOrder.id)
        if window is not None:
            if window.start is not None:
                stmt = stmt.where(SaleOrder.order_date >= window.start)
            if window.end is not None:
                stmt = stmt.where(SaleOrder.order_date <= window.end)
        return self._fetch(stmt, SaleOrderRecord)
