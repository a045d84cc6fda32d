from datetime import datetime

import pytest
from sqlalchemy.exc import OperationalError

from buyerlens.analytics import (
    ComputationFault,
    DateWindow,
    SqlRecordStore,
    sales_profit_snapshot,
    supplier_performance,
    trend_products,
    underperforming_products,
)

from conftest import REFERENCE_DATE


class TestSqlRecordStore:

    def test_reads_records(self, seeded_db):
        store = SqlRecordStore(seeded_db)
        assert [p.product_id for p in store.products()] == ["P1", "P2", "P3", "P4", "P5"]
        assert [s.supplier_id for s in store.suppliers()] == ["SUP1", "SUP2", "SUP3"]
        assert len(store.sale_orders()) == 6

    def test_window_pushdown(self, seeded_db):
        store = SqlRecordStore(seeded_db)
        window = DateWindow(datetime(2019, 12, 1), datetime(2019, 12, 15))
        assert [o.order_id for o in store.sale_orders(window)] == ["O1", "O2", "O5"]

    def test_reports_match_in_memory(self, seeded_db, store):
        sql = SqlRecordStore(seeded_db)
        assert sales_profit_snapshot(sql) == sales_profit_snapshot(store)
        assert supplier_performance(sql) == supplier_performance(store)
        assert underperforming_products(sql, REFERENCE_DATE) == underperforming_products(store, REFERENCE_DATE)
        assert trend_products(sql, "boho") == trend_products(store, "boho")

    def test_empty_tables_give_empty_reports(self, db):
        store = SqlRecordStore(db)
        assert sales_profit_snapshot(store) == []
        assert supplier_performance(store) == []
        assert underperforming_products(store, REFERENCE_DATE) == []

    def test_database_error_is_computation_fault(self, db, monkeypatch):
        def broken(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("database is down"))

        monkeypatch.setattr(db, "execute", broken)
        with pytest.raises(ComputationFault) as excinfo:
            sales_profit_snapshot(SqlRecordStore(db))
        assert isinstance(excinfo.value.__cause__, OperationalError)
