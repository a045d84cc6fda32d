from buyerlens.analytics.aggregation import DateWindow
from buyerlens.analytics.errors import AnalyticsError, ComputationFault, InputValidationError
from buyerlens.analytics.records import (
    NOT_APPLICABLE,
    CategorySnapshot,
    ProductRecord,
    SaleOrderRecord,
    SupplierRecord,
    SupplierScorecard,
    UnderperformingProduct,
)
from buyerlens.analytics.reports import (
    SubstringMatcher,
    TrendMatcher,
    sales_profit_snapshot,
    supplier_performance,
    trend_products,
    underperforming_products,
)
from buyerlens.analytics.store import InMemoryRecordStore, RecordStore, SqlRecordStore

__all__ = [
    "AnalyticsError",
    "CategorySnapshot",
    "ComputationFault",
    "DateWindow",
    "InMemoryRecordStore",
    "InputValidationError",
    "NOT_APPLICABLE",
    "ProductRecord",
    "RecordStore",
    "SaleOrderRecord",
    "SqlRecordStore",
    "SubstringMatcher",
    "SupplierRecord",
    "SupplierScorecard",
    "TrendMatcher",
    "UnderperformingProduct",
    "sales_profit_snapshot",
    "supplier_performance",
    "trend_products",
    "underperforming_products",
]
