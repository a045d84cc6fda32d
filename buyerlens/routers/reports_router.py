import logging
from datetime import date, datetime, time

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from buyerlens import narration
from buyerlens.analytics import (
    ComputationFault,
    DateWindow,
    InputValidationError,
    SqlRecordStore,
    sales_profit_snapshot,
    supplier_performance,
    trend_products,
    underperforming_products,
)
from buyerlens.config import settings
from buyerlens.db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


def get_narrator() -> narration.Narrator:
    return narration.GeminiNarrator(
        api_key=settings.GEMINI_API_KEY,
        model=settings.GEMINI_MODEL,
        timeout=settings.NARRATION_TIMEOUT,
    )


def end_of_day(d: date) -> datetime:
    return datetime.combine(d, time.max)


def date_window(start: date | None, end: date | None) -> DateWindow | None:
    if start is None and end is None:
        return None
    return DateWindow(
        start=datetime.combine(start, time.min) if start else None,
        end=end_of_day(end) if end else None,
    )


def run_report(name: str, build):
    # empty reports are valid results; only raised faults become error responses
    try:
        return build()
    except InputValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ComputationFault as e:
        logger.exception("%s failed", name)
        raise HTTPException(status_code=500, detail=f"Failed to build {name}: {e}")


@router.get("/sales-snapshot")
def get_sales_snapshot(
    start: date | None = Query(default=None),
    end: date | None = Query(default=None),
    db: Session = Depends(get_db),
    narrator: narration.Narrator = Depends(get_narrator),
):
    store = SqlRecordStore(db)
    rows = run_report("sales snapshot", lambda: sales_profit_snapshot(store, date_window(start, end)))
    return {
        "raw_data": rows,
        "ai_summary": narration.summarize_sales_snapshot(narrator, rows),
    }


@router.get("/underperforming-products")
def get_underperforming_products(
    reference_date: date | None = Query(default=None),
    lookback_days: int = Query(default=settings.UNDERPERFORMER_LOOKBACK_DAYS, ge=0, le=3650),
    sales_threshold: int = Query(default=settings.UNDERPERFORMER_SALES_THRESHOLD, ge=0),
    limit: int = Query(default=settings.UNDERPERFORMER_LIMIT, ge=1, le=200),
    db: Session = Depends(get_db),
    narrator: narration.Narrator = Depends(get_narrator),
):
    store = SqlRecordStore(db)
    reference = end_of_day(reference_date or date.today())
    rows = run_report(
        "underperforming products",
        lambda: underperforming_products(
            store,
            reference_date=reference,
            lookback_days=lookback_days,
            sales_threshold=sales_threshold,
            limit=limit,
        ),
    )
    return {
        "reference_date": reference,
        "raw_data": rows,
        "ai_recommendations": narration.suggest_underperformer_actions(narrator, rows),
    }


@router.get("/supplier-performance")
def get_supplier_performance(
    start: date | None = Query(default=None),
    end: date | None = Query(default=None),
    db: Session = Depends(get_db),
    narrator: narration.Narrator = Depends(get_narrator),
):
    store = SqlRecordStore(db)
    rows = run_report("supplier performance", lambda: supplier_performance(store, date_window(start, end)))
    return {
        "raw_data": rows,
        "ai_analysis": narration.analyze_supplier_performance(narrator, rows),
    }


@router.get("/trend-analysis")
def get_trend_analysis(
    keyword: str = Query(default=""),
    limit: int = Query(default=settings.TREND_SEARCH_LIMIT, ge=1, le=200),
    db: Session = Depends(get_db),
    narrator: narration.Narrator = Depends(get_narrator),
):
    if not keyword.strip():
        raise HTTPException(status_code=400, detail="Keyword query parameter is required for trend analysis.")

    store = SqlRecordStore(db)
    rows = run_report("trend analysis", lambda: trend_products(store, keyword, limit=limit))
    return {
        "keyword": keyword,
        "raw_data": rows,
        "ai_trend_analysis": narration.analyze_trend(narrator, keyword, rows),
    }
