import logging
import uuid
from datetime import datetime
from pathlib import Path

import pandas as pd
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from buyerlens.config import settings
from buyerlens.db.models import Product, SaleOrder, Supplier
from buyerlens.db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter()

REQUIRED_PRODUCTS = {"product_id", "name", "category", "cost_price", "selling_price", "supplier_id", "current_stock"}
REQUIRED_SALES = {"order_id", "product_id", "quantity", "price", "order_date"}
REQUIRED_SUPPLIERS = {"supplier_id", "name"}

TRUE_VALUES = {"true", "t", "yes", "y", "1"}
FALSE_VALUES = {"false", "f", "no", "n", "0", ""}

BATCH_SIZE = 500


def error_dir() -> Path:
    path = Path(settings.ERROR_REPORT_DIR)
    path.mkdir(parents=True, exist_ok=True)
    return path


def read_csv(upload: UploadFile) -> pd.DataFrame:
    if not upload.filename.lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail=f"{upload.filename} must be a CSV")
    try:
        # everything as text; fields are parsed and checked row by row below
        return pd.read_csv(upload.file, dtype=str, keep_default_na=False)
    except Exception as e:
        raise HTTPException(status_code=400, detail=f"{upload.filename}: could not read CSV: {e}")


def missing_cols(df: pd.DataFrame, required: set[str]) -> list[str]:
    return sorted(list(required - set(df.columns)))


def add_error(
    errors: list,
    *,
    file: str,
    row: int | None,
    field: str,
    code: str,
    message: str,
    value: str = "",
    suggestion: str = "",
):
    errors.append({
        "file": file,
        "row": row,
        "field": field,
        "code": code,
        "message": message,
        "value": value,
        "suggestion": suggestion,
    })


def parse_number(raw: str) -> float:
    value = float(raw)
    if value < 0:
        raise ValueError(raw)
    return value


def parse_count(raw: str) -> int:
    value = int(raw)
    if value < 0:
        raise ValueError(raw)
    return value


def parse_bool(raw: str) -> bool:
    text = raw.strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ValueError(raw)


def parse_timestamp(raw: str) -> datetime:
    ts = pd.to_datetime(raw.strip(), errors="coerce")
    if pd.isna(ts):
        raise ValueError(raw)
    # stored naive, in UTC
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts.to_pydatetime()


def optional(row: pd.Series, field: str) -> str:
    return str(row.get(field, "")).strip()


class RowParser:
    """Converts one CSV file's text rows into typed rows, collecting errors as it goes."""

    def __init__(self, filename: str, errors: list):
        self.filename = filename
        self.errors = errors

    def field(self, row_no: int, raw: str, field: str, parse, code: str, message: str, suggestion: str = ""):
        try:
            return parse(raw)
        except (ValueError, TypeError):
            add_error(self.errors, file=self.filename, row=row_no, field=field, code=code,
                      message=message, value=raw, suggestion=suggestion)
            return None

    def required_id(self, row_no: int, raw: str, field: str):
        if not raw:
            add_error(self.errors, file=self.filename, row=row_no, field=field, code="REQUIRED",
                      message=f"{field} is required", suggestion=f"Provide a non-empty {field}.")
            return None
        return raw


def parse_suppliers(df: pd.DataFrame, filename: str, errors: list) -> list[dict]:
    p = RowParser(filename, errors)
    rows = []
    for idx, row in df.iterrows():
        csv_row = int(idx) + 2
        lead = optional(row, "lead_time_days")
        rating = optional(row, "quality_rating")
        rows.append({
            "supplier_id": p.required_id(csv_row, optional(row, "supplier_id"), "supplier_id"),
            "name": p.required_id(csv_row, optional(row, "name"), "name"),
            "lead_time_days": p.field(csv_row, lead, "lead_time_days", parse_count, "BAD_INT",
                                      "lead_time_days must be an integer >= 0") if lead else None,
            "quality_rating": p.field(csv_row, rating, "quality_rating", parse_number, "BAD_NUMBER",
                                      "quality_rating must be a number >= 0") if rating else None,
        })
    return rows


def parse_products(df: pd.DataFrame, filename: str, errors: list) -> list[dict]:
    p = RowParser(filename, errors)
    rows = []
    for idx, row in df.iterrows():
        csv_row = int(idx) + 2
        last_sold = optional(row, "last_sold_date")
        rows.append({
            "product_id": p.required_id(csv_row, optional(row, "product_id"), "product_id"),
            "name": p.required_id(csv_row, optional(row, "name"), "name"),
            "category": optional(row, "category") or None,
            "material": optional(row, "material") or None,
            "description": optional(row, "description") or None,
            "cost_price": p.field(csv_row, optional(row, "cost_price"), "cost_price", parse_number,
                                  "BAD_NUMBER", "cost_price must be a number >= 0"),
            "selling_price": p.field(csv_row, optional(row, "selling_price"), "selling_price", parse_number,
                                     "BAD_NUMBER", "selling_price must be a number >= 0"),
            "supplier_id": optional(row, "supplier_id") or None,
            "current_stock": p.field(csv_row, optional(row, "current_stock"), "current_stock", parse_count,
                                     "BAD_INT", "current_stock must be an integer >= 0"),
            "last_sold_date": p.field(csv_row, last_sold, "last_sold_date", parse_timestamp, "BAD_DATE",
                                      "last_sold_date must be a date", "Use ISO like 2019-01-31.")
            if last_sold else None,
        })
    return rows


def parse_sales(df: pd.DataFrame, filename: str, errors: list) -> list[dict]:
    p = RowParser(filename, errors)
    rows = []
    for idx, row in df.iterrows():
        csv_row = int(idx) + 2
        quantity = p.field(csv_row, optional(row, "quantity"), "quantity", parse_count,
                           "BAD_INT", "quantity must be an integer > 0")
        if quantity == 0:
            add_error(errors, file=filename, row=csv_row, field="quantity", code="BAD_INT",
                      message="quantity must be an integer > 0", value="0")
        discount = optional(row, "discount_applied")
        rows.append({
            "order_id": p.required_id(csv_row, optional(row, "order_id"), "order_id"),
            "product_id": p.required_id(csv_row, optional(row, "product_id"), "product_id"),
            "quantity": quantity,
            "price": p.field(csv_row, optional(row, "price"), "price", parse_number,
                             "BAD_NUMBER", "price must be a number >= 0"),
            "order_date": p.field(csv_row, optional(row, "order_date"), "order_date", parse_timestamp,
                                  "BAD_DATE", "order_date must be a date", "Use ISO like 2019-01-31."),
            "return_status": p.field(csv_row, optional(row, "return_status"), "return_status", parse_bool,
                                     "BAD_BOOL", "return_status must be true/false"),
            "discount_applied": p.field(csv_row, discount, "discount_applied", parse_number,
                                        "BAD_NUMBER", "discount_applied must be a number >= 0")
            if discount else 0.0,
            "customer_id": optional(row, "customer_id") or None,
        })
    return rows


def check_duplicates(rows: list[dict], key: str, filename: str, errors: list):
    first_row: dict[str, int] = {}
    for i, row in enumerate(rows):
        value = row[key]
        if not value:
            continue
        if value in first_row:
            add_error(errors, file=filename, row=i + 2, field=key, code="DUPLICATE_ID",
                      message=f"{key} already used on row {first_row[value]}", value=value,
                      suggestion=f"Keep one row per {key}.")
        else:
            first_row[value] = i + 2


def check_references(products: list[dict], sales: list[dict], suppliers: list[dict],
                     names: dict[str, str], errors: list):
    check_duplicates(suppliers, "supplier_id", names["suppliers"], errors)
    check_duplicates(products, "product_id", names["products"], errors)
    check_duplicates(sales, "order_id", names["sales"], errors)

    supplier_ids = {s["supplier_id"] for s in suppliers if s["supplier_id"]}
    for i, row in enumerate(products):
        sid = row["supplier_id"]
        if sid and sid not in supplier_ids:
            add_error(errors, file=names["products"], row=i + 2, field="supplier_id", code="UNKNOWN_SUPPLIER",
                      message="supplier_id not found in suppliers.csv", value=sid,
                      suggestion="Fix supplier_id to match suppliers.csv.")

    product_ids = {p["product_id"] for p in products if p["product_id"]}
    for i, row in enumerate(sales):
        pid = row["product_id"]
        if pid and pid not in product_ids:
            add_error(errors, file=names["sales"], row=i + 2, field="product_id", code="UNKNOWN_PRODUCT",
                      message="product_id not found in products.csv", value=pid,
                      suggestion="Fix product_id to match products.csv.")


def parse_all(products: UploadFile, sales: UploadFile, suppliers: UploadFile):
    df_p = read_csv(products)
    df_s = read_csv(sales)
    df_u = read_csv(suppliers)
    summary = {"products_rows": int(len(df_p)), "sales_rows": int(len(df_s)), "suppliers_rows": int(len(df_u))}

    errors: list[dict] = []

    # 1) Required columns
    for upload, df, required in (
        (products, df_p, REQUIRED_PRODUCTS),
        (sales, df_s, REQUIRED_SALES),
        (suppliers, df_u, REQUIRED_SUPPLIERS),
    ):
        missing = missing_cols(df, required)
        if missing:
            add_error(errors, file=upload.filename, row=None, field="*", code="MISSING_COLUMNS",
                      message="Missing required columns", value=",".join(missing),
                      suggestion="Add these columns to header.")

    # Stop early if missing columns
    if errors:
        return summary, None, errors

    # 2) Row-level checks
    parsed = {
        "suppliers": parse_suppliers(df_u, suppliers.filename, errors),
        "products": parse_products(df_p, products.filename, errors),
        "sales": parse_sales(df_s, sales.filename, errors),
    }

    # 3) Duplicate keys and cross-file reference checks
    check_references(parsed["products"], parsed["sales"], parsed["suppliers"],
                     {"products": products.filename, "sales": sales.filename,
                      "suppliers": suppliers.filename}, errors)
    return summary, parsed, errors


def error_response(summary: dict, errors: list[dict]) -> dict:
    report_id = uuid.uuid4().hex
    pd.DataFrame(errors).to_csv(error_dir() / f"{report_id}.csv", index=False)
    logger.info("import validation failed with %d errors (report %s)", len(errors), report_id)
    return {
        "ok": False,
        "summary": summary,
        "errors_count": len(errors),
        "error_report_id": report_id,
        "error_report_url": f"/import/error-report/{report_id}",
        "errors_preview": errors[:25],
    }


@router.get("/error-report/{report_id}")
def download_error_report(report_id: str):
    if not report_id.isalnum():
        raise HTTPException(status_code=404, detail="Error report not found")
    path = error_dir() / f"{report_id}.csv"
    if not path.exists():
        raise HTTPException(status_code=404, detail="Error report not found")
    return FileResponse(path, media_type="text/csv", filename="import_error_report.csv")


@router.post("/validate")
async def validate_all(
    products: UploadFile = File(...),
    sales: UploadFile = File(...),
    suppliers: UploadFile = File(...),
):
    summary, _, errors = parse_all(products, sales, suppliers)
    if errors:
        return error_response(summary, errors)
    return {
        "ok": True,
        "summary": summary,
        "errors_count": 0,
        "errors_preview": [],
    }


def upsert(db: Session, model, rows: list[dict], key, update: bool = True):
    if not rows:
        return
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        insert = pg_insert
    elif dialect == "sqlite":
        insert = sqlite_insert
    else:
        raise HTTPException(status_code=500, detail=f"Import is not supported on {dialect}")

    for start in range(0, len(rows), BATCH_SIZE):
        stmt = insert(model).values(rows[start:start + BATCH_SIZE])
        if update:
            stmt = stmt.on_conflict_do_update(
                index_elements=[key],
                set_={c: stmt.excluded[c] for c in rows[0] if c != key.key},
            )
        else:
            stmt = stmt.on_conflict_do_nothing(index_elements=[key])
        db.execute(stmt)


@router.post("/commit")
async def commit_import(
    products: UploadFile = File(...),
    sales: UploadFile = File(...),
    suppliers: UploadFile = File(...),
    db: Session = Depends(get_db),
):
    _, parsed, errors = parse_all(products, sales, suppliers)
    if errors:
        raise HTTPException(status_code=400, detail="Import has validation errors. Run /import/validate first.")

    upsert(db, Supplier, parsed["suppliers"], Supplier.supplier_id)
    upsert(db, Product, parsed["products"], Product.product_id)
    upsert(db, SaleOrder, parsed["sales"], SaleOrder.order_id, update=False)
    db.commit()
    logger.info(
        "import committed: %d suppliers, %d products, %d sale orders",
        len(parsed["suppliers"]), len(parsed["products"]), len(parsed["sales"]),
    )
    return {
        "ok": True,
        "saved": {
            "suppliers_upserted": len(parsed["suppliers"]),
            "products_upserted": len(parsed["products"]),
            "sales_attempted": len(parsed["sales"]),
        },
        "note": "Sale orders with an existing order_id are skipped.",
    }
