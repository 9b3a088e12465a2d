import re

import pandas as pd
from fastapi import UploadFile
from loguru import logger
from sqlalchemy.orm import Session

from procurement.exceptions import ConsistencyError, NotFound, ValidationFailed
from procurement.stock.items import models, schemas
from procurement.utils.gst import GST_RATES


def create_item(db: Session, item: schemas.ItemCreate):
    if item.barcode:
        exists = get_item_by_barcode(db, item.barcode)
        if exists:
            raise ConsistencyError(f"Barcode {item.barcode} is already used by '{exists.name}'")

    db_item = models.Item(**item.dict())
    db_item.name = db_item.name.strip()
    db.add(db_item)
    db.commit()
    db.refresh(db_item)
    return db_item


def get_item(db: Session, item_id: int):
    return db.query(models.Item).filter(models.Item.id == item_id).first()


def get_item_or_404(db: Session, item_id: int) -> models.Item:
    item = get_item(db, item_id)
    if not item:
        raise NotFound(f"Item {item_id} not found")
    return item


def get_item_by_barcode(db: Session, barcode: str):
    """Resolve a scanned code to an item; the caller feeds item.id into the line."""
    return db.query(models.Item).filter(models.Item.barcode == barcode.strip()).first()


def get_items(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    name: str | None = None,
    active_only: bool = True,
):
    query = db.query(models.Item)
    if name:
        query = query.filter(models.Item.name.ilike(f"%{name}%"))
    if active_only:
        query = query.filter(models.Item.is_active == True)  # noqa: E712
    return query.order_by(models.Item.name).offset(skip).limit(limit).all()


def update_item(db: Session, item_id: int, item_update: schemas.ItemUpdate):
    item = get_item(db, item_id)
    if not item:
        return None

    data = item_update.dict(exclude_unset=True)
    barcode = data.get("barcode")
    if barcode:
        exists = get_item_by_barcode(db, barcode)
        if exists and exists.id != item_id:
            raise ConsistencyError(f"Barcode {barcode} is already used by '{exists.name}'")

    for key, value in data.items():
        setattr(item, key, value)
    db.commit()
    db.refresh(item)
    return item


# --------------------------------------------------
# Helper: Clean numeric values from spreadsheets
# --------------------------------------------------
def clean_number(value):
    """
    Accepts: int, float, str (₹1,200.50), or NaN
    Returns: float
    """
    if value is None or pd.isna(value):
        return 0.0

    if isinstance(value, (int, float)):
        return float(value)

    value = re.sub(r"[^\d.]", "", str(value))
    try:
        return float(value)
    except ValueError:
        return 0.0


def _read_sheet(file: UploadFile) -> pd.DataFrame:
    filename = (file.filename or "").lower()
    if filename.endswith((".xlsx", ".xls")):
        return pd.read_excel(file.file)
    if filename.endswith(".csv"):
        return pd.read_csv(file.file)
    raise ValidationFailed("Invalid file type. Upload .xlsx, .xls or .csv")


def import_items_from_file(db: Session, file: UploadFile):
    df = _read_sheet(file)

    df.columns = [str(c).strip().lower() for c in df.columns]
    required_columns = {"name", "gst_rate"}
    if not required_columns.issubset(df.columns):
        raise ValidationFailed(f"Sheet must contain columns: {sorted(required_columns)}")

    existing_names = {n.lower().strip() for (n,) in db.query(models.Item.name).all()}
    existing_barcodes = {
        b for (b,) in db.query(models.Item.barcode).filter(models.Item.barcode.isnot(None)).all()
    }

    items_to_add = []
    skipped = 0

    for _, row in df.iterrows():
        if pd.isna(row["name"]):
            skipped += 1
            continue

        name = str(row["name"]).strip()
        gst_rate = clean_number(row["gst_rate"])
        barcode = None
        if "barcode" in df.columns and not pd.isna(row["barcode"]):
            barcode = str(row["barcode"]).strip()

        if name.lower() in existing_names or gst_rate not in GST_RATES:
            skipped += 1
            continue
        if barcode and barcode in existing_barcodes:
            skipped += 1
            continue

        item = models.Item(
            name=name,
            barcode=barcode,
            hsn_code=(
                str(row["hsn_code"]).strip()
                if "hsn_code" in df.columns and not pd.isna(row["hsn_code"])
                else None
            ),
            gst_rate=gst_rate,
            wholesale_price=(
                clean_number(row["wholesale_price"]) if "wholesale_price" in df.columns else None
            ),
            min_stock_level=(
                clean_number(row["min_stock_level"]) if "min_stock_level" in df.columns else 0
            ),
        )
        items_to_add.append(item)
        existing_names.add(name.lower())
        if barcode:
            existing_barcodes.add(barcode)

    if not items_to_add:
        raise ConsistencyError(f"Import unsuccessful: all {skipped} row(s) were invalid or duplicated")

    try:
        db.add_all(items_to_add)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Imported {len(items_to_add)} item(s), skipped {skipped}")
    return {
        "message": "Import completed successfully",
        "imported": len(items_to_add),
        "skipped": skipped,
    }
