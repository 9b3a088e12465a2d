from datetime import date
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from procurement.exceptions import ValidationFailed
from procurement.stock.inventory.models import InventoryBatch
from procurement.stock.items.models import Item
from procurement.utils.numbering import default_batch_number, local_now

EXPIRY_WARNING_DAYS = 30


# --------------------------
# Internal: one lot per received line
# --------------------------
def allocate(
    db: Session,
    item_id: int,
    quantity: float,
    purchase_rate: float,
    invoice_id: int,
    line_no: int,
    batch_number: Optional[str] = None,
    expiry_date: Optional[date] = None,
) -> InventoryBatch:
    """
    Create exactly one batch. Lots are never merged: two receipts of the same
    item always give two batches. Flushes only; the caller owns the commit.
    """
    if quantity is None or quantity <= 0:
        raise ValidationFailed("Batch quantity must be greater than 0")

    batch = InventoryBatch(
        item_id=item_id,
        batch_number=(batch_number or "").strip() or default_batch_number(invoice_id, line_no),
        quantity=quantity,
        purchase_rate=purchase_rate,
        expiry_date=expiry_date,
        source_type="purchase",
        source_invoice_id=invoice_id,
    )
    db.add(batch)
    db.flush()
    return batch


# --------------------------
# Read-only: batches and stock per item
# --------------------------
def list_batches(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    item_id: int | None = None,
    invoice_id: int | None = None,
):
    query = db.query(InventoryBatch).options(joinedload(InventoryBatch.item))

    if item_id is not None:
        query = query.filter(InventoryBatch.item_id == item_id)
    if invoice_id is not None:
        query = query.filter(InventoryBatch.source_invoice_id == invoice_id)

    batches = query.order_by(InventoryBatch.id.asc()).offset(skip).limit(limit).all()

    # ----------------- Attach expiry info -----------------
    today = local_now().date()
    for b in batches:
        b.days_until_expiry = days_until_expiry(b.expiry_date, today) if b.expiry_date else None
        b.is_expired = is_expired(b.expiry_date, today) if b.expiry_date else False
        b.is_expiring_soon = is_expiring_soon(b.expiry_date, today) if b.expiry_date else False

    return batches


def stock_summary(db: Session, item_id: int | None = None):
    query = (
        db.query(
            Item.id.label("item_id"),
            Item.name.label("name"),
            Item.min_stock_level.label("min_stock_level"),
            func.coalesce(func.sum(InventoryBatch.quantity), 0).label("total_stock"),
            func.count(InventoryBatch.id).label("batch_count"),
        )
        .outerjoin(InventoryBatch, InventoryBatch.item_id == Item.id)
        .group_by(Item.id, Item.name, Item.min_stock_level)
        .order_by(Item.name)
    )
    if item_id is not None:
        query = query.filter(Item.id == item_id)

    return [
        {
            "item_id": row.item_id,
            "name": row.name,
            "min_stock_level": row.min_stock_level or 0,
            "total_stock": float(row.total_stock or 0),
            "batch_count": row.batch_count,
            "is_low_stock": float(row.total_stock or 0) <= (row.min_stock_level or 0),
        }
        for row in query.all()
    ]


# --------------------------
# Expiry helpers
# --------------------------
def days_until_expiry(expiry_date: date, today: Optional[date] = None) -> int:
    today = today or local_now().date()
    return (expiry_date - today).days


def is_expired(expiry_date: date, today: Optional[date] = None) -> bool:
    return days_until_expiry(expiry_date, today) < 0


def is_expiring_soon(expiry_date: date, today: Optional[date] = None) -> bool:
    days = days_until_expiry(expiry_date, today)
    return 0 < days <= EXPIRY_WARNING_DAYS
