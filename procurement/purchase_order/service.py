from datetime import date
from typing import List, Optional

from loguru import logger
from sqlalchemy.orm import Session, joinedload

from procurement.config import settings
from procurement.database import atomic
from procurement.exceptions import ConsistencyError, NotFound, ValidationFailed
from procurement.purchase import models as purchase_models
from procurement.purchase_order import ledger, models, schemas
from procurement.stock.items import service as item_service
from procurement.tax import service as tax_service
from procurement.tax.schemas import TaxAdjustments
from procurement.utils.numbering import generate_document_number, local_now
from procurement.vendor import service as vendor_service


# -------------------------
# Internal helpers
# -------------------------
def _build_lines(db: Session, lines_in: List[schemas.PurchaseOrderLineIn]) -> List[models.PurchaseOrderLine]:
    if not lines_in:
        raise ValidationFailed("A purchase order needs at least one line")

    seen = set()
    lines = []
    for line_in in lines_in:
        item = item_service.get_item_or_404(db, line_in.item_id)

        if line_in.item_id in seen:
            raise ValidationFailed(f"'{item.name}' appears more than once on the order")
        seen.add(line_in.item_id)

        if line_in.quantity is None or line_in.quantity <= 0:
            raise ValidationFailed(f"Quantity for '{item.name}' must be greater than 0")
        if line_in.rate is None or line_in.rate <= 0:
            raise ValidationFailed(f"Rate for '{item.name}' must be greater than 0")

        gst_rate = line_in.gst_rate if line_in.gst_rate is not None else (item.gst_rate or 0)
        if gst_rate < 0:
            raise ValidationFailed(f"GST rate for '{item.name}' cannot be negative")

        lines.append(
            models.PurchaseOrderLine(
                item_id=item.id,
                quantity=line_in.quantity,
                rate=line_in.rate,
                gst_rate=gst_rate,
                amount=tax_service.line_amount(line_in.quantity, line_in.rate, gst_rate),
                received_quantity=0,
            )
        )
    return lines


def _apply_totals(order: models.PurchaseOrder, totals) -> None:
    order.subtotal = totals.subtotal
    order.cgst_amount = totals.cgst_amount
    order.sgst_amount = totals.sgst_amount
    order.igst_amount = totals.igst_amount
    order.additional_charges = totals.additional_charges
    order.discount_amount = totals.discount_amount
    order.round_off = totals.round_off
    order.total_amount = totals.total_amount


# -------------------------
# Create
# -------------------------
def create_purchase_order(db: Session, order_in: schemas.PurchaseOrderCreate) -> models.PurchaseOrder:
    vendor = vendor_service.get_vendor_or_404(db, order_in.vendor_id)
    lines = _build_lines(db, order_in.lines)

    totals = tax_service.compute_totals(
        lines,
        vendor_service.vendor_is_intrastate(vendor),
        TaxAdjustments(
            additional_charges=order_in.additional_charges,
            discount_amount=order_in.discount_amount,
            apply_round_off=order_in.apply_round_off,
        ),
    )

    order = models.PurchaseOrder(
        po_number=generate_document_number(settings.PO_PREFIX),
        vendor_id=vendor.id,
        po_date=order_in.po_date or local_now().date(),
        expected_delivery_date=order_in.expected_delivery_date,
        status=models.PO_PENDING,
        apply_round_off=order_in.apply_round_off,
        notes=order_in.notes,
        lines=lines,
    )
    _apply_totals(order, totals)

    with atomic(db, "purchase order creation"):
        db.add(order)

    db.refresh(order)
    logger.info(
        f"Purchase order {order.po_number} created for {vendor.name}: "
        f"{len(lines)} line(s), total {order.total_amount}"
    )
    return order


# -------------------------
# Read
# -------------------------
def get_purchase_order(db: Session, po_id: int):
    return (
        db.query(models.PurchaseOrder)
        .options(joinedload(models.PurchaseOrder.lines), joinedload(models.PurchaseOrder.vendor))
        .filter(models.PurchaseOrder.id == po_id)
        .first()
    )


def get_purchase_order_or_404(db: Session, po_id: int) -> models.PurchaseOrder:
    order = get_purchase_order(db, po_id)
    if not order:
        raise NotFound(f"Purchase order {po_id} not found")
    return order


def list_purchase_orders(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    status: str | None = None,
    vendor_id: int | None = None,
    po_number: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
):
    query = db.query(models.PurchaseOrder).options(joinedload(models.PurchaseOrder.vendor))

    # ----------------- Filters -----------------
    if status:
        query = query.filter(models.PurchaseOrder.status == status.lower())
    if vendor_id:
        query = query.filter(models.PurchaseOrder.vendor_id == vendor_id)
    if po_number:
        query = query.filter(models.PurchaseOrder.po_number.ilike(f"%{po_number}%"))
    if start_date:
        query = query.filter(models.PurchaseOrder.po_date >= start_date)
    if end_date:
        query = query.filter(models.PurchaseOrder.po_date <= end_date)

    return (
        query
        .order_by(models.PurchaseOrder.po_date.desc(), models.PurchaseOrder.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


# -------------------------
# Update (pending orders only)
# -------------------------
def update_purchase_order(db: Session, po_id: int, order_update: schemas.PurchaseOrderUpdate):
    order = get_purchase_order_or_404(db, po_id)
    if order.status != models.PO_PENDING:
        raise ConsistencyError(
            f"Purchase order {order.po_number} is {order.status}; only pending orders can be edited"
        )

    vendor = order.vendor
    if order_update.vendor_id is not None and order_update.vendor_id != order.vendor_id:
        vendor = vendor_service.get_vendor_or_404(db, order_update.vendor_id)

    new_lines = _build_lines(db, order_update.lines) if order_update.lines is not None else None

    adjustments = TaxAdjustments(
        additional_charges=(
            order_update.additional_charges
            if order_update.additional_charges is not None else order.additional_charges or 0
        ),
        discount_amount=(
            order_update.discount_amount
            if order_update.discount_amount is not None else order.discount_amount or 0
        ),
        apply_round_off=(
            order_update.apply_round_off
            if order_update.apply_round_off is not None else order.apply_round_off
        ),
    )
    totals = tax_service.compute_totals(
        new_lines if new_lines is not None else order.lines,
        vendor_service.vendor_is_intrastate(vendor),
        adjustments,
    )

    with atomic(db, "purchase order update"):
        order.vendor_id = vendor.id
        if order_update.po_date is not None:
            order.po_date = order_update.po_date
        if order_update.expected_delivery_date is not None:
            order.expected_delivery_date = order_update.expected_delivery_date
        if order_update.notes is not None:
            order.notes = order_update.notes.strip() or None

        if new_lines is not None:
            # Old rows go first so the one-line-per-item constraint holds
            order.lines.clear()
            db.flush()
            order.lines.extend(new_lines)

        order.apply_round_off = adjustments.apply_round_off
        _apply_totals(order, totals)

    db.refresh(order)
    logger.info(f"Purchase order {order.po_number} updated, total {order.total_amount}")
    return order


# -------------------------
# Cancel / delete
# -------------------------
def cancel_purchase_order(db: Session, po_id: int):
    order = get_purchase_order_or_404(db, po_id)
    if order.status not in (models.PO_PENDING, models.PO_PARTIAL):
        raise ConsistencyError(f"Purchase order {order.po_number} is {order.status} and cannot be cancelled")

    with atomic(db, "purchase order cancellation"):
        order.status = models.PO_CANCELLED

    db.refresh(order)
    logger.info(f"Purchase order {order.po_number} cancelled")
    return order


def delete_purchase_order(db: Session, po_id: int):
    order = get_purchase_order_or_404(db, po_id)

    received = any((line.received_quantity or 0) > 0 for line in order.lines)
    invoice_count = db.query(purchase_models.PurchaseInvoice).filter(
        purchase_models.PurchaseInvoice.po_id == po_id
    ).count()
    if received or invoice_count:
        raise ConsistencyError(
            f"Cannot delete purchase order {order.po_number}: goods have been received against it"
        )

    po_number = order.po_number
    with atomic(db, "purchase order deletion"):
        db.delete(order)

    logger.info(f"Purchase order {po_number} deleted")
    return {"message": "Purchase order deleted successfully"}


# -------------------------
# Receive (hand the order over to receipt entry)
# -------------------------
def start_receiving(db: Session, po_id: int, channel) -> models.PurchaseOrder:
    order = get_purchase_order_or_404(db, po_id)
    ledger.ensure_receivable(order)
    channel.publish(order.id)
    logger.info(f"Purchase order {order.po_number} handed over for receiving")
    return order


def remaining_lines(order: models.PurchaseOrder) -> List[models.PurchaseOrderLine]:
    """Lines still waiting for goods, in order."""
    return [line for line in order.lines if line.pending_quantity > 0]
