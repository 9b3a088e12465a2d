"""
Receipt processor: books a vendor invoice for goods received.

Everything is checked before the first write. The invoice, its lines, one
inventory batch per line and the order's received quantities are then saved in
a single transaction, so a receipt is either fully booked or not at all.
"""
from collections import OrderedDict
from datetime import date
from typing import List, Optional

from loguru import logger
from sqlalchemy.orm import Session, joinedload

from procurement.database import atomic
from procurement.exceptions import ConsistencyError, NotFound, ValidationFailed
from procurement.payments.ledger import derive_payment_status
from procurement.purchase import models, schemas
from procurement.purchase_order import ledger
from procurement.purchase_order import service as po_service
from procurement.stock.inventory import service as inventory_service
from procurement.stock.items import service as item_service
from procurement.tax import service as tax_service
from procurement.tax.schemas import TaxAdjustments
from procurement.utils.numbering import local_now
from procurement.vendor import service as vendor_service


# -------------------------
# Validation (no writes)
# -------------------------
def _resolve_vendor(db: Session, invoice_in: schemas.PurchaseInvoiceCreate, order):
    """Returns the registered vendor, or None for an unregistered purchase."""
    unregistered = invoice_in.is_unregistered_vendor or (
        invoice_in.vendor_id is None and invoice_in.unregistered_vendor_name
    )

    if unregistered:
        if not invoice_in.unregistered_vendor_name:
            raise ValidationFailed("Unregistered vendor name is required")
        if order is not None:
            raise ConsistencyError(
                f"Purchase order {order.po_number} belongs to a registered vendor"
            )
        return None

    if invoice_in.vendor_id is not None:
        vendor = vendor_service.get_vendor_or_404(db, invoice_in.vendor_id)
        if order is not None and order.vendor_id != vendor.id:
            raise ConsistencyError(
                f"Purchase order {order.po_number} was placed with {order.vendor_name}, not {vendor.name}"
            )
        return vendor

    if order is not None:
        return order.vendor

    raise ValidationFailed("Select a vendor or enter an unregistered vendor name")


def _build_lines(db: Session, lines_in, order) -> List[models.PurchaseInvoiceLine]:
    if not lines_in:
        raise ValidationFailed("A purchase invoice needs at least one line")

    order_lines = {line.item_id: line for line in order.lines} if order is not None else {}

    lines = []
    for line_in in lines_in:
        item = item_service.get_item_or_404(db, line_in.item_id)

        if line_in.quantity is None or line_in.quantity <= 0:
            raise ValidationFailed(f"Quantity for '{item.name}' must be greater than 0")
        if line_in.rate is None or line_in.rate <= 0:
            raise ValidationFailed(f"Rate for '{item.name}' must be greater than 0")

        gst_rate = line_in.gst_rate
        if gst_rate is None:
            order_line = order_lines.get(item.id)
            gst_rate = order_line.gst_rate if order_line is not None else (item.gst_rate or 0)
        if gst_rate < 0:
            raise ValidationFailed(f"GST rate for '{item.name}' cannot be negative")

        lines.append(
            models.PurchaseInvoiceLine(
                item_id=item.id,
                batch_number=(line_in.batch_number or "").strip() or None,
                expiry_date=line_in.expiry_date,
                quantity=line_in.quantity,
                rate=line_in.rate,
                gst_rate=gst_rate,
                amount=tax_service.line_amount(line_in.quantity, line_in.rate, gst_rate),
            )
        )
    return lines


def _quantities_by_item(lines) -> "OrderedDict[int, float]":
    quantities = OrderedDict()
    for line in lines:
        quantities[line.item_id] = quantities.get(line.item_id, 0) + line.quantity
    return quantities


# -------------------------
# Create receipt
# -------------------------
def create_receipt(db: Session, invoice_in: schemas.PurchaseInvoiceCreate) -> models.PurchaseInvoice:
    invoice_number = (invoice_in.invoice_number or "").strip()
    if not invoice_number:
        raise ValidationFailed("Invoice number is required")

    order = po_service.get_purchase_order_or_404(db, invoice_in.po_id) if invoice_in.po_id else None
    vendor = _resolve_vendor(db, invoice_in, order)
    lines = _build_lines(db, invoice_in.lines, order)

    matched = {}
    if order is not None:
        matched = ledger.plan_receipt(order, _quantities_by_item(lines))
        for line in lines:
            line.po_line_id = matched[line.item_id].id

    totals = tax_service.compute_totals(
        lines,
        vendor_service.vendor_is_intrastate(vendor),
        TaxAdjustments(
            additional_charges=invoice_in.additional_charges,
            discount_amount=invoice_in.discount_amount,
            apply_round_off=invoice_in.apply_round_off,
        ),
    )

    invoice_date = invoice_in.invoice_date or local_now().date()
    invoice = models.PurchaseInvoice(
        invoice_number=invoice_number,
        po_id=order.id if order is not None else None,
        vendor_id=vendor.id if vendor is not None else None,
        is_unregistered_vendor=vendor is None,
        unregistered_vendor_name=invoice_in.unregistered_vendor_name if vendor is None else None,
        unregistered_vendor_phone=invoice_in.unregistered_vendor_phone if vendor is None else None,
        invoice_date=invoice_date,
        received_date=invoice_in.received_date or invoice_date,
        subtotal=totals.subtotal,
        cgst_amount=totals.cgst_amount,
        sgst_amount=totals.sgst_amount,
        igst_amount=totals.igst_amount,
        additional_charges=totals.additional_charges,
        discount_amount=totals.discount_amount,
        round_off=totals.round_off,
        total_amount=totals.total_amount,
        paid_amount=0,
        pending_amount=totals.total_amount,
        payment_status=derive_payment_status(totals.total_amount, 0),
        notes=invoice_in.notes,
        lines=lines,
    )

    with atomic(db, "purchase invoice"):
        db.add(invoice)
        db.flush()

        # 1️⃣ One batch per received line
        for line_no, line in enumerate(invoice.lines, start=1):
            batch = inventory_service.allocate(
                db,
                item_id=line.item_id,
                quantity=line.quantity,
                purchase_rate=line.rate,
                invoice_id=invoice.id,
                line_no=line_no,
                batch_number=line.batch_number,
                expiry_date=line.expiry_date,
            )
            line.batch_number = batch.batch_number
            line.inventory_batch_id = batch.id
        db.flush()

        # 2️⃣ Order ledger
        if order is not None:
            ledger.refresh_order(db, order)

    db.refresh(invoice)
    logger.info(
        f"Purchase invoice {invoice.invoice_number} recorded from {invoice.vendor_name}: "
        f"{len(invoice.lines)} line(s), total {invoice.total_amount}"
        + (f", order {order.po_number} now {order.status}" if order is not None else "")
    )
    return invoice


# -------------------------
# Read
# -------------------------
def get_invoice(db: Session, invoice_id: int):
    return (
        db.query(models.PurchaseInvoice)
        .options(joinedload(models.PurchaseInvoice.lines))
        .filter(models.PurchaseInvoice.id == invoice_id)
        .first()
    )


def get_invoice_or_404(db: Session, invoice_id: int) -> models.PurchaseInvoice:
    invoice = get_invoice(db, invoice_id)
    if not invoice:
        raise NotFound(f"Purchase invoice {invoice_id} not found")
    return invoice


def list_invoices(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    invoice_number: str | None = None,
    vendor_id: int | None = None,
    po_id: int | None = None,
    payment_status: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
):
    query = db.query(models.PurchaseInvoice).options(
        joinedload(models.PurchaseInvoice.vendor),
        joinedload(models.PurchaseInvoice.purchase_order),
    )

    # ===============================
    # FILTERS
    # ===============================
    if invoice_number:
        query = query.filter(models.PurchaseInvoice.invoice_number.ilike(f"%{invoice_number}%"))
    if vendor_id:
        query = query.filter(models.PurchaseInvoice.vendor_id == vendor_id)
    if po_id:
        query = query.filter(models.PurchaseInvoice.po_id == po_id)
    if payment_status:
        query = query.filter(models.PurchaseInvoice.payment_status == payment_status.lower())
    if start_date:
        query = query.filter(models.PurchaseInvoice.invoice_date >= start_date)
    if end_date:
        query = query.filter(models.PurchaseInvoice.invoice_date <= end_date)

    return (
        query
        .order_by(models.PurchaseInvoice.invoice_date.desc(), models.PurchaseInvoice.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def list_unpaid_invoices(db: Session, vendor_id: int | None = None):
    """Invoices with something left to pay, oldest first."""
    query = db.query(models.PurchaseInvoice).filter(
        models.PurchaseInvoice.payment_status.in_([models.PAYMENT_PENDING, models.PAYMENT_PARTIAL])
    )
    if vendor_id:
        query = query.filter(models.PurchaseInvoice.vendor_id == vendor_id)
    return query.order_by(models.PurchaseInvoice.invoice_date.asc(), models.PurchaseInvoice.id.asc()).all()


# -------------------------
# Draft from the receive-order handoff
# -------------------------
def build_draft(db: Session, channel) -> Optional[dict]:
    po_id = channel.consume_once()
    if po_id is None:
        return None

    order = po_service.get_purchase_order(db, po_id)
    if order is None:
        logger.warning(f"Handed-over purchase order {po_id} no longer exists")
        return None
    ledger.ensure_receivable(order)

    draft_lines = []
    for line in po_service.remaining_lines(order):
        quantity = line.pending_quantity
        draft_lines.append({
            "item_id": line.item_id,
            "item_name": line.item_name,
            "po_line_id": line.id,
            "ordered_quantity": line.quantity,
            "received_quantity": line.received_quantity or 0,
            "quantity": quantity,
            "rate": line.rate,
            "gst_rate": line.gst_rate,
            "amount": tax_service.line_amount(quantity, line.rate, line.gst_rate),
        })

    is_intrastate = vendor_service.vendor_is_intrastate(order.vendor)
    totals = tax_service.compute_totals(
        [schemas.PurchaseInvoiceLineIn(**line) for line in draft_lines],
        is_intrastate,
    )

    return {
        "po_id": order.id,
        "po_number": order.po_number,
        "vendor_id": order.vendor_id,
        "vendor_name": order.vendor_name,
        "is_intrastate": is_intrastate,
        "lines": draft_lines,
        "totals": totals,
    }
