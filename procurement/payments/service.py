"""
Payment ledger for purchase invoices.

Payment rows are append/delete only. An invoice's paid amount, pending amount
and payment status are recomputed from the rows after every change, inside the
same transaction as the change itself.
"""
from datetime import date

from loguru import logger
from sqlalchemy.orm import Session, joinedload

from procurement.config import settings
from procurement.database import atomic
from procurement.exceptions import NotFound, ValidationFailed
from procurement.payments import models, schemas
from procurement.payments.ledger import refresh_invoice
from procurement.purchase import models as purchase_models
from procurement.purchase import service as purchase_service
from procurement.utils.numbering import generate_document_number


def _check_method(method: str) -> str:
    method = (method or "").strip().lower()
    if method not in schemas.PAYMENT_METHODS:
        raise ValidationFailed(
            f"Unknown payment method '{method}'. Use one of: {', '.join(schemas.PAYMENT_METHODS)}"
        )
    return method


def _attach_extras(payment: models.PurchasePayment) -> models.PurchasePayment:
    invoice = payment.invoice
    payment.vendor_name = invoice.vendor_name if invoice else None
    payment.invoice_total = invoice.total_amount if invoice else None
    payment.invoice_pending = invoice.pending_amount if invoice else None
    payment.invoice_status = invoice.payment_status if invoice else None
    return payment


def _new_row(invoice_id: int, signed_amount: float, data, payment_number: str | None = None):
    return models.PurchasePayment(
        payment_number=payment_number or generate_document_number(settings.PAYMENT_PREFIX),
        invoice_id=invoice_id,
        payment_date=data.payment_date,
        amount=round(signed_amount, 2),
        payment_method=_check_method(data.payment_method),
        reference_number=(data.reference_number or "").strip() or None,
        notes=(data.notes or "").strip() or None,
    )


# -------------------------
# Record payment
# -------------------------
def record_payment(db: Session, invoice_id: int, payment: schemas.PaymentCreate):
    invoice = purchase_service.get_invoice_or_404(db, invoice_id)

    if payment.amount is None or payment.amount <= 0:
        raise ValidationFailed("Payment amount must be greater than 0")

    pending = round(invoice.total_amount - invoice.paid_amount, 2)
    if payment.amount > pending + settings.AMOUNT_TOLERANCE:
        raise ValidationFailed(f"Payment exceeds pending amount ({pending})")

    new_payment = _new_row(invoice.id, payment.amount, payment)

    with atomic(db, "payment"):
        db.add(new_payment)
        db.flush()
        refresh_invoice(db, invoice)

    db.refresh(new_payment)
    logger.info(
        f"Payment {new_payment.payment_number} of {new_payment.amount} recorded against "
        f"invoice {invoice.invoice_number}; pending {invoice.pending_amount} ({invoice.payment_status})"
    )
    return _attach_extras(new_payment)


# -------------------------
# Record refund (negative row)
# -------------------------
def record_refund(db: Session, invoice_id: int, refund: schemas.RefundCreate):
    invoice = purchase_service.get_invoice_or_404(db, invoice_id)

    if refund.amount is None or refund.amount <= 0:
        raise ValidationFailed("Refund amount must be greater than 0")
    if refund.amount > invoice.paid_amount + settings.AMOUNT_TOLERANCE:
        raise ValidationFailed(f"Refund exceeds amount paid ({invoice.paid_amount})")

    new_refund = _new_row(invoice.id, -refund.amount, refund)

    with atomic(db, "refund"):
        db.add(new_refund)
        db.flush()
        refresh_invoice(db, invoice)

    db.refresh(new_refund)
    logger.info(
        f"Refund {new_refund.payment_number} of {refund.amount} recorded against "
        f"invoice {invoice.invoice_number}; pending {invoice.pending_amount} ({invoice.payment_status})"
    )
    return _attach_extras(new_refund)


# -------------------------
# Read
# -------------------------
def get_payment(db: Session, payment_id: int):
    return db.query(models.PurchasePayment).filter(models.PurchasePayment.id == payment_id).first()


def get_payment_or_404(db: Session, payment_id: int) -> models.PurchasePayment:
    payment = get_payment(db, payment_id)
    if not payment:
        raise NotFound(f"Payment {payment_id} not found")
    return payment


def list_payments(
    db: Session,
    invoice_id: int | None = None,
    vendor_id: int | None = None,
    payment_method: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
):
    query = db.query(models.PurchasePayment).options(
        joinedload(models.PurchasePayment.invoice).joinedload(purchase_models.PurchaseInvoice.vendor)
    )

    # ----------------- Invoice / Vendor Filter -----------------
    if invoice_id:
        query = query.filter(models.PurchasePayment.invoice_id == invoice_id)
    if vendor_id:
        query = query.join(models.PurchasePayment.invoice).filter(
            purchase_models.PurchaseInvoice.vendor_id == vendor_id
        )

    # ----------------- Payment Method Filter -----------------
    if payment_method:
        query = query.filter(models.PurchasePayment.payment_method == payment_method.lower())

    # ----------------- Date Filter -----------------
    if start_date:
        query = query.filter(models.PurchasePayment.payment_date >= start_date)
    if end_date:
        query = query.filter(models.PurchasePayment.payment_date <= end_date)

    payments = query.order_by(
        models.PurchasePayment.payment_date.desc(), models.PurchasePayment.id.desc()
    ).all()

    return [_attach_extras(p) for p in payments]


def list_payments_by_invoice(db: Session, invoice_id: int):
    purchase_service.get_invoice_or_404(db, invoice_id)
    payments = (
        db.query(models.PurchasePayment)
        .filter(models.PurchasePayment.invoice_id == invoice_id)
        .order_by(models.PurchasePayment.id.asc())
        .all()
    )
    return [_attach_extras(p) for p in payments]


# -------------------------
# Reverse (delete) payment
# -------------------------
def reverse_payment(db: Session, payment_id: int):
    payment = get_payment_or_404(db, payment_id)
    invoice = payment.invoice

    # Undoing a refund puts its amount back on paid
    paid_after = round(invoice.paid_amount - payment.amount, 2)
    if paid_after > invoice.total_amount + settings.AMOUNT_TOLERANCE:
        raise ValidationFailed(
            f"Reversing {payment.payment_number} would take paid above the invoice total"
        )

    payment_number = payment.payment_number
    with atomic(db, "payment reversal"):
        db.delete(payment)
        db.flush()
        refresh_invoice(db, invoice)

    db.refresh(invoice)
    logger.info(
        f"Payment {payment_number} reversed on invoice {invoice.invoice_number}; "
        f"paid {invoice.paid_amount}, pending {invoice.pending_amount} ({invoice.payment_status})"
    )
    return {
        "detail": "Payment reversed successfully",
        "invoice_id": invoice.id,
        "paid_amount": invoice.paid_amount,
        "pending_amount": invoice.pending_amount,
        "payment_status": invoice.payment_status,
    }


# -------------------------
# Amend payment
# -------------------------
def amend_payment(db: Session, payment_id: int, payment_update: schemas.PaymentUpdate):
    """
    Details (date, method, reference, notes) are patched in place. A new amount
    removes the old row and records a replacement under the same payment
    number, checked against what is pending without the old row.
    """
    payment = get_payment_or_404(db, payment_id)
    invoice = payment.invoice

    if payment_update.payment_method is not None:
        _check_method(payment_update.payment_method)

    amount_changed = (
        payment_update.amount is not None
        and abs(payment_update.amount - abs(payment.amount)) > settings.AMOUNT_TOLERANCE
    )

    if not amount_changed:
        with atomic(db, "payment amendment"):
            if payment_update.payment_date is not None:
                payment.payment_date = payment_update.payment_date
            if payment_update.payment_method is not None:
                payment.payment_method = _check_method(payment_update.payment_method)
            if payment_update.reference_number is not None:
                payment.reference_number = payment_update.reference_number.strip() or None
            if payment_update.notes is not None:
                payment.notes = payment_update.notes.strip() or None
        db.refresh(payment)
        return _attach_extras(payment)

    # ----------------- Reverse then reapply -----------------
    if payment_update.amount <= 0:
        raise ValidationFailed("Payment amount must be greater than 0")

    paid_without = round(invoice.paid_amount - payment.amount, 2)
    if payment.is_refund:
        if payment_update.amount > paid_without + settings.AMOUNT_TOLERANCE:
            raise ValidationFailed(f"Refund exceeds amount paid ({paid_without})")
        signed_amount = -payment_update.amount
    else:
        pending_without = round(invoice.total_amount - paid_without, 2)
        if payment_update.amount > pending_without + settings.AMOUNT_TOLERANCE:
            raise ValidationFailed(f"Payment exceeds pending amount ({pending_without})")
        signed_amount = payment_update.amount

    merged = schemas.PaymentBase(
        amount=payment_update.amount,
        payment_date=payment_update.payment_date or payment.payment_date,
        payment_method=payment_update.payment_method or payment.payment_method,
        reference_number=(
            payment_update.reference_number
            if payment_update.reference_number is not None else payment.reference_number
        ),
        notes=payment_update.notes if payment_update.notes is not None else payment.notes,
    )
    old_amount = payment.amount
    payment_number = payment.payment_number

    with atomic(db, "payment amendment"):
        db.delete(payment)
        db.flush()
        replacement = _new_row(invoice.id, signed_amount, merged, payment_number=payment_number)
        db.add(replacement)
        db.flush()
        refresh_invoice(db, invoice)

    db.refresh(replacement)
    logger.info(
        f"Payment {payment_number} amended from {old_amount} to {replacement.amount} on invoice "
        f"{invoice.invoice_number}; pending {invoice.pending_amount} ({invoice.payment_status})"
    )
    return _attach_extras(replacement)
