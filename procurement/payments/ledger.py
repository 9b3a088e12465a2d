"""
Invoice balance: paid amount, pending amount and payment status.

All three are a cache over the invoice's payment rows (refunds are negative
rows). They are recomputed from the rows after every change, never adjusted
in place.
"""
from sqlalchemy import func
from sqlalchemy.orm import Session

from procurement.config import settings
from procurement.payments.models import PurchasePayment
from procurement.purchase import models as purchase_models


def derive_payment_status(total_amount: float, paid_amount: float) -> str:
    pending = round((total_amount or 0) - (paid_amount or 0), 2)
    if pending <= settings.AMOUNT_TOLERANCE:
        return purchase_models.PAYMENT_PAID
    if (paid_amount or 0) > settings.AMOUNT_TOLERANCE:
        return purchase_models.PAYMENT_PARTIAL
    return purchase_models.PAYMENT_PENDING


def refresh_invoice(db: Session, invoice: purchase_models.PurchaseInvoice) -> purchase_models.PurchaseInvoice:
    """Recompute paid / pending / status from the payment rows. Flush first."""
    paid = db.query(func.coalesce(func.sum(PurchasePayment.amount), 0)).filter(
        PurchasePayment.invoice_id == invoice.id
    ).scalar()
    paid = round(float(paid or 0), 2)

    invoice.paid_amount = paid
    invoice.pending_amount = round((invoice.total_amount or 0) - paid, 2)
    invoice.payment_status = derive_payment_status(invoice.total_amount, paid)
    return invoice
