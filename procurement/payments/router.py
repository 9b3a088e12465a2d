from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from datetime import date
from typing import List, Optional

from procurement.database import get_db
from procurement.payments import schemas, service

router = APIRouter()


# -------------------------
# Pay / refund an invoice
# -------------------------
@router.post("/invoice/{invoice_id}", response_model=schemas.PaymentOut)
def create_payment_for_invoice(
    invoice_id: int,
    payment: schemas.PaymentCreate,
    db: Session = Depends(get_db),
):
    return service.record_payment(db, invoice_id, payment)


@router.post("/invoice/{invoice_id}/refund", response_model=schemas.PaymentOut)
def create_refund_for_invoice(
    invoice_id: int,
    refund: schemas.RefundCreate,
    db: Session = Depends(get_db),
):
    return service.record_refund(db, invoice_id, refund)


@router.get("/", response_model=List[schemas.PaymentOut])
def list_payments_endpoint(
    invoice_id: Optional[int] = Query(None, description="Filter by invoice"),
    vendor_id: Optional[int] = Query(None, description="Filter by vendor"),
    payment_method: Optional[str] = Query(None, description="cash | bank_transfer | upi | cheque | card"),
    start_date: Optional[date] = Query(None, description="Start date"),
    end_date: Optional[date] = Query(None, description="End date"),
    db: Session = Depends(get_db),
):
    return service.list_payments(
        db,
        invoice_id=invoice_id,
        vendor_id=vendor_id,
        payment_method=payment_method,
        start_date=start_date,
        end_date=end_date,
    )


# -------------------------
# List payments by invoice
# -------------------------
@router.get("/invoice/{invoice_id}", response_model=List[schemas.PaymentOut])
def list_payments_by_invoice(invoice_id: int, db: Session = Depends(get_db)):
    return service.list_payments_by_invoice(db, invoice_id)


@router.put("/{payment_id}", response_model=schemas.PaymentOut)
def update_payment(
    payment_id: int,
    payment_update: schemas.PaymentUpdate,
    db: Session = Depends(get_db),
):
    return service.amend_payment(db, payment_id, payment_update)


# -------------------------
# Reverse a payment
# -------------------------
@router.delete("/{payment_id}")
def delete_payment(payment_id: int, db: Session = Depends(get_db)):
    return service.reverse_payment(db, payment_id)
