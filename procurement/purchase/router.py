from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from procurement.database import get_db
from procurement.handoff.channel import HandoffChannel, get_handoff_channel
from procurement.purchase import schemas, service

router = APIRouter()


@router.post("/", response_model=schemas.PurchaseInvoiceOut)
def create_purchase(invoice: schemas.PurchaseInvoiceCreate, db: Session = Depends(get_db)):
    return service.create_receipt(db, invoice)


@router.get("/", response_model=List[schemas.PurchaseInvoiceOut])
def list_purchases(
    skip: int = 0,
    limit: int = 100,
    invoice_number: Optional[str] = Query(None, description="Invoice number search"),
    vendor_id: Optional[int] = Query(None),
    po_id: Optional[int] = Query(None),
    payment_status: Optional[str] = Query(None, description="pending / partial / paid"),
    start_date: Optional[date] = Query(None, description="YYYY-MM-DD"),
    end_date: Optional[date] = Query(None, description="YYYY-MM-DD"),
    db: Session = Depends(get_db),
):
    return service.list_invoices(
        db,
        skip=skip,
        limit=limit,
        invoice_number=invoice_number,
        vendor_id=vendor_id,
        po_id=po_id,
        payment_status=payment_status,
        start_date=start_date,
        end_date=end_date,
    )


@router.get("/unpaid", response_model=List[schemas.PurchaseInvoiceOut])
def list_unpaid_purchases(vendor_id: Optional[int] = None, db: Session = Depends(get_db)):
    return service.list_unpaid_invoices(db, vendor_id=vendor_id)


@router.get("/draft", response_model=Optional[schemas.PurchaseDraftOut])
def purchase_draft(
    db: Session = Depends(get_db),
    channel: HandoffChannel = Depends(get_handoff_channel),
):
    """Pre-filled receipt for the order handed over by /purchase-orders/{id}/receive."""
    return service.build_draft(db, channel)


@router.get("/{invoice_id}", response_model=schemas.PurchaseInvoiceOut)
def get_purchase(invoice_id: int, db: Session = Depends(get_db)):
    return service.get_invoice_or_404(db, invoice_id)
