from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from procurement.database import get_db
from procurement.handoff.channel import HandoffChannel, get_handoff_channel
from procurement.purchase_order import schemas, service

router = APIRouter()


@router.post("/", response_model=schemas.PurchaseOrderOut)
def create_purchase_order(order: schemas.PurchaseOrderCreate, db: Session = Depends(get_db)):
    return service.create_purchase_order(db, order)


@router.get("/", response_model=List[schemas.PurchaseOrderOut])
def list_purchase_orders(
    skip: int = 0,
    limit: int = 100,
    status: Optional[str] = Query(None, description="pending / partial / received / cancelled"),
    vendor_id: Optional[int] = Query(None),
    po_number: Optional[str] = Query(None, description="PO number search"),
    start_date: Optional[date] = Query(None, description="YYYY-MM-DD"),
    end_date: Optional[date] = Query(None, description="YYYY-MM-DD"),
    db: Session = Depends(get_db),
):
    return service.list_purchase_orders(
        db,
        skip=skip,
        limit=limit,
        status=status,
        vendor_id=vendor_id,
        po_number=po_number,
        start_date=start_date,
        end_date=end_date,
    )


@router.get("/{po_id}", response_model=schemas.PurchaseOrderOut)
def get_purchase_order(po_id: int, db: Session = Depends(get_db)):
    return service.get_purchase_order_or_404(db, po_id)


@router.put("/{po_id}", response_model=schemas.PurchaseOrderOut)
def update_purchase_order(
    po_id: int,
    order_update: schemas.PurchaseOrderUpdate,
    db: Session = Depends(get_db),
):
    return service.update_purchase_order(db, po_id, order_update)


@router.post("/{po_id}/cancel", response_model=schemas.PurchaseOrderOut)
def cancel_purchase_order(po_id: int, db: Session = Depends(get_db)):
    return service.cancel_purchase_order(db, po_id)


@router.delete("/{po_id}")
def delete_purchase_order(po_id: int, db: Session = Depends(get_db)):
    return service.delete_purchase_order(db, po_id)


@router.post("/{po_id}/receive", response_model=schemas.ReceiveOrderOut)
def receive_purchase_order(
    po_id: int,
    db: Session = Depends(get_db),
    channel: HandoffChannel = Depends(get_handoff_channel),
):
    order = service.start_receiving(db, po_id, channel)
    return {
        "message": "Order ready to receive. Open the purchase draft to continue.",
        "po_id": order.id,
        "po_number": order.po_number,
    }
