from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

from procurement.database import get_db
from procurement.stock.inventory import schemas, service

router = APIRouter()


@router.get("/batches", response_model=List[schemas.InventoryBatchOut])
def list_batches(
    skip: int = 0,
    limit: int = 100,
    item_id: Optional[int] = None,
    invoice_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    return service.list_batches(
        db,
        skip=skip,
        limit=limit,
        item_id=item_id,
        invoice_id=invoice_id,
    )


@router.get("/summary", response_model=List[schemas.StockSummaryOut])
def stock_summary(item_id: Optional[int] = None, db: Session = Depends(get_db)):
    return service.stock_summary(db, item_id=item_id)
