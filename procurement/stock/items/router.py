from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, Query
from sqlalchemy.orm import Session
from typing import Optional

from procurement.database import get_db
from procurement.stock.items import schemas, service

router = APIRouter()


@router.post("/", response_model=schemas.ItemOut)
def create_item(item: schemas.ItemCreate, db: Session = Depends(get_db)):
    return service.create_item(db, item)


@router.get("/", response_model=list[schemas.ItemOut])
def list_items(
    skip: int = 0,
    limit: int = 100,
    name: Optional[str] = Query(None, description="Search by item name"),
    active_only: bool = True,
    db: Session = Depends(get_db),
):
    return service.get_items(db, skip=skip, limit=limit, name=name, active_only=active_only)


@router.get("/barcode/{code}", response_model=schemas.ItemOut)
def get_item_by_barcode(code: str, db: Session = Depends(get_db)):
    item = service.get_item_by_barcode(db, code)
    if not item:
        raise HTTPException(status_code=404, detail=f"No item with barcode: {code}")
    return item


@router.get("/{item_id}", response_model=schemas.ItemOut)
def get_item(item_id: int, db: Session = Depends(get_db)):
    item = service.get_item(db, item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Item not found")
    return item


@router.put("/{item_id}", response_model=schemas.ItemOut)
def update_item(item_id: int, item_update: schemas.ItemUpdate, db: Session = Depends(get_db)):
    item = service.update_item(db, item_id, item_update)
    if not item:
        raise HTTPException(status_code=404, detail="Item not found")
    return item


@router.post("/import", response_model=schemas.ItemImportResult)
def import_items(file: UploadFile = File(...), db: Session = Depends(get_db)):
    return service.import_items_from_file(db, file)
