from pydantic import BaseModel
from datetime import date, datetime
from typing import Optional


class InventoryBatchOut(BaseModel):
    id: int
    item_id: int
    item_name: Optional[str] = None
    batch_number: str
    quantity: float
    purchase_rate: float
    expiry_date: Optional[date] = None
    source_type: str
    source_invoice_id: Optional[int] = None
    created_at: datetime

    days_until_expiry: Optional[int] = None
    is_expired: bool = False
    is_expiring_soon: bool = False

    class Config:
        from_attributes = True


class StockSummaryOut(BaseModel):
    item_id: int
    name: str
    min_stock_level: float
    total_stock: float
    batch_count: int
    is_low_stock: bool
