from pydantic import BaseModel, Field, validator
from datetime import date, datetime
from typing import List, Optional


# -------------------------
# Lines
# -------------------------
class PurchaseOrderLineIn(BaseModel):
    item_id: int
    quantity: float
    rate: float
    gst_rate: Optional[float] = None   # defaults to the item's GST rate


class PurchaseOrderLineOut(BaseModel):
    id: int
    item_id: int
    item_name: Optional[str] = None
    quantity: float
    rate: float
    gst_rate: float
    amount: float
    received_quantity: float
    pending_quantity: float

    class Config:
        from_attributes = True


# -------------------------
# Orders
# -------------------------
class PurchaseOrderCreate(BaseModel):
    vendor_id: int
    po_date: Optional[date] = None
    expected_delivery_date: Optional[date] = None
    notes: Optional[str] = None

    additional_charges: float = 0
    discount_amount: float = 0
    apply_round_off: bool = False

    lines: List[PurchaseOrderLineIn] = Field(default_factory=list)

    @validator("notes")
    def strip_notes(cls, v):
        return v.strip() if v and v.strip() else None


class PurchaseOrderUpdate(BaseModel):
    vendor_id: Optional[int] = None
    po_date: Optional[date] = None
    expected_delivery_date: Optional[date] = None
    notes: Optional[str] = None

    additional_charges: Optional[float] = None
    discount_amount: Optional[float] = None
    apply_round_off: Optional[bool] = None

    # When given, replaces every line of the order
    lines: Optional[List[PurchaseOrderLineIn]] = None


class PurchaseOrderOut(BaseModel):
    id: int
    po_number: str
    vendor_id: int
    vendor_name: Optional[str] = None
    po_date: date
    expected_delivery_date: Optional[date] = None
    status: str

    subtotal: float
    cgst_amount: float
    sgst_amount: float
    igst_amount: float
    additional_charges: float
    discount_amount: float
    round_off: float
    total_amount: float
    apply_round_off: bool = False

    notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    lines: List[PurchaseOrderLineOut] = []

    class Config:
        from_attributes = True


class ReceiveOrderOut(BaseModel):
    message: str
    po_id: int
    po_number: str
