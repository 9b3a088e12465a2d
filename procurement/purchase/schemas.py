from pydantic import BaseModel, Field, validator
from datetime import date, datetime
from typing import List, Optional

from procurement.tax.schemas import TaxTotals


# -------------------------
# Invoice lines
# -------------------------
class PurchaseInvoiceLineIn(BaseModel):
    item_id: int
    quantity: float
    rate: float
    gst_rate: Optional[float] = None      # defaults to the order line, then the item
    batch_number: Optional[str] = None    # generated when blank
    expiry_date: Optional[date] = None


class PurchaseInvoiceLineOut(BaseModel):
    id: int
    item_id: int
    item_name: Optional[str] = None
    po_line_id: Optional[int] = None
    batch_number: Optional[str] = None
    expiry_date: Optional[date] = None
    quantity: float
    rate: float
    gst_rate: float
    amount: float
    inventory_batch_id: Optional[int] = None

    class Config:
        from_attributes = True


# -------------------------
# Invoice (goods receipt)
# -------------------------
class PurchaseInvoiceCreate(BaseModel):
    invoice_number: str
    po_id: Optional[int] = None

    vendor_id: Optional[int] = None
    is_unregistered_vendor: bool = False
    unregistered_vendor_name: Optional[str] = None
    unregistered_vendor_phone: Optional[str] = None

    invoice_date: Optional[date] = None
    received_date: Optional[date] = None
    notes: Optional[str] = None

    additional_charges: float = 0
    discount_amount: float = 0
    apply_round_off: bool = False

    lines: List[PurchaseInvoiceLineIn] = Field(default_factory=list)

    @validator("unregistered_vendor_name", "unregistered_vendor_phone", "notes")
    def blank_to_none(cls, v):
        return v.strip() if v and v.strip() else None


class PurchaseInvoiceOut(BaseModel):
    id: int
    invoice_number: str
    po_id: Optional[int] = None
    po_number: Optional[str] = None

    vendor_id: Optional[int] = None
    vendor_name: Optional[str] = None
    is_unregistered_vendor: bool
    unregistered_vendor_name: Optional[str] = None
    unregistered_vendor_phone: Optional[str] = None

    invoice_date: date
    received_date: date

    subtotal: float
    cgst_amount: float
    sgst_amount: float
    igst_amount: float
    additional_charges: float
    discount_amount: float
    round_off: float
    total_amount: float

    paid_amount: float
    pending_amount: float
    payment_status: str

    notes: Optional[str] = None
    created_at: datetime

    lines: List[PurchaseInvoiceLineOut] = []

    class Config:
        from_attributes = True


# -------------------------
# Receipt draft (from the receive-order handoff)
# -------------------------
class PurchaseDraftLine(BaseModel):
    item_id: int
    item_name: Optional[str] = None
    po_line_id: int
    ordered_quantity: float
    received_quantity: float
    quantity: float
    rate: float
    gst_rate: float
    amount: float


class PurchaseDraftOut(BaseModel):
    po_id: int
    po_number: str
    vendor_id: int
    vendor_name: Optional[str] = None
    is_intrastate: bool
    lines: List[PurchaseDraftLine] = []
    totals: TaxTotals
