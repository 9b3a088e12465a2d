from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, datetime

from procurement.utils.numbering import local_now

PAYMENT_METHODS = ("cash", "bank_transfer", "upi", "cheque", "card")


# -------------------------
# Base Schema
# -------------------------
class PaymentBase(BaseModel):
    amount: float
    payment_method: str = "cash"        # cash / bank_transfer / upi / cheque / card
    reference_number: Optional[str] = None
    notes: Optional[str] = None
    payment_date: date = Field(default_factory=lambda: local_now().date())


# -------------------------
# Create Payment / Refund
# -------------------------
class PaymentCreate(PaymentBase):
    pass  # invoice_id comes from the URL


class RefundCreate(PaymentBase):
    pass  # amount is the positive sum received back


# -------------------------
# Update Payment Schema
# -------------------------
class PaymentUpdate(BaseModel):
    amount: Optional[float] = None
    payment_method: Optional[str] = None
    reference_number: Optional[str] = None
    notes: Optional[str] = None
    payment_date: Optional[date] = None


# -------------------------
# Output / Response Schema
# -------------------------
class PaymentOut(BaseModel):
    id: int
    payment_number: str
    invoice_id: int
    payment_date: date
    amount: float
    payment_method: str
    reference_number: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime

    is_refund: bool = False

    # Extras attached by the service
    invoice_number: Optional[str] = None
    vendor_name: Optional[str] = None
    invoice_total: Optional[float] = None
    invoice_pending: Optional[float] = None
    invoice_status: Optional[str] = None

    class Config:
        from_attributes = True
