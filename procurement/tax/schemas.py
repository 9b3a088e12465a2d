from pydantic import BaseModel, Field
from typing import List, Optional


class TaxLine(BaseModel):
    quantity: float
    rate: float
    gst_rate: float = 0


class TaxAdjustments(BaseModel):
    additional_charges: float = 0
    discount_amount: float = 0
    apply_round_off: bool = False


class TaxTotals(BaseModel):
    subtotal: float
    cgst_amount: float
    sgst_amount: float
    igst_amount: float
    total_gst: float
    additional_charges: float = 0
    discount_amount: float = 0
    round_off: float = 0
    total_amount: float
    is_intrastate: bool


class TaxPreviewRequest(TaxAdjustments):
    lines: List[TaxLine] = Field(default_factory=list)
    vendor_id: Optional[int] = None
    # Used when no vendor is given (unregistered purchases are local)
    is_intrastate: bool = True
