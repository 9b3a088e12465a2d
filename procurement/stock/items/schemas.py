from pydantic import BaseModel, ConfigDict, validator
from typing import Optional
from datetime import datetime

from procurement.utils.gst import GST_RATES


def _check_gst_rate(v):
    if v is not None and v not in GST_RATES:
        raise ValueError(f"GST rate must be one of {list(GST_RATES)}")
    return v


class ItemBase(BaseModel):
    name: str
    barcode: Optional[str] = None
    hsn_code: Optional[str] = None
    gst_rate: float = 0
    wholesale_price: Optional[float] = None
    min_stock_level: float = 0

    @validator("gst_rate")
    def gst_rate_is_standard(cls, v):
        return _check_gst_rate(v)


class ItemCreate(ItemBase):
    pass


class ItemUpdate(BaseModel):
    name: Optional[str] = None
    barcode: Optional[str] = None
    hsn_code: Optional[str] = None
    gst_rate: Optional[float] = None
    wholesale_price: Optional[float] = None
    min_stock_level: Optional[float] = None
    is_active: Optional[bool] = None

    @validator("gst_rate")
    def gst_rate_is_standard(cls, v):
        return _check_gst_rate(v)


class ItemOut(ItemBase):
    id: int
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ItemImportResult(BaseModel):
    message: str
    imported: int
    skipped: int
