from sqlalchemy import Column, Integer, String, Float, DateTime, Boolean
from datetime import datetime
from procurement.database import Base


class Item(Base):
    __tablename__ = "items"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)

    # Scanned codes resolve to this row
    barcode = Column(String, unique=True, nullable=True, index=True)
    hsn_code = Column(String, nullable=True)

    gst_rate = Column(Float, nullable=False, default=0)
    wholesale_price = Column(Float, nullable=True)
    min_stock_level = Column(Float, default=0)

    is_active = Column(Boolean, default=True, nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)
