from sqlalchemy import Column, Integer, Float, ForeignKey, DateTime, Date, String
from sqlalchemy.orm import relationship
from datetime import datetime
from procurement.database import Base


class InventoryBatch(Base):
    __tablename__ = "inventory_batches"

    id = Column(Integer, primary_key=True, index=True)

    item_id = Column(Integer, ForeignKey("items.id"), nullable=False, index=True)
    item = relationship("Item")

    batch_number = Column(String(100), nullable=False)
    quantity = Column(Float, nullable=False)
    purchase_rate = Column(Float, nullable=False)
    expiry_date = Column(Date, nullable=True)

    # Provenance: the receipt that brought this stock in
    source_type = Column(String(20), default="purchase", nullable=False)
    source_invoice_id = Column(
        Integer,
        ForeignKey("purchase_invoices.id", ondelete="RESTRICT"),
        nullable=True,
        index=True
    )
    source_invoice = relationship("PurchaseInvoice", foreign_keys=[source_invoice_id])

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def item_name(self):
        return self.item.name if self.item else None
