from sqlalchemy import Column, Integer, Float, ForeignKey, DateTime, Date, String, Text, Boolean
from sqlalchemy.orm import relationship
from datetime import datetime
from procurement.database import Base


PAYMENT_PENDING = "pending"
PAYMENT_PARTIAL = "partial"
PAYMENT_PAID = "paid"


class PurchaseInvoice(Base):
    """Goods receipt: the vendor's invoice for goods physically received."""
    __tablename__ = "purchase_invoices"

    id = Column(Integer, primary_key=True, index=True)

    invoice_number = Column(String(100), index=True, nullable=False)

    po_id = Column(
        Integer,
        ForeignKey("purchase_orders.id", ondelete="RESTRICT"),
        nullable=True,
        index=True
    )

    vendor_id = Column(
        Integer,
        ForeignKey("vendors.id", ondelete="RESTRICT"),
        nullable=True,
        index=True
    )
    is_unregistered_vendor = Column(Boolean, default=False, nullable=False)
    unregistered_vendor_name = Column(String, nullable=True)
    unregistered_vendor_phone = Column(String, nullable=True)

    invoice_date = Column(Date, nullable=False)
    received_date = Column(Date, nullable=False)

    subtotal = Column(Float, default=0)
    cgst_amount = Column(Float, default=0)
    sgst_amount = Column(Float, default=0)
    igst_amount = Column(Float, default=0)
    additional_charges = Column(Float, default=0)
    discount_amount = Column(Float, default=0)
    round_off = Column(Float, default=0)
    total_amount = Column(Float, nullable=False, default=0)

    # Payment aggregates; only procurement.payments.service writes these
    paid_amount = Column(Float, nullable=False, default=0)
    pending_amount = Column(Float, nullable=False, default=0)
    payment_status = Column(String(20), nullable=False, default=PAYMENT_PENDING, index=True)

    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    vendor = relationship("Vendor")
    purchase_order = relationship("PurchaseOrder")
    lines = relationship(
        "PurchaseInvoiceLine",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="PurchaseInvoiceLine.id",
    )
    payments = relationship(
        "PurchasePayment",
        back_populates="invoice",
        order_by="PurchasePayment.id",
    )

    @property
    def vendor_name(self):
        if self.vendor:
            return self.vendor.name
        return self.unregistered_vendor_name

    @property
    def po_number(self):
        return self.purchase_order.po_number if self.purchase_order else None


class PurchaseInvoiceLine(Base):
    __tablename__ = "purchase_invoice_lines"

    id = Column(Integer, primary_key=True, index=True)

    invoice_id = Column(
        Integer,
        ForeignKey("purchase_invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    item_id = Column(Integer, ForeignKey("items.id", ondelete="RESTRICT"), nullable=False)

    # Set when the receipt was taken against an order
    po_line_id = Column(
        Integer,
        ForeignKey("purchase_order_lines.id", ondelete="RESTRICT"),
        nullable=True,
        index=True
    )

    batch_number = Column(String(100), nullable=True)
    expiry_date = Column(Date, nullable=True)
    quantity = Column(Float, nullable=False)
    rate = Column(Float, nullable=False)
    gst_rate = Column(Float, nullable=False, default=0)
    amount = Column(Float, nullable=False)

    inventory_batch_id = Column(
        Integer,
        ForeignKey("inventory_batches.id", ondelete="SET NULL"),
        nullable=True
    )

    created_at = Column(DateTime, default=datetime.utcnow)

    invoice = relationship("PurchaseInvoice", back_populates="lines")
    item = relationship("Item")
    inventory_batch = relationship("InventoryBatch", foreign_keys=[inventory_batch_id])

    @property
    def item_name(self):
        return self.item.name if self.item else None
