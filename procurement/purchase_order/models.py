from sqlalchemy import Boolean, Column, Integer, Float, ForeignKey, DateTime, Date, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from procurement.database import Base


PO_PENDING = "pending"
PO_PARTIAL = "partial"
PO_RECEIVED = "received"
PO_CANCELLED = "cancelled"


class PurchaseOrder(Base):
    __tablename__ = "purchase_orders"

    id = Column(Integer, primary_key=True, index=True)
    po_number = Column(String(50), unique=True, index=True, nullable=False)

    vendor_id = Column(
        Integer,
        ForeignKey("vendors.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    po_date = Column(Date, nullable=False)
    expected_delivery_date = Column(Date, nullable=True)

    # Cache of the line ledger; only procurement.purchase_order.ledger writes it
    status = Column(String(20), default=PO_PENDING, nullable=False, index=True)

    subtotal = Column(Float, default=0)
    cgst_amount = Column(Float, default=0)
    sgst_amount = Column(Float, default=0)
    igst_amount = Column(Float, default=0)
    additional_charges = Column(Float, default=0)
    discount_amount = Column(Float, default=0)
    round_off = Column(Float, default=0)
    total_amount = Column(Float, default=0)
    # Round-off choice made at creation; edits recompute with it
    apply_round_off = Column(Boolean, default=False, nullable=False)

    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    vendor = relationship("Vendor")
    lines = relationship(
        "PurchaseOrderLine",
        back_populates="purchase_order",
        cascade="all, delete-orphan",
        order_by="PurchaseOrderLine.id",
    )

    @property
    def vendor_name(self):
        return self.vendor.name if self.vendor else None


class PurchaseOrderLine(Base):
    __tablename__ = "purchase_order_lines"

    id = Column(Integer, primary_key=True, index=True)

    po_id = Column(
        Integer,
        ForeignKey("purchase_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    item_id = Column(Integer, ForeignKey("items.id", ondelete="RESTRICT"), nullable=False)

    quantity = Column(Float, nullable=False)
    rate = Column(Float, nullable=False)
    gst_rate = Column(Float, nullable=False, default=0)
    # quantity x rate x (1 + gst_rate/100), refreshed whenever those change
    amount = Column(Float, nullable=False)

    received_quantity = Column(Float, nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)

    purchase_order = relationship("PurchaseOrder", back_populates="lines")
    item = relationship("Item")

    __table_args__ = (
        UniqueConstraint("po_id", "item_id", name="uq_po_line_item"),
    )

    @property
    def item_name(self):
        return self.item.name if self.item else None

    @property
    def pending_quantity(self):
        return max((self.quantity or 0) - (self.received_quantity or 0), 0)
