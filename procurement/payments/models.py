from sqlalchemy import Column, Integer, Float, String, Date, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from datetime import datetime
from procurement.database import Base


class PurchasePayment(Base):
    __tablename__ = "purchase_payments"

    id = Column(Integer, primary_key=True, index=True)
    payment_number = Column(String(50), unique=True, index=True, nullable=False)

    invoice_id = Column(
        Integer,
        ForeignKey("purchase_invoices.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    payment_date = Column(Date, nullable=False)
    # Signed: positive is a payment to the vendor, negative is a refund from them
    amount = Column(Float, nullable=False)

    payment_method = Column(String(30), nullable=False, default="cash")  # cash / bank_transfer / upi / cheque / card
    reference_number = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    invoice = relationship("PurchaseInvoice", back_populates="payments")

    @property
    def invoice_number(self):
        return self.invoice.invoice_number if self.invoice else None

    @property
    def is_refund(self):
        return (self.amount or 0) < 0
