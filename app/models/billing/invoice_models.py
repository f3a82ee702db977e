from sqlalchemy import Column, Integer, String, Text, Date, ForeignKey, Numeric, Enum, Index, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from decimal import Decimal
from app.core.db import Base
from app.models.base.mixins import TimestampMixin, OwnerMixin
from app.models.enums.invoice_status import InvoiceStatus
from app.models.enums.gst_type import GSTType


class Invoice(Base, TimestampMixin, OwnerMixin):
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True)
    invoice_number = Column(String(50), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="SET NULL"), nullable=True, index=True)
    status = Column(Enum(InvoiceStatus), nullable=False, default=InvoiceStatus.pending, index=True)

    issue_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=True)
    currency = Column(String(3), nullable=False, default="INR")

    # client snapshot captured at invoice time
    client_name = Column(String(255), nullable=True)
    client_email = Column(String(255), nullable=True)
    client_phone = Column(String(20), nullable=True)
    client_address = Column(Text, nullable=True)
    client_gstin = Column(String(15), nullable=True)

    company_gstin = Column(String(15), nullable=True)
    place_of_supply = Column(String(100), nullable=True)

    gst_type = Column(Enum(GSTType), nullable=False, default=GSTType.igst)
    cgst_rate = Column(Numeric(5, 2), nullable=False, default=Decimal("9"))
    sgst_rate = Column(Numeric(5, 2), nullable=False, default=Decimal("9"))
    igst_rate = Column(Numeric(5, 2), nullable=False, default=Decimal("18"))

    subtotal = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    cgst_amount = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    sgst_amount = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    igst_amount = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    tax_amount = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    discount_amount = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    # may go negative when the discount exceeds subtotal + tax
    total = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))

    notes = Column(Text, nullable=True)
    upi_id = Column(String(100), nullable=True)
    payment_amount = Column(Numeric(14, 2), nullable=True)
    payment_qr = Column(Text, nullable=True)

    items = relationship(
        "InvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="InvoiceItem.position",
    )
    client = relationship("Client", back_populates="invoices", lazy="noload")

    __table_args__ = (
        UniqueConstraint("user_id", "invoice_number", name="uq_invoice_user_number"),
        Index("ix_invoice_user_status", "user_id", "status"),
        CheckConstraint("discount_amount >= 0", name="ck_invoice_discount_non_negative"),
    )

    def __repr__(self):
        return f"<Invoice {self.invoice_number} status={self.status}>"


class InvoiceItem(Base, TimestampMixin):
    __tablename__ = "invoice_items"

    id = Column(Integer, primary_key=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)

    description = Column(String(500), nullable=False)
    hsn_sac_code = Column(String(20), nullable=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)

    cgst_rate = Column(Numeric(5, 2), nullable=False, default=Decimal("0.00"))
    sgst_rate = Column(Numeric(5, 2), nullable=False, default=Decimal("0.00"))
    igst_rate = Column(Numeric(5, 2), nullable=False, default=Decimal("0.00"))
    cgst_amount = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    sgst_amount = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    igst_amount = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))

    taxable_amount = Column(Numeric(14, 2), nullable=False)
    # tax-exclusive; previews add the tax on top
    total = Column(Numeric(14, 2), nullable=False)

    invoice = relationship("Invoice", back_populates="items", lazy="noload")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_invoice_item_qty_positive"),
        CheckConstraint("unit_price >= 0", name="ck_invoice_item_price_non_negative"),
    )

    def __repr__(self):
        return f"<InvoiceItem id={self.id} qty={self.quantity} total={self.total}>"
