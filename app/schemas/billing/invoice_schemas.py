from pydantic import BaseModel, Field, ConfigDict, EmailStr
from typing import Any, List, Optional
from decimal import Decimal
from datetime import datetime, date

from app.models.enums.invoice_status import InvoiceStatus
from app.models.enums.gst_type import GSTType


# =====================================================
# BASE
# =====================================================
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


Rate = Optional[Decimal]

# mirrors the Numeric(5, 2) / Numeric(14, 2) columns
RATE_DIGITS = {"max_digits": 5, "decimal_places": 2}
AMOUNT_DIGITS = {"max_digits": 14, "decimal_places": 2}


# =====================================================
# ITEM INPUTS
# =====================================================
class InvoiceItemCreate(BaseModel):
    description: str = Field(min_length=1, max_length=500)
    hsn_sac_code: Optional[str] = Field(None, max_length=20)
    quantity: int = Field(gt=0, le=1_000_000)
    unit_price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)

    # fall back to the invoice-level rates when omitted
    cgst_rate: Rate = Field(None, ge=0, le=100, **RATE_DIGITS)
    sgst_rate: Rate = Field(None, ge=0, le=100, **RATE_DIGITS)
    igst_rate: Rate = Field(None, ge=0, le=100, **RATE_DIGITS)


# =====================================================
# ITEM OUTPUT
# =====================================================
class InvoiceItemOut(ORMBase):
    id: int
    position: int
    description: str
    hsn_sac_code: Optional[str]
    quantity: int
    unit_price: Decimal

    cgst_rate: Decimal
    sgst_rate: Decimal
    igst_rate: Decimal
    cgst_amount: Decimal
    sgst_amount: Decimal
    igst_amount: Decimal

    taxable_amount: Decimal
    total: Decimal
    display_total: Decimal


# =====================================================
# CREATE / UPDATE
# =====================================================
class InvoiceBase(BaseModel):
    invoice_number: Optional[str] = Field(None, max_length=50)
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    currency: str = Field("INR", min_length=3, max_length=3)

    client_id: Optional[int] = None
    client_name: Optional[str] = Field(None, max_length=255)
    client_email: Optional[EmailStr] = None
    client_phone: Optional[str] = Field(None, max_length=20)
    client_address: Optional[str] = None
    client_gstin: Optional[str] = Field(None, max_length=15)

    company_gstin: Optional[str] = Field(None, max_length=15)
    place_of_supply: Optional[str] = Field(None, max_length=100)

    gst_type: GSTType = GSTType.igst
    cgst_rate: Decimal = Field(Decimal("9"), ge=0, le=100, **RATE_DIGITS)
    sgst_rate: Decimal = Field(Decimal("9"), ge=0, le=100, **RATE_DIGITS)
    igst_rate: Decimal = Field(Decimal("18"), ge=0, le=100, **RATE_DIGITS)

    discount_amount: Decimal = Field(Decimal("0"), ge=0, **AMOUNT_DIGITS)
    notes: Optional[str] = None

    upi_id: Optional[str] = Field(None, max_length=100)
    payment_amount: Optional[Decimal] = Field(None, ge=0, **AMOUNT_DIGITS)

    items: List[InvoiceItemCreate] = Field(min_length=1)


class InvoiceCreate(InvoiceBase):
    pass


class InvoiceUpdate(InvoiceBase):
    pass


class InvoiceStatusChange(BaseModel):
    status: InvoiceStatus


class InvoiceEmailRequest(BaseModel):
    to: EmailStr
    subject: Optional[str] = Field(None, max_length=200)
    message: Optional[str] = Field(None, max_length=5000)


# =====================================================
# SINGLE INVOICE OUTPUT
# =====================================================
class InvoiceOut(ORMBase):
    id: int
    invoice_number: str
    client_id: Optional[int]
    status: InvoiceStatus

    issue_date: date
    due_date: Optional[date]
    currency: str

    client_name: Optional[str]
    client_email: Optional[str]
    client_phone: Optional[str]
    client_address: Optional[str]
    client_gstin: Optional[str]
    company_gstin: Optional[str]
    place_of_supply: Optional[str]

    gst_type: GSTType
    cgst_rate: Decimal
    sgst_rate: Decimal
    igst_rate: Decimal

    subtotal: Decimal
    cgst_amount: Decimal
    sgst_amount: Decimal
    igst_amount: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total: Decimal

    notes: Optional[str]
    upi_id: Optional[str]
    payment_amount: Optional[Decimal]
    payment_qr: Optional[str]

    created_at: datetime
    updated_at: Optional[datetime]

    items: List[InvoiceItemOut]


# =====================================================
# LIST VIEW
# =====================================================
class InvoiceListItem(BaseModel):
    id: int
    invoice_number: str
    client_name: Optional[str]
    issue_date: date
    due_date: Optional[date]
    currency: str
    total: Decimal
    status: InvoiceStatus


class InvoiceListData(BaseModel):
    total: int
    items: List[InvoiceListItem]


# =====================================================
# PREVIEW (lenient: bad numbers become 0)
# =====================================================
class PreviewItemIn(BaseModel):
    quantity: Any = 0
    unit_price: Any = 0
    cgst_rate: Any = None
    sgst_rate: Any = None
    igst_rate: Any = None


class PreviewRequest(BaseModel):
    currency: Any = "INR"
    gst_type: Any = GSTType.igst.value
    cgst_rate: Any = Decimal("9")
    sgst_rate: Any = Decimal("9")
    igst_rate: Any = Decimal("18")
    discount_amount: Any = 0
    items: List[PreviewItemIn] = []


class PreviewItemOut(BaseModel):
    taxable_amount: Decimal
    cgst_amount: Decimal
    sgst_amount: Decimal
    igst_amount: Decimal
    total: Decimal
    display_total: Decimal


class PreviewOut(BaseModel):
    items: List[PreviewItemOut]
    subtotal: Decimal
    total_cgst: Decimal
    total_sgst: Decimal
    total_igst: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total: Decimal
    formatted_total: str
