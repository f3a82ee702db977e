"""
GST computation for invoice line items and invoice aggregates.

Everything here is a pure function of its inputs. Bad numeric input never
raises: it degrades to zero so one malformed line cannot break the whole
invoice. Amounts keep full Decimal precision; rounding happens only when a
value is formatted for display or written to a Numeric column.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional

from app.models.enums.gst_type import GSTType

ZERO = Decimal("0")
HUNDRED = Decimal("100")

DEFAULT_CGST_RATE = Decimal("9")
DEFAULT_SGST_RATE = Decimal("9")
DEFAULT_IGST_RATE = Decimal("18")

# user-supplied numbers of 10^13 and above are treated as garbage
MAX_INPUT_EXPONENT = 12
# bound for computed line values fed back into the aggregate
MAX_LINE_EXPONENT = 40


@dataclass(frozen=True)
class TaxRates:
    cgst_rate: Decimal = DEFAULT_CGST_RATE
    sgst_rate: Decimal = DEFAULT_SGST_RATE
    igst_rate: Decimal = DEFAULT_IGST_RATE


@dataclass(frozen=True)
class ItemTaxBreakdown:
    taxable_amount: Decimal
    cgst_amount: Decimal
    sgst_amount: Decimal
    igst_amount: Decimal
    # stored line total, tax-exclusive
    total: Decimal

    @property
    def tax_amount(self) -> Decimal:
        return self.cgst_amount + self.sgst_amount + self.igst_amount

    @property
    def display_total(self) -> Decimal:
        """Line total as rendered on previews and PDFs (tax-inclusive)."""
        return self.taxable_amount + self.tax_amount


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: Decimal
    total_cgst: Decimal
    total_sgst: Decimal
    total_igst: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total: Decimal


# =====================================================
# COERCION
# =====================================================
def to_amount(value: Any, max_exponent: int = MAX_INPUT_EXPONENT) -> Decimal:
    """Non-negative Decimal; anything unparsable, negative or absurdly large becomes 0."""
    if value is None or isinstance(value, bool):
        return ZERO
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return ZERO
    if not amount.is_finite() or amount < ZERO:
        return ZERO
    if amount and amount.adjusted() > max_exponent:
        return ZERO
    return amount


def to_quantity(value: Any) -> int:
    """Non-negative integer; fractional input is truncated."""
    return int(to_amount(value))


def parse_gst_type(value: Any) -> GSTType:
    if isinstance(value, GSTType):
        return value
    try:
        return GSTType(str(value))
    except ValueError:
        return GSTType.cgst_sgst


# =====================================================
# PER ITEM
# =====================================================
def compute_item(
    quantity: Any,
    unit_price: Any,
    gst_type: Any,
    rates: Optional[TaxRates] = None,
) -> ItemTaxBreakdown:
    rates = rates or TaxRates()
    taxable = to_quantity(quantity) * to_amount(unit_price)

    if parse_gst_type(gst_type) == GSTType.igst:
        igst = taxable * to_amount(rates.igst_rate) / HUNDRED
        cgst = sgst = ZERO
    else:
        cgst = taxable * to_amount(rates.cgst_rate) / HUNDRED
        sgst = taxable * to_amount(rates.sgst_rate) / HUNDRED
        igst = ZERO

    return ItemTaxBreakdown(
        taxable_amount=taxable,
        cgst_amount=cgst,
        sgst_amount=sgst,
        igst_amount=igst,
        total=taxable,
    )


# =====================================================
# INVOICE AGGREGATE
# =====================================================
def compute_invoice_totals(items: Iterable[Any], discount_amount: Any = ZERO) -> InvoiceTotals:
    """
    Aggregate line items into invoice totals.

    ``items`` may be ``ItemTaxBreakdown`` values or any objects exposing
    ``total``, ``cgst_amount``, ``sgst_amount`` and ``igst_amount`` (ORM rows
    included). The discount is subtracted after tax and the result is not
    floored: a discount larger than subtotal + tax yields a negative total.
    """
    subtotal = total_cgst = total_sgst = total_igst = ZERO

    for item in items:
        subtotal += to_amount(getattr(item, "total", ZERO), MAX_LINE_EXPONENT)
        total_cgst += to_amount(getattr(item, "cgst_amount", ZERO), MAX_LINE_EXPONENT)
        total_sgst += to_amount(getattr(item, "sgst_amount", ZERO), MAX_LINE_EXPONENT)
        total_igst += to_amount(getattr(item, "igst_amount", ZERO), MAX_LINE_EXPONENT)

    tax_amount = total_cgst + total_sgst + total_igst
    discount = to_amount(discount_amount)

    return InvoiceTotals(
        subtotal=subtotal,
        total_cgst=total_cgst,
        total_sgst=total_sgst,
        total_igst=total_igst,
        tax_amount=tax_amount,
        discount_amount=discount,
        total=subtotal + tax_amount - discount,
    )
