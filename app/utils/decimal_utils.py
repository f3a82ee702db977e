# app/utils/decimal_utils.py
from decimal import Decimal, ROUND_HALF_UP, localcontext

TWOPLACES = Decimal("0.01")

def to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    # quantize needs room for every integer digit plus the two decimals
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        return value.quantize(TWOPLACES, rounding=ROUND_HALF_UP)
