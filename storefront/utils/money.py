# storefront/utils/money.py

from decimal import Decimal, ROUND_HALF_UP

Money = Decimal
ZERO = Decimal("0.00")
# capacity of the Numeric(12, 2) money columns
MAX_MONEY = Decimal("9999999999.99")

def D(x) -> Money:
    return x if isinstance(x, Decimal) else Decimal(str(x or "0"))

def round_money(x: Money) -> Money:
    return D(x).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

def line_subtotal(qty: int, unit_price) -> Money:
    return round_money(D(unit_price) * qty)

def to_float(x) -> float:
    return float(round_money(x))
