# sportstore/utils/money.py
"""VND amounts. Arithmetic goes through Decimal; the API serializes floats."""
from decimal import Decimal, ROUND_HALF_UP


def D(x) -> Decimal:
    return x if isinstance(x, Decimal) else Decimal(str(x or "0"))


def round_money(x) -> Decimal:
    return D(x).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def format_price(value, symbol="₫") -> str:
    # 1250000 -> "1.250.000₫"
    n = int(round_money(value).to_integral_value(rounding=ROUND_HALF_UP))
    return f"{n:,}".replace(",", ".") + symbol
