from decimal import ROUND_HALF_UP, Decimal
from email.utils import formatdate
from typing import Optional, Union

Number = Union[int, float, Decimal]


def format_usd(value: Optional[Number], decimals: int = 4) -> str:
    if value is None:
        return "N/A"
    return f"${float(value):,.{decimals}f}"


def format_price(value: Optional[Number]) -> str:
    if value is None:
        return "N/A"
    num = float(value)
    if abs(num) >= 1:
        return f"${num:,.2f}"
    if abs(num) >= 0.01:
        return f"${num:,.4f}"
    return f"${num:,.8f}"


def format_token_amount(value: Optional[Number]) -> str:
    """Grouped amount with up to 3 fraction digits; amounts below 0.001 keep their full precision."""
    if value is None:
        return "N/A"
    amount = Decimal(str(value))
    if abs(amount) >= Decimal("0.001"):
        amount = amount.quantize(Decimal("0.001"), rounding=ROUND_HALF_UP)
    text = f"{amount:,f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_date_utc(timestamp: Optional[int]) -> str:
    """Render a unix timestamp as an RFC 1123 date, e.g. ``Tue, 14 Nov 2023 22:13:20 GMT``."""
    if timestamp is None:
        return "N/A"
    return formatdate(int(timestamp), usegmt=True)
