"""Amount parsing and formatting in miliunits (1000 = 1.00)."""

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

MILIUNITS = 1000


def parse_amount(amount_str: str) -> int:
    """Parse a major-unit amount string into integer miliunits.

    Handles "123.45", "$123.45", "-123.45", "1,234.56" and "(123.45)"
    (negative in parentheses). Fractions below one miliunit are rounded
    half up.

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    text = amount_str.strip()
    is_negative = False
    if text.startswith("(") and text.endswith(")"):
        is_negative = True
        text = text[1:-1]

    text = re.sub(r"[$€£¥\s]", "", text).replace(",", "")

    try:
        value = Decimal(text)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if not value.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")

    miliunits = int((value * MILIUNITS).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    return -miliunits if is_negative else miliunits


def format_amount(miliunits: int, places: int = 2) -> str:
    """Format miliunits as a major-unit string with thousands separators.

    Examples:
        >>> format_amount(1234500)
        '1,234.50'
        >>> format_amount(-70)
        '-0.07'
    """
    value = (Decimal(miliunits) / MILIUNITS).quantize(
        Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP
    )
    return f"{value:,.{places}f}"
