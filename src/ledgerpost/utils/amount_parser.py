"""Amount parsing utilities."""

import re
from decimal import Decimal, InvalidOperation

from ledgerpost.domain.entities import TransactionType

CURRENCY_SYMBOLS = re.compile(r"[$€£¥]")


def parse_amount(amount_str: str) -> Decimal:
    """Parse a signed amount string into a Decimal.

    Handles the notations bank exports use:
    - "123.45", "-123.45"
    - "$123.45", "-$123.45"
    - "1,234.56"
    - "(123.45)" (negative in parentheses)
    - "123.45-" (trailing minus)

    Raises:
        ValueError: If amount string cannot be parsed or is not finite
    """
    if amount_str is None or not amount_str.strip():
        raise ValueError("Empty amount string")

    text = amount_str.strip()
    negative = False
    if text.startswith("(") and text.endswith(")"):
        negative = True
        text = text[1:-1]
    if text.endswith("-"):
        negative = True
        text = text[:-1]

    text = CURRENCY_SYMBOLS.sub("", text).replace(",", "").replace(" ", "")
    if text.startswith("-"):
        negative = not negative
        text = text[1:]
    elif text.startswith("+"):
        text = text[1:]

    try:
        amount = Decimal(text)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}'") from e
    if not amount.is_finite():
        raise ValueError(f"Amount '{amount_str}' is not a finite number")

    return -amount if negative else amount


def split_signed_amount(amount: Decimal) -> tuple[Decimal, TransactionType]:
    """Split a signed statement amount into magnitude and direction.

    Money in (positive) is income, money out (negative) is an expense.
    """
    if amount < 0:
        return -amount, TransactionType.EXPENSE
    return amount, TransactionType.INCOME
