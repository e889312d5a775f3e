"""Date parsing utilities."""

from datetime import date, timedelta
from typing import Optional

from dateutil import parser as date_parser


def parse_date(date_str: str, dayfirst: bool = False) -> date:
    """Parse a date string into a date object.

    Accepts the formats found in bank statements ("2024-01-15",
    "01/15/2024", "15 Jan 2024", ...) plus "today" and "yesterday".

    Args:
        date_str: Date string
        dayfirst: Read ambiguous numeric dates as day/month/year

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    if date_str is None or not date_str.strip():
        raise ValueError("Empty date string")

    text = date_str.strip().lower()
    today = date.today()
    if text == "today":
        return today
    if text == "yesterday":
        return today - timedelta(days=1)

    try:
        return date_parser.parse(text, dayfirst=dayfirst).date()
    except (ValueError, OverflowError, TypeError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}") from e


def parse_date_or_none(date_str: Optional[str], dayfirst: bool = False) -> Optional[date]:
    """Parse a date, returning None when the value is missing or unparseable."""
    if date_str is None:
        return None
    try:
        return parse_date(date_str, dayfirst=dayfirst)
    except ValueError:
        return None
