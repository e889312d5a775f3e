"""Utility functions for ledgerpost."""

from ledgerpost.utils.date_parser import parse_date
from ledgerpost.utils.amount_parser import parse_amount
from ledgerpost.utils.records import read_csv_records

__all__ = ["parse_date", "parse_amount", "read_csv_records"]
