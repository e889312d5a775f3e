"""Read raw transactions from a CSV statement export.

Recognised columns (header names are case-insensitive):

- ``date`` and ``description``: required
- ``amount``: signed amount; positive is money in, negative money out.
  Alternatively ``debit``/``credit`` columns holding unsigned amounts.
- ``type``: optional INCOME, EXPENSE or TRANSFER overriding the sign
- ``category``, ``reference``, ``external_id`` (or ``id``), ``template``,
  ``tax_amount``: optional

Values that cannot be parsed are passed through as missing (dates) or NaN
(amounts) so the importer reports them as row errors at their original
position instead of silently dropping rows.
"""

import csv
from decimal import Decimal
from pathlib import Path
from typing import Optional

from ledgerpost.domain.entities import PostingTemplate, RawTransaction, TransactionType
from ledgerpost.utils.amount_parser import parse_amount, split_signed_amount
from ledgerpost.utils.date_parser import parse_date_or_none

NAN = Decimal("NaN")

EXTERNAL_ID_COLUMNS = ("external_id", "id", "transaction_id")


def _clean(row: dict[str, Optional[str]], *names: str) -> Optional[str]:
    for name in names:
        value = row.get(name)
        if value is not None and value.strip():
            return value.strip()
    return None


def _amount_or_nan(value: Optional[str]) -> Decimal:
    if value is None:
        return NAN
    try:
        return parse_amount(value)
    except ValueError:
        return NAN


def row_to_raw(
    row: dict[str, Optional[str]],
    bank_account_id: Optional[int] = None,
    dayfirst: bool = False,
) -> RawTransaction:
    """Convert one CSV row (keys lower-cased) into a RawTransaction."""
    amount_text = _clean(row, "amount")
    if amount_text is not None:
        signed = _amount_or_nan(amount_text)
    else:
        debit = _clean(row, "debit")
        credit = _clean(row, "credit")
        if debit is not None:
            signed = -abs(_amount_or_nan(debit))
        elif credit is not None:
            signed = abs(_amount_or_nan(credit))
        else:
            signed = NAN

    if signed.is_nan():
        amount, direction = signed, TransactionType.EXPENSE
    else:
        amount, direction = split_signed_amount(signed)

    type_text = _clean(row, "type", "direction")
    if type_text is not None and type_text.upper() in TransactionType.__members__:
        direction = TransactionType[type_text.upper()]

    template = None
    template_text = _clean(row, "template")
    if template_text is not None:
        template = PostingTemplate(template_text.lower())

    tax_text = _clean(row, "tax_amount")

    return RawTransaction(
        date=parse_date_or_none(_clean(row, "date"), dayfirst=dayfirst),
        description=_clean(row, "description") or "",
        amount=amount,
        direction=direction,
        category=_clean(row, "category"),
        reference=_clean(row, "reference"),
        external_id=_clean(row, *EXTERNAL_ID_COLUMNS),
        bank_account_id=bank_account_id,
        template=template,
        tax_amount=abs(_amount_or_nan(tax_text)) if tax_text is not None else None,
    )


def read_csv_records(
    csv_file_path: str,
    bank_account_id: Optional[int] = None,
    dayfirst: bool = False,
) -> list[RawTransaction]:
    """Read every data row of a CSV file as a RawTransaction, in file order.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file has no header or lacks required columns, or
            a row names an unknown template
    """
    csv_path = Path(csv_file_path)
    if not csv_path.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_file_path}")

    with open(csv_path, "r", encoding="utf-8-sig", newline="") as f:
        sample = f.read(1024)
        f.seek(0)
        try:
            delimiter = csv.Sniffer().sniff(sample, delimiters=",;\t").delimiter
        except csv.Error:
            delimiter = ","

        reader = csv.DictReader(f, delimiter=delimiter)
        if reader.fieldnames is None:
            raise ValueError("CSV file has no columns")

        columns = {name.strip().lower() for name in reader.fieldnames if name}
        missing = {"date", "description"} - columns
        if not ({"amount"} & columns or {"debit", "credit"} & columns):
            missing.add("amount")
        if missing:
            raise ValueError(f"CSV file missing required columns: {', '.join(sorted(missing))}")

        records = []
        for line_number, row in enumerate(reader, start=2):
            normalized = {
                (key or "").strip().lower(): value for key, value in row.items() if key
            }
            try:
                records.append(row_to_raw(normalized, bank_account_id, dayfirst))
            except ValueError as e:
                raise ValueError(f"Line {line_number}: {e}") from e
        return records
