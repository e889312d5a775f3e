"""Domain model entities for ledgerpost.

These are pure data classes representing bookkeeping concepts, independent of
database schema. The database layer converts its rows into these through the
mapper functions, so services never see ORM objects.
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from typing import Optional


class AccountType(str, enum.Enum):
    """Chart-of-accounts classification."""

    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"

    @property
    def is_debit_normal(self) -> bool:
        """True when a debit increases the balance of this account type."""
        return self in (AccountType.ASSET, AccountType.EXPENSE)


class TransactionType(str, enum.Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    TRANSFER = "TRANSFER"


class ReconciliationStatus(str, enum.Enum):
    UNRECONCILED = "UNRECONCILED"
    RECONCILED = "RECONCILED"
    EXCLUDED = "EXCLUDED"


class BalanceSource(str, enum.Enum):
    EXTERNALLY_SYNCED = "externally-synced"
    LOCALLY_CALCULATED = "locally-calculated"


class PostingTemplate(str, enum.Enum):
    """Optional hint selecting a more specific posting template.

    Records without a hint use the plain income/expense/transfer templates.
    """

    ASSET_PURCHASE = "asset_purchase"
    INVENTORY_PURCHASE = "inventory_purchase"
    LOAN_PAYMENT = "loan_payment"
    CREDIT_CARD_PAYMENT = "credit_card_payment"
    TAX_PAYMENT = "tax_payment"
    CUSTOMER_PAYMENT = "customer_payment"
    VENDOR_PAYMENT = "vendor_payment"
    PAYROLL = "payroll"


@dataclass(frozen=True)
class Business:
    """Business (tenant) owning a chart of accounts and a ledger."""

    id: int
    name: str
    created_at: datetime


@dataclass(frozen=True)
class Account:
    """Chart-of-accounts entry."""

    id: int
    business_id: int
    code: str
    name: str
    type: AccountType
    parent_id: Optional[int]
    description: Optional[str]
    is_active: bool
    created_at: datetime


@dataclass(frozen=True)
class BankAccount:
    """Bank account linked to its chart-of-accounts representation."""

    id: int
    business_id: int
    name: str
    ledger_account_id: int
    balance_source: BalanceSource
    external_balance: Optional[Decimal]
    last_synced_at: Optional[datetime]
    created_at: datetime

    @property
    def is_externally_synced(self) -> bool:
        return self.balance_source == BalanceSource.EXTERNALLY_SYNCED


@dataclass(frozen=True)
class Transaction:
    """Persisted transaction (the owner of its postings)."""

    id: int
    business_id: int
    bank_account_id: Optional[int]
    type: TransactionType
    amount: Decimal
    date: date
    description: str
    reference: Optional[str]
    external_id: Optional[str]
    category_account_id: Optional[int]
    reconciliation_status: ReconciliationStatus
    created_at: datetime


@dataclass(frozen=True)
class Posting:
    """Persisted journal entry line."""

    id: int
    transaction_id: int
    account_id: int
    debit_amount: Decimal
    credit_amount: Decimal
    description: Optional[str]


@dataclass(frozen=True)
class PostingLine:
    """Journal entry line produced by the posting factory, not yet persisted.

    Exactly one of ``debit_amount`` and ``credit_amount`` is non-zero.
    """

    account_id: int
    debit_amount: Decimal = Decimal("0")
    credit_amount: Decimal = Decimal("0")
    description: Optional[str] = None

    @classmethod
    def debit(cls, account_id: int, amount: Decimal, description: Optional[str] = None) -> "PostingLine":
        return cls(account_id=account_id, debit_amount=amount, description=description)

    @classmethod
    def credit(cls, account_id: int, amount: Decimal, description: Optional[str] = None) -> "PostingLine":
        return cls(account_id=account_id, credit_amount=amount, description=description)


@dataclass(frozen=True)
class RawTransaction:
    """Incoming transaction descriptor, as produced by file parsing or feed sync.

    ``amount`` is a non-negative magnitude; ``direction`` carries the sign.
    For transfers, ``counterparty_account_id`` is the other asset/liability
    account and ``inbound`` tells whether funds arrive into the bank account.
    """

    date: Optional[date]
    description: str
    amount: Decimal
    direction: TransactionType
    category: Optional[str] = None
    reference: Optional[str] = None
    external_id: Optional[str] = None
    bank_account_id: Optional[int] = None
    template: Optional[PostingTemplate] = None
    tax_amount: Optional[Decimal] = None
    principal_amount: Optional[Decimal] = None
    interest_amount: Optional[Decimal] = None
    counterparty_account_id: Optional[int] = None
    inbound: bool = False
    selected: bool = True


@dataclass(frozen=True)
class PendingTransaction:
    """A validated transaction and its postings, ready to be written."""

    business_id: int
    bank_account_id: Optional[int]
    type: TransactionType
    amount: Decimal
    date: date
    description: str
    postings: tuple[PostingLine, ...]
    reference: Optional[str] = None
    external_id: Optional[str] = None
    category_account_id: Optional[int] = None
    reconciliation_status: ReconciliationStatus = ReconciliationStatus.UNRECONCILED


@dataclass(frozen=True)
class DuplicateMatch:
    """Existing transaction that scored against a candidate."""

    transaction_id: int
    date: date
    amount: Decimal
    description: str
    confidence: float


@dataclass(frozen=True)
class DuplicateCheckResult:
    is_duplicate: bool
    confidence: float
    match: Optional[DuplicateMatch] = None

    @property
    def is_possible_match(self) -> bool:
        """A scored match below the duplicate threshold, for manual review."""
        return self.match is not None and not self.is_duplicate


@dataclass(frozen=True)
class RowError:
    row: int
    message: str


@dataclass(frozen=True)
class SkippedRow:
    row: int
    reason: str


@dataclass(frozen=True)
class PossibleMatch:
    row: int
    transaction_id: int
    confidence: float


@dataclass(frozen=True)
class ImportProgress:
    processed: int
    total: int
    current_batch: int
    total_batches: int


@dataclass
class ImportResult:
    """Outcome of a batch import run.

    ``imported_count + failed_count + skipped_count`` always equals the number
    of input rows once the precondition check has passed.
    """

    success: bool
    total: int = 0
    imported_count: int = 0
    failed_count: int = 0
    skipped_count: int = 0
    transaction_ids: list[int] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)
    skipped: list[SkippedRow] = field(default_factory=list)
    possible_matches: list[PossibleMatch] = field(default_factory=list)
    cancelled: bool = False
    error: Optional[str] = None


@dataclass(frozen=True)
class BalanceResult:
    account_id: int
    calculated_balance: Decimal
    balance_source: BalanceSource
    last_calculated: Optional[datetime]


@dataclass(frozen=True)
class ReconciliationResult:
    bank_account_id: int
    api_balance: Decimal
    calculated_balance: Decimal
    difference: Decimal
    is_reconciled: bool
    possible_reasons: tuple[str, ...] = ()


@dataclass(frozen=True)
class BalanceSummary:
    total_assets: Decimal
    total_liabilities: Decimal
    net_worth: Decimal
    by_account_type: dict[str, Decimal]
