"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional, Sequence
from datetime import date, datetime
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from ledgerpost.domain.entities import (
    Business,
    Account,
    AccountType,
    BankAccount,
    BalanceSource,
    Transaction,
    TransactionType,
    Posting,
    PostingLine,
    PendingTransaction,
    ReconciliationStatus,
)


class Database(ABC):
    """Abstract database interface for ledgerpost."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Business operations
    @abstractmethod
    def create_business(self, name: str) -> int:
        """Create a business. Returns business ID."""
        pass

    @abstractmethod
    def get_business(self, business_id: int) -> Optional[Business]:
        """Get business by ID."""
        pass

    @abstractmethod
    def list_businesses(self) -> list[Business]:
        """List all businesses."""
        pass

    # Chart of accounts operations
    @abstractmethod
    def create_account(
        self,
        business_id: int,
        code: str,
        name: str,
        account_type: AccountType,
        parent_id: Optional[int] = None,
        description: Optional[str] = None,
    ) -> int:
        """Create a chart-of-accounts entry. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def get_account_by_code(self, business_id: int, code: str) -> Optional[Account]:
        """Get account by its code within a business."""
        pass

    @abstractmethod
    def list_accounts(self, business_id: int, active_only: bool = True) -> list[Account]:
        """List a business's accounts ordered by code."""
        pass

    @abstractmethod
    def update_account(
        self,
        account_id: int,
        name: Optional[str] = None,
        account_type: Optional[AccountType] = None,
        is_active: Optional[bool] = None,
        description: Optional[str] = None,
    ) -> None:
        """Update account fields that are not None."""
        pass

    @abstractmethod
    def delete_account(self, account_id: int) -> None:
        """Delete an account."""
        pass

    @abstractmethod
    def get_account_posting_count(self, account_id: int) -> int:
        """Get count of postings against an account."""
        pass

    @abstractmethod
    def get_account_bank_account_count(self, account_id: int) -> int:
        """Get count of bank accounts linked to an account."""
        pass

    # Bank account operations
    @abstractmethod
    def create_bank_account(
        self,
        business_id: int,
        name: str,
        ledger_account_id: int,
        balance_source: BalanceSource = BalanceSource.LOCALLY_CALCULATED,
        external_balance: Optional[Decimal] = None,
        last_synced_at: Optional[datetime] = None,
    ) -> int:
        """Create a bank account. Returns bank account ID."""
        pass

    @abstractmethod
    def get_bank_account(self, bank_account_id: int) -> Optional[BankAccount]:
        """Get bank account by ID."""
        pass

    @abstractmethod
    def list_bank_accounts(self, business_id: int) -> list[BankAccount]:
        """List a business's bank accounts."""
        pass

    @abstractmethod
    def update_external_balance(
        self, bank_account_id: int, balance: Decimal, synced_at: datetime
    ) -> None:
        """Record the latest externally reported balance."""
        pass

    # Transaction operations
    @abstractmethod
    def write_batch(
        self, transactions: Sequence[PendingTransaction], timeout: Optional[float] = None
    ) -> list[int]:
        """Write transactions and their postings as one atomic unit.

        Returns the new transaction IDs in input order.

        Raises:
            InvariantViolation: If any transaction's postings do not balance
            TransientWriteError: On timeout or lock contention (after rollback)
        """
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        business_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        bank_account_id: Optional[int] = None,
    ) -> list[Transaction]:
        """List transactions with optional filters, newest first."""
        pass

    @abstractmethod
    def get_postings(self, transaction_id: int) -> list[Posting]:
        """Get the postings of a transaction."""
        pass

    @abstractmethod
    def replace_postings(
        self,
        transaction_id: int,
        postings: Sequence[PostingLine],
        category_account_id: Optional[int] = None,
    ) -> None:
        """Atomically replace a transaction's postings."""
        pass

    @abstractmethod
    def update_reconciliation_status(
        self, transaction_id: int, status: ReconciliationStatus
    ) -> None:
        """Update a transaction's reconciliation status."""
        pass

    @abstractmethod
    def delete_transaction(self, transaction_id: int) -> None:
        """Delete a transaction and its postings."""
        pass

    @abstractmethod
    def external_id_exists(self, business_id: int, external_id: str) -> bool:
        """Check if a transaction with the external ID exists for the business."""
        pass

    @abstractmethod
    def find_transactions_in_window(
        self,
        business_id: int,
        bank_account_id: Optional[int],
        transaction_type: TransactionType,
        start_date: date,
        end_date: date,
        min_amount: Decimal,
        max_amount: Decimal,
    ) -> list[Transaction]:
        """Find every transaction inside a date and amount window (duplicate candidates)."""
        pass

    @abstractmethod
    def find_transaction_by_description(
        self,
        bank_account_id: int,
        description: str,
        transaction_type: TransactionType,
    ) -> Optional[Transaction]:
        """Find a bank account's transaction by exact description and type."""
        pass

    @abstractmethod
    def sum_postings(
        self, account_id: int, as_of: Optional[date] = None
    ) -> tuple[Decimal, Decimal]:
        """Sum an account's postings.

        Args:
            account_id: Account ID
            as_of: Only include transactions dated on or before this date

        Returns:
            (total_debits, total_credits)
        """
        pass
