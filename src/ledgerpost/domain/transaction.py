"""Transaction domain service: the single-transaction posting path."""

import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Optional

from ledgerpost.database.base import Database
from ledgerpost.domain.account_map import AccountMap, build_account_map
from ledgerpost.domain.categories import ChartCategoryResolver
from ledgerpost.domain.entities import (
    PendingTransaction,
    Posting as PostingEntity,
    PostingLine,
    RawTransaction,
    ReconciliationStatus,
    Transaction as TransactionEntity,
    TransactionType,
)
from ledgerpost.domain.errors import (
    ConflictError,
    MissingRequiredAccount,
    NotFoundError,
    ValidationError,
    bank_account_not_found,
    business_not_found,
    transaction_not_found,
)
from ledgerpost.domain.importer import validate_raw
from ledgerpost.domain.postings import PostingFactory, to_money

logger = logging.getLogger(__name__)

OPENING_BALANCE_DESCRIPTION = "Opening Balance"


class TransactionService:
    """Service for creating and maintaining individual ledger transactions."""

    def __init__(self, db: Database):
        """Initialize transaction service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_transaction(
        self,
        business_id: int,
        raw: RawTransaction,
        bank_account_id: Optional[int] = None,
    ) -> int:
        """Post a single transaction, using the same templates as imports.

        Args:
            business_id: Business ID
            raw: Transaction to post
            bank_account_id: Bank account the money moved through; its
                ledger account replaces the cash role

        Returns:
            Transaction ID

        Raises:
            NotFoundError: If the business or bank account doesn't exist
            MissingAccountRoles: If the chart lacks cash, income or expense accounts
            ValidationError: If the row data is invalid or a transfer has no
                counterparty
            ConflictError: If the external ID was already imported
            PostingError: If postings cannot be built
        """
        bank_account_id = raw.bank_account_id or bank_account_id
        account_map = self._account_map_for(business_id, bank_account_id)
        account_map.require_mandatory()

        amount = validate_raw(raw)
        if raw.external_id and self.db.external_id_exists(business_id, raw.external_id):
            raise ConflictError(
                f"Transaction with external id '{raw.external_id}' already exists"
            )

        accounts = self.db.list_accounts(business_id, active_only=True)
        category_account_id = None
        if raw.template is None and raw.direction != TransactionType.TRANSFER:
            resolver = ChartCategoryResolver(accounts, account_map)
            category_account_id = resolver.resolve(raw.category, raw.direction)

        factory = PostingFactory(account_map, {acc.id: acc.type for acc in accounts})
        lines = factory.build(replace(raw, amount=amount), category_account_id)
        if not lines:
            raise ValidationError("Transfer needs a counterparty account")

        pending = PendingTransaction(
            business_id=business_id,
            bank_account_id=bank_account_id,
            type=raw.direction,
            amount=amount,
            date=raw.date,
            description=raw.description.strip(),
            postings=tuple(lines),
            reference=raw.reference,
            external_id=raw.external_id,
            category_account_id=category_account_id,
        )
        (transaction_id,) = self.db.write_batch([pending])
        return transaction_id

    def get_transaction(self, transaction_id: int) -> Optional[TransactionEntity]:
        """Get transaction by ID.

        Args:
            transaction_id: Transaction ID

        Returns:
            Transaction entity or None if not found
        """
        return self.db.get_transaction(transaction_id)

    def list_transactions(
        self,
        business_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        bank_account_id: Optional[int] = None,
    ) -> list[TransactionEntity]:
        """List transactions, newest first."""
        return self.db.list_transactions(
            business_id=business_id,
            start_date=start_date,
            end_date=end_date,
            bank_account_id=bank_account_id,
        )

    def get_postings(self, transaction_id: int) -> list[PostingEntity]:
        if self.db.get_transaction(transaction_id) is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        return self.db.get_postings(transaction_id)

    def recategorize(self, transaction_id: int, category: str) -> int:
        """Move a transaction's category postings to another account.

        Only the lines booked against the current category account change;
        cash and tax lines stay as they are. The postings are replaced in one
        atomic write.

        Args:
            transaction_id: Transaction ID
            category: Account name, code or keywords of the new category

        Returns:
            The new category account ID

        Raises:
            NotFoundError: If the transaction doesn't exist or no account matches
            ValidationError: If the transaction has no category (transfers and
                templated transactions), or the new account already
                carries one of its other lines
        """
        txn = self.db.get_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        if txn.category_account_id is None:
            raise ValidationError(f"Transaction {transaction_id} has no category to change")

        accounts = self.db.list_accounts(txn.business_id, active_only=True)
        resolver = ChartCategoryResolver(accounts, build_account_map(accounts))
        expected = resolver.expected_type(txn.type)
        new_account_id = resolver.match(category, expected)
        if new_account_id is None:
            raise NotFoundError(f"No account matches category '{category}'")
        if new_account_id == txn.category_account_id:
            return new_account_id

        postings = self.db.get_postings(transaction_id)
        if any(p.account_id == new_account_id for p in postings):
            raise ValidationError(
                f"Account {new_account_id} already carries the other side of transaction {transaction_id}"
            )

        lines = [
            PostingLine(
                account_id=new_account_id if p.account_id == txn.category_account_id else p.account_id,
                debit_amount=p.debit_amount,
                credit_amount=p.credit_amount,
                description=p.description,
            )
            for p in postings
        ]
        self.db.replace_postings(transaction_id, lines, category_account_id=new_account_id)
        logger.info(
            "Transaction %d recategorized from account %d to %d",
            transaction_id,
            txn.category_account_id,
            new_account_id,
        )
        return new_account_id

    def set_reconciliation_status(self, transaction_id: int, status: ReconciliationStatus) -> None:
        if self.db.get_transaction(transaction_id) is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        self.db.update_reconciliation_status(transaction_id, ReconciliationStatus(status))

    def delete_transaction(self, transaction_id: int) -> None:
        """Delete a transaction together with its postings."""
        if self.db.get_transaction(transaction_id) is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        self.db.delete_transaction(transaction_id)

    def create_opening_balance(
        self, bank_account_id: int, amount: Decimal, as_of: date
    ) -> int:
        """Record a bank account's opening balance against Opening Balance Equity.

        A positive amount increases the bank's ledger account (a debit for an
        asset account, a credit for a liability account); a negative amount
        does the opposite.

        Raises:
            NotFoundError: If the bank account doesn't exist
            ValidationError: If the amount is zero
            ConflictError: If an opening balance already exists
            MissingRequiredAccount: If there is no opening balance equity account
        """
        bank_account = self.db.get_bank_account(bank_account_id)
        if bank_account is None:
            raise NotFoundError(bank_account_not_found(bank_account_id))

        amount = to_money(Decimal(amount))
        if amount == 0:
            raise ValidationError("Opening balance must not be zero")

        existing = self.db.find_transaction_by_description(
            bank_account_id, OPENING_BALANCE_DESCRIPTION, TransactionType.TRANSFER
        )
        if existing is not None:
            raise ConflictError(
                f"Bank account {bank_account_id} already has an opening balance "
                f"(transaction {existing.id})"
            )

        accounts = self.db.list_accounts(bank_account.business_id, active_only=True)
        equity = build_account_map(accounts).opening_balance_equity
        if equity is None:
            raise MissingRequiredAccount("opening_balance_equity")

        ledger = self.db.get_account(bank_account.ledger_account_id)
        increases_on_debit = ledger.type.is_debit_normal
        magnitude = abs(amount)
        if (amount > 0) == increases_on_debit:
            lines = [
                PostingLine.debit(ledger.id, magnitude, OPENING_BALANCE_DESCRIPTION),
                PostingLine.credit(equity, magnitude, OPENING_BALANCE_DESCRIPTION),
            ]
        else:
            lines = [
                PostingLine.debit(equity, magnitude, OPENING_BALANCE_DESCRIPTION),
                PostingLine.credit(ledger.id, magnitude, OPENING_BALANCE_DESCRIPTION),
            ]

        pending = PendingTransaction(
            business_id=bank_account.business_id,
            bank_account_id=bank_account_id,
            type=TransactionType.TRANSFER,
            amount=magnitude,
            date=as_of,
            description=OPENING_BALANCE_DESCRIPTION,
            postings=tuple(lines),
        )
        (transaction_id,) = self.db.write_batch([pending])
        logger.info(
            "Opening balance %s recorded for bank account %d", amount, bank_account_id
        )
        return transaction_id

    def _account_map_for(self, business_id: int, bank_account_id: Optional[int]) -> AccountMap:
        if self.db.get_business(business_id) is None:
            raise NotFoundError(business_not_found(business_id))
        account_map = build_account_map(self.db.list_accounts(business_id, active_only=True))
        if bank_account_id is None:
            return account_map
        bank_account = self.db.get_bank_account(bank_account_id)
        if bank_account is None or bank_account.business_id != business_id:
            raise NotFoundError(bank_account_not_found(bank_account_id))
        return account_map.with_cash(bank_account.ledger_account_id)
