"""Bank account domain service."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ledgerpost.database.base import Database
from ledgerpost.domain.entities import AccountType, BalanceSource, BankAccount as BankAccountEntity
from ledgerpost.domain.errors import (
    NotFoundError,
    ValidationError,
    account_not_found,
    bank_account_not_found,
    business_not_found,
)

logger = logging.getLogger(__name__)

BANK_LEDGER_TYPES = (AccountType.ASSET, AccountType.LIABILITY)


class BankAccountService:
    """Service for managing bank accounts and their external balances."""

    def __init__(self, db: Database):
        """Initialize bank account service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_bank_account(
        self,
        business_id: int,
        name: str,
        ledger_account_id: int,
        externally_synced: bool = False,
    ) -> int:
        """Create a bank account linked to a chart-of-accounts entry.

        Args:
            business_id: Business ID
            name: Display name
            ledger_account_id: Asset (checking, savings) or liability (credit
                card, loan) account that represents the bank account
            externally_synced: True when a bank feed reports the balance

        Returns:
            Bank account ID

        Raises:
            NotFoundError: If the business or ledger account doesn't exist
            ValidationError: If the ledger account is inactive or has the wrong type
        """
        if self.db.get_business(business_id) is None:
            raise NotFoundError(business_not_found(business_id))
        if not name or not name.strip():
            raise ValidationError("Bank account name must not be empty")

        ledger = self.db.get_account(ledger_account_id)
        if ledger is None or ledger.business_id != business_id:
            raise NotFoundError(account_not_found(ledger_account_id))
        if not ledger.is_active:
            raise ValidationError(f"Account {ledger.code} is inactive")
        if ledger.type not in BANK_LEDGER_TYPES:
            raise ValidationError(
                f"Bank accounts must link to an asset or liability account, "
                f"account {ledger.code} is {ledger.type.value}"
            )

        source = (
            BalanceSource.EXTERNALLY_SYNCED if externally_synced else BalanceSource.LOCALLY_CALCULATED
        )
        return self.db.create_bank_account(
            business_id=business_id,
            name=name.strip(),
            ledger_account_id=ledger_account_id,
            balance_source=source,
        )

    def get_bank_account(self, bank_account_id: int) -> Optional[BankAccountEntity]:
        return self.db.get_bank_account(bank_account_id)

    def list_bank_accounts(self, business_id: int) -> list[BankAccountEntity]:
        """List bank accounts, externally-synced ones first."""
        return self.db.list_bank_accounts(business_id)

    def record_sync(
        self,
        bank_account_id: int,
        balance: Decimal,
        synced_at: Optional[datetime] = None,
    ) -> None:
        """Store the balance most recently reported by the bank feed.

        Raises:
            NotFoundError: If the bank account doesn't exist
            ValidationError: If the account's balance is calculated locally
        """
        bank_account = self.db.get_bank_account(bank_account_id)
        if bank_account is None:
            raise NotFoundError(bank_account_not_found(bank_account_id))
        if not bank_account.is_externally_synced:
            raise ValidationError(
                f"Bank account {bank_account_id} is locally calculated and cannot be synced"
            )

        synced_at = synced_at or datetime.now()
        self.db.update_external_balance(bank_account_id, Decimal(balance), synced_at)
        logger.info("Bank account %d synced with balance %s", bank_account_id, balance)
