"""Balance calculation and reconciliation."""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional

from ledgerpost.config import ReconciliationPolicy
from ledgerpost.database.base import Database
from ledgerpost.domain.entities import (
    AccountType,
    BalanceResult,
    BalanceSource,
    BalanceSummary,
    BankAccount,
    ReconciliationResult,
)
from ledgerpost.domain.errors import (
    NotFoundError,
    ValidationError,
    account_not_found,
    bank_account_not_found,
    business_not_found,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")

# Hypotheses offered when the external balance is higher than the ledger
EXTERNAL_HIGHER_REASONS = (
    "Bank balance is higher - possible missing expense transactions",
    "Pending transactions not yet imported",
    "Bank fees or charges not imported",
)

# Hypotheses offered when the external balance is lower than the ledger
EXTERNAL_LOWER_REASONS = (
    "Bank balance is lower - possible missing income transactions",
    "Duplicate transactions imported",
    "Transactions imported with wrong amounts",
)


def signed_balance(account_type: AccountType, total_debits: Decimal, total_credits: Decimal) -> Decimal:
    """Apply the sign convention of an account type to posting totals.

    Debits increase ASSET and EXPENSE accounts; credits increase LIABILITY,
    EQUITY and INCOME accounts.
    """
    if account_type.is_debit_normal:
        return total_debits - total_credits
    return total_credits - total_debits


class BalanceService:
    """Derives balances from postings and compares them with external balances."""

    def __init__(
        self,
        db: Database,
        policy: Optional[ReconciliationPolicy] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """Initialize balance service.

        Args:
            db: Database instance
            policy: Reconciliation tolerance
            clock: Returns the current time for ``last_calculated``
        """
        self.db = db
        self.policy = policy or ReconciliationPolicy()
        self.clock = clock

    def calculate_account_balance(self, account_id: int, as_of: Optional[date] = None) -> Decimal:
        """Sum an account's postings using its type's sign convention.

        Args:
            account_id: Chart-of-accounts entry
            as_of: Only count transactions dated on or before this date

        Raises:
            NotFoundError: If the account doesn't exist
        """
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        total_debits, total_credits = self.db.sum_postings(account_id, as_of=as_of)
        return signed_balance(account.type, total_debits, total_credits)

    def get_account_balance(self, account_id: int, as_of: Optional[date] = None) -> BalanceResult:
        return BalanceResult(
            account_id=account_id,
            calculated_balance=self.calculate_account_balance(account_id, as_of),
            balance_source=BalanceSource.LOCALLY_CALCULATED,
            last_calculated=self.clock(),
        )

    def get_bank_account_balance(self, bank_account_id: int) -> BalanceResult:
        """Current balance of a bank account.

        Externally-synced accounts report the last synced balance. Until the
        first sync, and for locally-calculated accounts, the balance is derived
        from the linked ledger account's postings.
        """
        bank_account = self._require_bank_account(bank_account_id)

        if bank_account.is_externally_synced and bank_account.external_balance is not None:
            return BalanceResult(
                account_id=bank_account.ledger_account_id,
                calculated_balance=bank_account.external_balance,
                balance_source=BalanceSource.EXTERNALLY_SYNCED,
                last_calculated=bank_account.last_synced_at,
            )

        if bank_account.is_externally_synced:
            logger.debug(
                "Bank account %d has no synced balance yet, calculating from postings",
                bank_account_id,
            )
        return self.get_account_balance(bank_account.ledger_account_id)

    def reconcile(self, bank_account_id: int) -> ReconciliationResult:
        """Compare an externally-synced balance with the ledger.

        Never changes any data; when the two disagree the result lists likely
        causes for a person to investigate.

        Raises:
            NotFoundError: If the bank account doesn't exist
            ValidationError: If the account is not externally synced or has
                never been synced
        """
        bank_account = self._require_bank_account(bank_account_id)
        if not bank_account.is_externally_synced:
            raise ValidationError(
                f"Bank account {bank_account_id} is not externally synced; nothing to reconcile"
            )
        if bank_account.external_balance is None:
            raise ValidationError(f"Bank account {bank_account_id} has not been synced yet")

        api_balance = bank_account.external_balance
        calculated = self.calculate_account_balance(bank_account.ledger_account_id)
        difference = api_balance - calculated
        is_reconciled = abs(difference) < self.policy.tolerance

        reasons: tuple[str, ...] = ()
        if not is_reconciled:
            reasons = EXTERNAL_HIGHER_REASONS if difference > 0 else EXTERNAL_LOWER_REASONS
            logger.info(
                "Bank account %d does not reconcile: external %s, ledger %s, difference %s",
                bank_account_id,
                api_balance,
                calculated,
                difference,
            )

        return ReconciliationResult(
            bank_account_id=bank_account_id,
            api_balance=api_balance,
            calculated_balance=calculated,
            difference=difference,
            is_reconciled=is_reconciled,
            possible_reasons=reasons,
        )

    def get_balance_summary(self, business_id: int) -> BalanceSummary:
        """Totals across a business's bank accounts.

        Bank accounts linked to asset accounts count towards assets, those
        linked to liability accounts (credit cards, loans) towards
        liabilities.
        """
        if self.db.get_business(business_id) is None:
            raise NotFoundError(business_not_found(business_id))

        total_assets = ZERO
        total_liabilities = ZERO
        by_account_type: dict[str, Decimal] = {}

        for bank_account in self.db.list_bank_accounts(business_id):
            ledger_account = self.db.get_account(bank_account.ledger_account_id)
            if ledger_account is None:
                raise NotFoundError(account_not_found(bank_account.ledger_account_id))

            balance = self.get_bank_account_balance(bank_account.id).calculated_balance
            key = ledger_account.type.value
            by_account_type[key] = by_account_type.get(key, ZERO) + balance

            if ledger_account.type == AccountType.ASSET:
                total_assets += balance
            elif ledger_account.type == AccountType.LIABILITY:
                total_liabilities += balance

        return BalanceSummary(
            total_assets=total_assets,
            total_liabilities=total_liabilities,
            net_worth=total_assets - total_liabilities,
            by_account_type=by_account_type,
        )

    def _require_bank_account(self, bank_account_id: int) -> BankAccount:
        bank_account = self.db.get_bank_account(bank_account_id)
        if bank_account is None:
            raise NotFoundError(bank_account_not_found(bank_account_id))
        return bank_account
