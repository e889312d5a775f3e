"""Chart-of-accounts domain service."""

import logging
import re
from typing import Optional

from ledgerpost.database.base import Database
from ledgerpost.domain.account_map import AccountMap, build_account_map
from ledgerpost.domain.entities import Account as AccountEntity, AccountType
from ledgerpost.domain.errors import (
    ConflictError,
    DependencyError,
    NotFoundError,
    ValidationError,
    account_code_not_found,
    account_delete_blocked,
    account_not_found,
    account_type_locked,
    business_not_found,
    duplicate_account_code,
)

logger = logging.getLogger(__name__)

ACCOUNT_CODE_PATTERN = re.compile(r"^\d{3,6}$")

# Default chart, created when a business is set up
DEFAULT_CHART_OF_ACCOUNTS: list[tuple[str, str, AccountType, str]] = [
    # Assets
    ("1000", "Cash", AccountType.ASSET, "Funds held in checking or savings accounts."),
    ("1010", "Petty Cash", AccountType.ASSET, "Small cash on hand for minor expenses."),
    ("1100", "Accounts Receivable", AccountType.ASSET, "Amounts owed to the business by customers."),
    ("1200", "Inventory", AccountType.ASSET, "Value of goods held for sale."),
    ("1300", "Prepaid Expenses", AccountType.ASSET, "Payments made in advance for services (e.g., rent, insurance)."),
    ("1400", "Fixed Assets", AccountType.ASSET, "Long-term tangible assets like equipment, furniture, etc."),
    ("1410", "Accumulated Depreciation", AccountType.ASSET, "Contra-asset account tracking depreciation of fixed assets."),
    ("1500", "Other Assets", AccountType.ASSET, "Any other long-term assets not otherwise classified."),
    # Liabilities
    ("2000", "Accounts Payable", AccountType.LIABILITY, "Amounts owed by the business to suppliers/vendors."),
    ("2100", "Credit Cards Payable", AccountType.LIABILITY, "Balances owed on business credit cards."),
    ("2200", "Payroll Liabilities", AccountType.LIABILITY, "Taxes and other withholdings owed for employee compensation."),
    ("2300", "Sales Tax Payable", AccountType.LIABILITY, "Sales tax collected from customers and owed to the government."),
    ("2400", "Loans Payable", AccountType.LIABILITY, "Outstanding loan balances."),
    ("2500", "Other Current Liabilities", AccountType.LIABILITY, "Miscellaneous short-term liabilities."),
    ("2600", "Long-Term Liabilities", AccountType.LIABILITY, "Debts due beyond one year."),
    # Equity
    ("3000", "Owner's Equity", AccountType.EQUITY, "Owner's investment in the business."),
    ("3050", "Opening Balance Equity", AccountType.EQUITY, "Offset for bank opening balances."),
    ("3100", "Retained Earnings", AccountType.EQUITY, "Accumulated profits or losses retained in the business."),
    ("3200", "Drawings/Distributions", AccountType.EQUITY, "Withdrawals made by the owner."),
    ("3300", "Common Stock", AccountType.EQUITY, "Capital invested by shareholders."),
    ("3400", "Additional Paid-in Capital", AccountType.EQUITY, "Funds received from shareholders above par value."),
    # Income
    ("4000", "Sales Revenue", AccountType.INCOME, "Income from sale of products or services."),
    ("4100", "Other Revenue", AccountType.INCOME, "Non-operating income (e.g., interest income)."),
    # Cost of sales
    ("5000", "Cost of Goods Sold", AccountType.EXPENSE, "Direct costs of producing goods or services sold."),
    # Operating expenses
    ("6000", "Salaries and Wages", AccountType.EXPENSE, "Employee compensation expenses."),
    ("6100", "Rent Expense", AccountType.EXPENSE, "Cost of office/store/warehouse rental."),
    ("6200", "Utilities Expense", AccountType.EXPENSE, "Electricity, water, gas, internet, etc."),
    ("6300", "Office Supplies", AccountType.EXPENSE, "Consumables used in daily operations."),
    ("6400", "Advertising & Marketing", AccountType.EXPENSE, "Promotion and marketing expenses."),
    ("6500", "Travel & Meals", AccountType.EXPENSE, "Business travel, lodging, and meals."),
    ("6600", "Professional Fees", AccountType.EXPENSE, "Legal, consulting, and accounting services."),
    ("6700", "Insurance Expense", AccountType.EXPENSE, "Premiums for business insurance policies."),
    ("6800", "Depreciation Expense", AccountType.EXPENSE, "Depreciation of fixed assets over time."),
    ("6900", "Miscellaneous Expense", AccountType.EXPENSE, "Any other expenses not categorized above."),
    ("6950", "Interest Expense", AccountType.EXPENSE, "Interest on loans and credit lines."),
    # Tax
    ("7000", "Tax Expense", AccountType.EXPENSE, "Tax expense"),
]

# Code ranges used to classify accounts for reporting, inclusive bounds
ACCOUNT_RANGES: dict[str, tuple[int, int]] = {
    "ASSETS": (1000, 1999),
    "LIABILITIES": (2000, 2999),
    "EQUITY": (3000, 3999),
    "INCOME": (4000, 4999),
    "COST_OF_SALES": (5000, 5999),
    "OPERATING_EXPENSES": (6000, 6999),
    "TAX_EXPENSES": (7000, 7999),
}


def classify_code(code: str) -> Optional[str]:
    """Return the ACCOUNT_RANGES key a code falls into, or None."""
    try:
        number = int(code)
    except (TypeError, ValueError):
        return None
    for range_key, (low, high) in ACCOUNT_RANGES.items():
        if low <= number <= high:
            return range_key
    return None


class ChartOfAccountsService:
    """Service for managing a business's chart of accounts."""

    def __init__(self, db: Database):
        """Initialize chart-of-accounts service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_account(
        self,
        business_id: int,
        code: str,
        name: str,
        account_type: AccountType,
        parent_id: Optional[int] = None,
        description: Optional[str] = None,
    ) -> int:
        """Create a chart-of-accounts entry.

        Args:
            business_id: Owning business
            code: Numeric account code, unique within the business
            name: Account name
            account_type: ASSET, LIABILITY, EQUITY, INCOME or EXPENSE
            parent_id: Optional parent account for hierarchy
            description: Optional description, also used by keyword matching

        Returns:
            Account ID

        Raises:
            NotFoundError: If the business or parent doesn't exist
            ValidationError: If the code or name is malformed
            ConflictError: If the code is already used in this business
        """
        if self.db.get_business(business_id) is None:
            raise NotFoundError(business_not_found(business_id))

        code = code.strip()
        if not ACCOUNT_CODE_PATTERN.match(code):
            raise ValidationError(f"Account code must be numeric, got '{code}'")
        if not name or not name.strip():
            raise ValidationError("Account name must not be empty")

        if self.db.get_account_by_code(business_id, code) is not None:
            raise ConflictError(duplicate_account_code(code, business_id))

        if parent_id is not None:
            parent = self.db.get_account(parent_id)
            if parent is None or parent.business_id != business_id:
                raise NotFoundError(account_not_found(parent_id))

        return self.db.create_account(
            business_id=business_id,
            code=code,
            name=name.strip(),
            account_type=AccountType(account_type),
            parent_id=parent_id,
            description=description,
        )

    def seed_default_chart(self, business_id: int) -> int:
        """Create the default chart of accounts, skipping codes that exist.

        Returns:
            Number of accounts created
        """
        if self.db.get_business(business_id) is None:
            raise NotFoundError(business_not_found(business_id))

        created = 0
        for code, name, account_type, description in DEFAULT_CHART_OF_ACCOUNTS:
            if self.db.get_account_by_code(business_id, code) is not None:
                continue
            self.db.create_account(
                business_id=business_id,
                code=code,
                name=name,
                account_type=account_type,
                description=description,
            )
            created += 1
        logger.info("Seeded %d default accounts for business %d", created, business_id)
        return created

    def get_account(self, account_id: int) -> Optional[AccountEntity]:
        return self.db.get_account(account_id)

    def require_account_by_code(self, business_id: int, code: str) -> AccountEntity:
        """Get an account by code or raise NotFoundError."""
        account = self.db.get_account_by_code(business_id, code)
        if account is None:
            raise NotFoundError(account_code_not_found(code))
        return account

    def list_accounts(self, business_id: int, include_inactive: bool = False) -> list[AccountEntity]:
        """List accounts ordered by code."""
        return self.db.list_accounts(business_id, active_only=not include_inactive)

    def change_type(self, account_id: int, account_type: AccountType) -> None:
        """Change an account's type.

        Raises:
            NotFoundError: If the account doesn't exist
            DependencyError: If postings exist against the account
        """
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        if account.type == account_type:
            return

        posting_count = self.db.get_account_posting_count(account_id)
        if posting_count > 0:
            raise DependencyError(account_type_locked(account_id, posting_count))

        self.db.update_account(account_id, account_type=account_type)

    def rename_account(self, account_id: int, name: str) -> None:
        if self.db.get_account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))
        if not name or not name.strip():
            raise ValidationError("Account name must not be empty")
        self.db.update_account(account_id, name=name.strip())

    def deactivate_account(self, account_id: int) -> None:
        """Soft-delete an account: excluded from new postings, kept for history."""
        if self.db.get_account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))
        self.db.update_account(account_id, is_active=False)

    def reactivate_account(self, account_id: int) -> None:
        if self.db.get_account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))
        self.db.update_account(account_id, is_active=True)

    def delete_account(self, account_id: int) -> None:
        """Delete an account that nothing references.

        Raises:
            NotFoundError: If the account doesn't exist
            DependencyError: If postings or bank accounts reference it
        """
        if self.db.get_account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))

        posting_count = self.db.get_account_posting_count(account_id)
        bank_account_count = self.db.get_account_bank_account_count(account_id)
        if posting_count > 0 or bank_account_count > 0:
            raise DependencyError(
                account_delete_blocked(account_id, posting_count, bank_account_count)
            )

        self.db.delete_account(account_id)

    def build_account_map(self, business_id: int) -> AccountMap:
        """Build the typed account map for a business from its active accounts."""
        if self.db.get_business(business_id) is None:
            raise NotFoundError(business_not_found(business_id))
        account_map = build_account_map(self.db.list_accounts(business_id, active_only=True))
        missing = account_map.missing_required_roles()
        if missing:
            logger.warning(
                "Business %d chart of accounts lacks roles: %s", business_id, ", ".join(missing)
            )
        return account_map
