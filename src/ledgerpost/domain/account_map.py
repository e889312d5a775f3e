"""Typed map of well-known account roles.

Built once per business before an import starts. Every role is a named field
so a missing role is visible in the shape of the object instead of surfacing
as a failed dictionary lookup halfway through an import.
"""

from dataclasses import dataclass, fields, replace
from typing import Iterable, Optional

from ledgerpost.domain.entities import Account, AccountType, TransactionType
from ledgerpost.domain.errors import MissingAccountRoles


@dataclass(frozen=True)
class AccountMap:
    """Account IDs for the roles the posting templates need."""

    # Assets
    cash: Optional[int] = None
    accounts_receivable: Optional[int] = None
    inventory: Optional[int] = None
    prepaid_expenses: Optional[int] = None
    fixed_assets: Optional[int] = None
    # Liabilities
    accounts_payable: Optional[int] = None
    credit_cards_payable: Optional[int] = None
    payroll_tax_payable: Optional[int] = None
    sales_tax_payable: Optional[int] = None
    loans_payable: Optional[int] = None
    # Equity
    opening_balance_equity: Optional[int] = None
    # Income
    sales_revenue: Optional[int] = None
    other_income: Optional[int] = None
    # Expenses
    cost_of_goods_sold: Optional[int] = None
    salaries_wages: Optional[int] = None
    rent: Optional[int] = None
    utilities: Optional[int] = None
    interest_expense: Optional[int] = None
    misc_expense: Optional[int] = None
    other_expense: Optional[int] = None

    @property
    def income_fallback(self) -> Optional[int]:
        """Account used for income that matched no category."""
        return self.other_income or self.sales_revenue

    @property
    def expense_fallback(self) -> Optional[int]:
        """Account used for expenses that matched no category."""
        return self.misc_expense or self.other_expense

    def fallback_for(self, direction: TransactionType) -> Optional[int]:
        if direction == TransactionType.INCOME:
            return self.income_fallback
        if direction == TransactionType.EXPENSE:
            return self.expense_fallback
        return None

    def missing_required_roles(self) -> list[str]:
        """Roles without which no import can run."""
        missing = []
        if self.cash is None:
            missing.append("cash")
        if self.income_fallback is None:
            missing.append("income")
        if self.expense_fallback is None:
            missing.append("expense")
        return missing

    def require_mandatory(self) -> None:
        """Raise MissingAccountRoles if cash, income or expense roles are absent."""
        missing = self.missing_required_roles()
        if missing:
            raise MissingAccountRoles(missing)

    def with_cash(self, account_id: int) -> "AccountMap":
        """Return a copy whose cash role points at a bank account's ledger account."""
        return replace(self, cash=account_id)

    def roles(self) -> dict[str, Optional[int]]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


# Well-known codes of the default chart of accounts, by role
ROLE_CODES: dict[str, tuple[str, ...]] = {
    "cash": ("1000", "1010"),
    "accounts_receivable": ("1100",),
    "inventory": ("1200",),
    "prepaid_expenses": ("1300",),
    "fixed_assets": ("1400",),
    "accounts_payable": ("2000",),
    "credit_cards_payable": ("2100",),
    "payroll_tax_payable": ("2200",),
    "sales_tax_payable": ("2300",),
    "loans_payable": ("2400",),
    "opening_balance_equity": ("3050",),
    "sales_revenue": ("4000",),
    "other_income": ("4100",),
    "cost_of_goods_sold": ("5000",),
    "salaries_wages": ("6000",),
    "rent": ("6100",),
    "utilities": ("6200",),
    "misc_expense": ("6900",),
    "interest_expense": ("6950",),
}


def build_account_map(accounts: Iterable[Account]) -> AccountMap:
    """Derive the account map from a business's chart of accounts.

    Inactive accounts are ignored. When several codes qualify for a role the
    first code listed in ROLE_CODES wins. If neither a miscellaneous nor an
    other-expense account exists, the first active expense account (lowest
    code) stands in as the expense fallback. Income falls back the same way
    to the first active income account.
    """
    by_code = {acc.code: acc for acc in accounts if acc.is_active}

    values: dict[str, int] = {}
    for role, codes in ROLE_CODES.items():
        for code in codes:
            account = by_code.get(code)
            if account is not None:
                values[role] = account.id
                break

    account_map = AccountMap(**values)

    if account_map.income_fallback is None:
        income = _first_of_type(by_code.values(), AccountType.INCOME)
        if income is not None:
            account_map = replace(account_map, other_income=income.id)

    if account_map.expense_fallback is None:
        expense = _first_of_type(by_code.values(), AccountType.EXPENSE)
        if expense is not None:
            account_map = replace(account_map, other_expense=expense.id)

    return account_map


def _first_of_type(accounts: Iterable[Account], account_type: AccountType) -> Optional[Account]:
    matching = sorted((acc for acc in accounts if acc.type == account_type), key=lambda acc: acc.code)
    return matching[0] if matching else None
