"""Tests for building the account map from a chart of accounts."""

from datetime import datetime

import pytest

from ledgerpost.domain.account_map import AccountMap, build_account_map
from ledgerpost.domain.entities import Account, AccountType, TransactionType
from ledgerpost.domain.errors import MissingAccountRoles


def account(account_id, code, account_type, is_active=True):
    return Account(
        id=account_id,
        business_id=1,
        code=code,
        name=f"Account {code}",
        type=account_type,
        parent_id=None,
        description=None,
        is_active=is_active,
        created_at=datetime(2024, 1, 1),
    )


def test_default_chart_fills_every_role(account_map, accounts):
    assert account_map.cash == accounts["1000"].id
    assert account_map.sales_tax_payable == accounts["2300"].id
    assert account_map.opening_balance_equity == accounts["3050"].id
    assert account_map.interest_expense == accounts["6950"].id
    assert account_map.missing_required_roles() == []


def test_cash_falls_back_to_petty_cash():
    account_map = build_account_map([account(1, "1010", AccountType.ASSET)])

    assert account_map.cash == 1


def test_inactive_accounts_fill_no_role():
    account_map = build_account_map([account(1, "1000", AccountType.ASSET, is_active=False)])

    assert account_map.cash is None


def test_lowest_expense_account_becomes_expense_fallback():
    account_map = build_account_map(
        [
            account(1, "1000", AccountType.ASSET),
            account(2, "6300", AccountType.EXPENSE),
            account(3, "6250", AccountType.EXPENSE),
        ]
    )

    assert account_map.other_expense == 3
    assert account_map.expense_fallback == 3


def test_fallbacks_prefer_specific_roles():
    account_map = AccountMap(sales_revenue=1, other_income=2, misc_expense=3, other_expense=4)

    assert account_map.fallback_for(TransactionType.INCOME) == 2
    assert account_map.fallback_for(TransactionType.EXPENSE) == 3
    assert account_map.fallback_for(TransactionType.TRANSFER) is None


def test_require_mandatory_lists_missing_roles():
    with pytest.raises(MissingAccountRoles) as exc_info:
        AccountMap(sales_revenue=1).require_mandatory()

    assert exc_info.value.roles == ("cash", "expense")


def test_with_cash_returns_copy():
    original = AccountMap(cash=1)

    updated = original.with_cash(7)

    assert updated.cash == 7
    assert original.cash == 1
    assert updated.roles()["cash"] == 7


def test_lowest_income_account_becomes_income_fallback():
    account_map = build_account_map(
        [
            account(1, "1000", AccountType.ASSET),
            account(2, "4600", AccountType.INCOME),
            account(3, "4500", AccountType.INCOME),
            account(4, "6900", AccountType.EXPENSE),
        ]
    )

    assert account_map.other_income == 3
    assert account_map.income_fallback == 3
    assert account_map.missing_required_roles() == []


def test_missing_income_account_is_reported():
    account_map = build_account_map(
        [account(1, "1000", AccountType.ASSET), account(2, "6900", AccountType.EXPENSE)]
    )

    assert account_map.missing_required_roles() == ["income"]
