"""Tests for the posting factory."""

from datetime import date
from decimal import Decimal

import pytest

from ledgerpost.domain.account_map import AccountMap
from ledgerpost.domain.entities import (
    AccountType,
    PostingLine,
    PostingTemplate,
    RawTransaction,
    TransactionType,
)
from ledgerpost.domain.errors import (
    InvalidTransferAccount,
    InvariantViolation,
    MissingRequiredAccount,
    PostingError,
    UnbalancedTemplate,
    ValidationError,
)
from ledgerpost.domain.postings import PostingFactory, assert_balanced, estimate_loan_split

CASH = 1
SAVINGS = 2
RECEIVABLE = 3
INVENTORY = 4
FIXED_ASSETS = 5
PAYABLE = 10
CARDS = 11
PAYROLL_TAX = 12
SALES_TAX = 13
LOANS = 14
SALES = 20
OTHER_INCOME = 21
WAGES = 30
RENT = 31
INTEREST = 32
MISC = 33

FULL_MAP = AccountMap(
    cash=CASH,
    accounts_receivable=RECEIVABLE,
    inventory=INVENTORY,
    fixed_assets=FIXED_ASSETS,
    accounts_payable=PAYABLE,
    credit_cards_payable=CARDS,
    payroll_tax_payable=PAYROLL_TAX,
    sales_tax_payable=SALES_TAX,
    loans_payable=LOANS,
    sales_revenue=SALES,
    other_income=OTHER_INCOME,
    salaries_wages=WAGES,
    rent=RENT,
    interest_expense=INTEREST,
    misc_expense=MISC,
)

ACCOUNT_TYPES = {
    CASH: AccountType.ASSET,
    SAVINGS: AccountType.ASSET,
    CARDS: AccountType.LIABILITY,
    RENT: AccountType.EXPENSE,
}


def raw(amount="100.00", direction=TransactionType.EXPENSE, description="Test", **kwargs):
    return RawTransaction(
        date=date(2024, 3, 1),
        description=description,
        amount=Decimal(amount),
        direction=direction,
        **kwargs,
    )


def totals(lines):
    return (
        sum((line.debit_amount for line in lines), Decimal("0")),
        sum((line.credit_amount for line in lines), Decimal("0")),
    )


@pytest.fixture
def factory():
    return PostingFactory(FULL_MAP, ACCOUNT_TYPES)


def test_income_debits_cash_and_credits_category(factory):
    lines = factory.build(raw(direction=TransactionType.INCOME), category_account_id=SALES)

    assert lines[0] == PostingLine.debit(CASH, Decimal("100.00"), "Cash received: Test")
    assert lines[1] == PostingLine.credit(SALES, Decimal("100.00"), "Revenue: Test")


def test_expense_debits_category_and_credits_cash(factory):
    lines = factory.build(raw(description="March rent"), category_account_id=RENT)

    assert [(l.account_id, l.debit_amount, l.credit_amount) for l in lines] == [
        (RENT, Decimal("100.00"), Decimal("0")),
        (CASH, Decimal("0"), Decimal("100.00")),
    ]


def test_explicit_cash_account_overrides_map(factory):
    lines = factory.build(raw(), category_account_id=RENT, cash_account_id=SAVINGS)

    assert lines[1].account_id == SAVINGS


def test_missing_category_uses_fallback(factory):
    lines = factory.build(raw(direction=TransactionType.INCOME))

    assert lines[1].account_id == OTHER_INCOME


def test_missing_expense_accounts_raise():
    factory = PostingFactory(AccountMap(cash=CASH, sales_revenue=SALES))

    with pytest.raises(MissingRequiredAccount) as exc_info:
        factory.build(raw())
    assert exc_info.value.kind == "expense"


def test_missing_cash_raises():
    factory = PostingFactory(AccountMap(sales_revenue=SALES, misc_expense=MISC))

    with pytest.raises(MissingRequiredAccount) as exc_info:
        factory.build(raw(), category_account_id=MISC)
    assert exc_info.value.kind == "cash"


@pytest.mark.parametrize("direction", [TransactionType.INCOME, TransactionType.EXPENSE])
def test_cash_account_as_category_rejected(factory, direction):
    with pytest.raises(PostingError, match="cash account"):
        factory.build(raw(direction=direction), category_account_id=CASH)

    with pytest.raises(PostingError):
        factory.build(raw(direction=direction), category_account_id=SAVINGS, cash_account_id=SAVINGS)


def test_income_with_sales_tax_splits_credit(factory):
    lines = factory.build(
        raw("107.00", TransactionType.INCOME, tax_amount=Decimal("7.00")),
        category_account_id=SALES,
    )

    assert lines[0].debit_amount == Decimal("107.00")
    assert (lines[1].account_id, lines[1].credit_amount) == (SALES, Decimal("100.00"))
    assert (lines[2].account_id, lines[2].credit_amount) == (SALES_TAX, Decimal("7.00"))


def test_sales_tax_without_tax_account_raises():
    factory = PostingFactory(AccountMap(cash=CASH, sales_revenue=SALES, misc_expense=MISC))

    with pytest.raises(MissingRequiredAccount):
        factory.build(raw("107.00", TransactionType.INCOME, tax_amount=Decimal("7.00")))


def test_tax_not_less_than_amount_rejected(factory):
    with pytest.raises(ValidationError):
        factory.build(raw("10.00", TransactionType.INCOME, tax_amount=Decimal("10.00")))


def test_transfer_without_counterparty_has_no_postings(factory):
    assert factory.build(raw(direction=TransactionType.TRANSFER)) == []


def test_outbound_transfer_debits_destination(factory):
    lines = factory.build(raw(direction=TransactionType.TRANSFER, counterparty_account_id=SAVINGS))

    assert (lines[0].account_id, lines[0].debit_amount) == (SAVINGS, Decimal("100.00"))
    assert (lines[1].account_id, lines[1].credit_amount) == (CASH, Decimal("100.00"))


def test_inbound_transfer_debits_bank(factory):
    lines = factory.build(
        raw(direction=TransactionType.TRANSFER, counterparty_account_id=CARDS, inbound=True)
    )

    assert lines[0].account_id == CASH
    assert lines[1].account_id == CARDS


def test_transfer_to_expense_account_rejected(factory):
    with pytest.raises(InvalidTransferAccount):
        factory.build(raw(direction=TransactionType.TRANSFER, counterparty_account_id=RENT))


def test_transfer_to_same_account_rejected(factory):
    with pytest.raises(PostingError):
        factory.build(raw(direction=TransactionType.TRANSFER, counterparty_account_id=CASH))


def test_loan_payment_estimates_interest():
    assert estimate_loan_split(Decimal("100.00")) == (Decimal("80.00"), Decimal("20.00"))
    principal, interest = estimate_loan_split(Decimal("33.33"))
    assert interest == Decimal("6.67")
    assert principal + interest == Decimal("33.33")


def test_loan_payment_postings(factory):
    lines = factory.build(raw("500.00", template=PostingTemplate.LOAN_PAYMENT))

    assert [(l.account_id, l.debit_amount or l.credit_amount) for l in lines] == [
        (LOANS, Decimal("400.00")),
        (INTEREST, Decimal("100.00")),
        (CASH, Decimal("500.00")),
    ]


def test_loan_payment_explicit_split_must_add_up(factory):
    with pytest.raises(ValidationError):
        factory.build(
            raw(
                "500.00",
                template=PostingTemplate.LOAN_PAYMENT,
                principal_amount=Decimal("450.00"),
                interest_amount=Decimal("10.00"),
            )
        )


def test_loan_payment_without_interest_skips_interest_line(factory):
    lines = factory.build(
        raw("500.00", template=PostingTemplate.LOAN_PAYMENT, principal_amount=Decimal("500.00"))
    )

    assert [l.account_id for l in lines] == [LOANS, CASH]


@pytest.mark.parametrize(
    "description,expected",
    [("Payroll tax Q1", PAYROLL_TAX), ("State sales tax", SALES_TAX)],
)
def test_tax_payment_picks_liability_by_description(factory, description, expected):
    lines = factory.build(raw(description=description, template=PostingTemplate.TAX_PAYMENT))

    assert lines[0].account_id == expected


def test_customer_payment_credits_receivable(factory):
    lines = factory.build(
        raw(direction=TransactionType.INCOME, template=PostingTemplate.CUSTOMER_PAYMENT)
    )

    assert lines[0].account_id == CASH
    assert lines[1].account_id == RECEIVABLE


def test_template_direction_mismatch_rejected(factory):
    with pytest.raises(PostingError):
        factory.build(raw(direction=TransactionType.INCOME, template=PostingTemplate.PAYROLL))


def test_template_missing_role_raises():
    factory = PostingFactory(AccountMap(cash=CASH, sales_revenue=SALES, misc_expense=MISC))

    with pytest.raises(MissingRequiredAccount) as exc_info:
        factory.build(raw(template=PostingTemplate.ASSET_PURCHASE))
    assert exc_info.value.kind == "fixed_assets"


@pytest.mark.parametrize("amount", ["0", "-5.00"])
def test_non_positive_amount_rejected(factory, amount):
    with pytest.raises(ValidationError):
        factory.build(raw(amount), category_account_id=RENT)


@pytest.mark.parametrize(
    "record",
    [
        raw("19.99", TransactionType.INCOME),
        raw("0.01", TransactionType.EXPENSE),
        raw("1234.56", TransactionType.INCOME, tax_amount=Decimal("81.23")),
        raw("250.00", TransactionType.TRANSFER, counterparty_account_id=SAVINGS),
        raw("99.99", template=PostingTemplate.LOAN_PAYMENT),
        raw("10.00", template=PostingTemplate.ASSET_PURCHASE),
        raw("10.00", template=PostingTemplate.INVENTORY_PURCHASE),
        raw("10.00", template=PostingTemplate.CREDIT_CARD_PAYMENT),
        raw("10.00", template=PostingTemplate.VENDOR_PAYMENT),
        raw("10.00", template=PostingTemplate.PAYROLL),
        raw("10.00", TransactionType.INCOME, template=PostingTemplate.CUSTOMER_PAYMENT),
    ],
)
def test_every_template_balances(factory, record):
    lines = factory.build(record)

    total_debits, total_credits = totals(lines)
    assert lines
    assert total_debits == total_credits == record.amount
    for line in lines:
        assert (line.debit_amount > 0) != (line.credit_amount > 0)


def test_assert_balanced_rejects_unbalanced_lines():
    with pytest.raises(UnbalancedTemplate):
        assert_balanced(
            [PostingLine.debit(CASH, Decimal("10.00")), PostingLine.credit(RENT, Decimal("9.99"))]
        )


def test_assert_balanced_rejects_two_sided_line():
    with pytest.raises(InvariantViolation):
        assert_balanced([PostingLine(CASH, Decimal("1.00"), Decimal("1.00"))])
