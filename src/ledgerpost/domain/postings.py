"""Posting templates: turn one transaction into balanced journal lines.

Every template produces lines whose debits equal their credits, with exactly
one non-zero side per line. ``assert_balanced`` is the final gate before
anything reaches storage.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Mapping, Optional, Sequence

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

CENT = Decimal("0.01")
ZERO = Decimal("0")

# Share of a loan payment booked as interest when no split is supplied
ESTIMATED_INTEREST_SHARE = Decimal("0.20")

TRANSFER_ACCOUNT_TYPES = (AccountType.ASSET, AccountType.LIABILITY)

# Direction each specialised template applies to
TEMPLATE_DIRECTIONS: dict[PostingTemplate, TransactionType] = {
    PostingTemplate.ASSET_PURCHASE: TransactionType.EXPENSE,
    PostingTemplate.INVENTORY_PURCHASE: TransactionType.EXPENSE,
    PostingTemplate.LOAN_PAYMENT: TransactionType.EXPENSE,
    PostingTemplate.CREDIT_CARD_PAYMENT: TransactionType.EXPENSE,
    PostingTemplate.TAX_PAYMENT: TransactionType.EXPENSE,
    PostingTemplate.CUSTOMER_PAYMENT: TransactionType.INCOME,
    PostingTemplate.VENDOR_PAYMENT: TransactionType.EXPENSE,
    PostingTemplate.PAYROLL: TransactionType.EXPENSE,
}


def to_money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def assert_balanced(lines: Sequence[PostingLine]) -> None:
    """Check the double-entry invariants of a set of posting lines.

    Raises:
        InvariantViolation: If a line has both or neither side set, or a
            negative amount
        UnbalancedTemplate: If total debits differ from total credits
    """
    total_debits = ZERO
    total_credits = ZERO
    for line in lines:
        if line.debit_amount < 0 or line.credit_amount < 0:
            raise InvariantViolation(f"Negative amount on account {line.account_id}")
        if (line.debit_amount > 0) == (line.credit_amount > 0):
            raise InvariantViolation(
                f"Posting on account {line.account_id} must have exactly one of debit or credit"
            )
        total_debits += line.debit_amount
        total_credits += line.credit_amount

    if total_debits != total_credits:
        raise UnbalancedTemplate(total_debits, total_credits)


def estimate_loan_split(amount: Decimal) -> tuple[Decimal, Decimal]:
    """Split a loan payment into (principal, interest) using the fixed estimate.

    Interest is rounded to the cent and principal takes the remainder, so the
    two always add back to the payment.
    """
    interest = to_money(amount * ESTIMATED_INTEREST_SHARE)
    return amount - interest, interest


class PostingFactory:
    """Builds posting lines for raw transactions.

    The category account is resolved by the caller; this class never matches
    strings against the chart of accounts. ``account_types`` is only consulted
    for transfers, whose legs must both be asset or liability accounts.
    """

    def __init__(
        self,
        account_map: AccountMap,
        account_types: Optional[Mapping[int, AccountType]] = None,
    ):
        self.account_map = account_map
        self.account_types = dict(account_types or {})
        self._templates: dict[PostingTemplate, Callable[[RawTransaction, int, Decimal], list[PostingLine]]] = {
            PostingTemplate.ASSET_PURCHASE: self._asset_purchase,
            PostingTemplate.INVENTORY_PURCHASE: self._inventory_purchase,
            PostingTemplate.LOAN_PAYMENT: self._loan_payment,
            PostingTemplate.CREDIT_CARD_PAYMENT: self._credit_card_payment,
            PostingTemplate.TAX_PAYMENT: self._tax_payment,
            PostingTemplate.CUSTOMER_PAYMENT: self._customer_payment,
            PostingTemplate.VENDOR_PAYMENT: self._vendor_payment,
            PostingTemplate.PAYROLL: self._payroll,
        }

    def build(
        self,
        raw: RawTransaction,
        category_account_id: Optional[int] = None,
        cash_account_id: Optional[int] = None,
    ) -> list[PostingLine]:
        """Build balanced posting lines for one transaction.

        Args:
            raw: The transaction to post
            category_account_id: Resolved income/expense account, if any
            cash_account_id: Ledger account of the bank account; defaults to
                the account map's cash role

        Returns:
            Posting lines. Empty for a transfer with no counterparty.

        Raises:
            ValidationError: If the amount is not positive
            MissingRequiredAccount: If the template needs an absent role
            InvalidTransferAccount: If a transfer leg is not asset/liability
            UnbalancedTemplate: If a template produced unbalanced lines
        """
        if raw.amount is None or raw.amount <= 0:
            raise ValidationError("Amount must be greater than zero")

        amount = to_money(raw.amount)
        cash = cash_account_id or self.account_map.cash
        if cash is None:
            raise MissingRequiredAccount("cash")

        if raw.template is not None:
            expected = TEMPLATE_DIRECTIONS[raw.template]
            if raw.direction != expected:
                raise PostingError(
                    f"Template '{raw.template.value}' applies to {expected.value.lower()} "
                    f"transactions, not {raw.direction.value.lower()}"
                )
            lines = self._templates[raw.template](raw, cash, amount)
        elif raw.direction == TransactionType.INCOME:
            lines = self._income(raw, cash, amount, category_account_id)
        elif raw.direction == TransactionType.EXPENSE:
            lines = self._expense(raw, cash, amount, category_account_id)
        else:
            lines = self._transfer(raw, cash, amount)

        assert_balanced(lines)
        return lines

    def _require(self, role: str) -> int:
        account_id = getattr(self.account_map, role)
        if account_id is None:
            raise MissingRequiredAccount(role)
        return account_id

    def _income(
        self,
        raw: RawTransaction,
        cash: int,
        amount: Decimal,
        category_account_id: Optional[int],
    ) -> list[PostingLine]:
        revenue = category_account_id or self.account_map.income_fallback
        if revenue is None:
            raise MissingRequiredAccount("income")
        if revenue == cash:
            raise PostingError("Income category cannot be the cash account itself")

        tax = to_money(raw.tax_amount) if raw.tax_amount else ZERO
        if tax < 0 or tax >= amount:
            raise ValidationError("Tax amount must be between zero and the transaction amount")

        lines = [PostingLine.debit(cash, amount, f"Cash received: {raw.description}")]
        if tax > 0:
            sales_tax = self._require("sales_tax_payable")
            lines.append(PostingLine.credit(revenue, amount - tax, f"Revenue: {raw.description}"))
            lines.append(PostingLine.credit(sales_tax, tax, f"Sales tax: {raw.description}"))
        else:
            lines.append(PostingLine.credit(revenue, amount, f"Revenue: {raw.description}"))
        return lines

    def _expense(
        self,
        raw: RawTransaction,
        cash: int,
        amount: Decimal,
        category_account_id: Optional[int],
    ) -> list[PostingLine]:
        expense = category_account_id or self.account_map.expense_fallback
        if expense is None:
            raise MissingRequiredAccount("expense")
        if expense == cash:
            raise PostingError("Expense category cannot be the cash account itself")
        return [
            PostingLine.debit(expense, amount, f"Expense: {raw.description}"),
            PostingLine.credit(cash, amount, f"Cash payment: {raw.description}"),
        ]

    def _transfer(self, raw: RawTransaction, cash: int, amount: Decimal) -> list[PostingLine]:
        counterparty = raw.counterparty_account_id
        if counterparty is None:
            return []
        if counterparty == cash:
            raise PostingError("Transfer source and destination accounts must differ")

        for account_id in (cash, counterparty):
            account_type = self.account_types.get(account_id)
            if account_type not in TRANSFER_ACCOUNT_TYPES:
                raise InvalidTransferAccount(
                    account_id, account_type.value if account_type else None
                )

        if raw.inbound:
            destination, source = cash, counterparty
        else:
            destination, source = counterparty, cash
        return [
            PostingLine.debit(destination, amount, f"Transfer in: {raw.description}"),
            PostingLine.credit(source, amount, f"Transfer out: {raw.description}"),
        ]

    def _pay_from_cash(
        self, raw: RawTransaction, cash: int, amount: Decimal, role: str, label: str
    ) -> list[PostingLine]:
        return [
            PostingLine.debit(self._require(role), amount, f"{label}: {raw.description}"),
            PostingLine.credit(cash, amount, f"Cash payment: {raw.description}"),
        ]

    def _asset_purchase(self, raw, cash, amount):
        return self._pay_from_cash(raw, cash, amount, "fixed_assets", "Asset purchase")

    def _inventory_purchase(self, raw, cash, amount):
        return self._pay_from_cash(raw, cash, amount, "inventory", "Inventory purchase")

    def _credit_card_payment(self, raw, cash, amount):
        return self._pay_from_cash(raw, cash, amount, "credit_cards_payable", "Credit card payment")

    def _vendor_payment(self, raw, cash, amount):
        return self._pay_from_cash(raw, cash, amount, "accounts_payable", "Vendor payment")

    def _payroll(self, raw, cash, amount):
        return self._pay_from_cash(raw, cash, amount, "salaries_wages", "Payroll")

    def _tax_payment(self, raw, cash, amount):
        if "payroll" in raw.description.lower():
            return self._pay_from_cash(raw, cash, amount, "payroll_tax_payable", "Payroll tax payment")
        return self._pay_from_cash(raw, cash, amount, "sales_tax_payable", "Sales tax payment")

    def _customer_payment(self, raw, cash, amount):
        receivable = self._require("accounts_receivable")
        return [
            PostingLine.debit(cash, amount, f"Cash received: {raw.description}"),
            PostingLine.credit(receivable, amount, f"Customer payment: {raw.description}"),
        ]

    def _loan_payment(self, raw, cash, amount):
        loans = self._require("loans_payable")
        if raw.principal_amount is not None or raw.interest_amount is not None:
            principal = to_money(raw.principal_amount or ZERO)
            interest = to_money(raw.interest_amount or ZERO)
            if principal < 0 or interest < 0 or principal + interest != amount:
                raise ValidationError(
                    f"Principal {principal} and interest {interest} must add up to {amount}"
                )
        else:
            principal, interest = estimate_loan_split(amount)

        lines = []
        if principal > 0:
            lines.append(PostingLine.debit(loans, principal, f"Loan principal: {raw.description}"))
        if interest > 0:
            interest_expense = self._require("interest_expense")
            lines.append(
                PostingLine.debit(interest_expense, interest, f"Loan interest: {raw.description}")
            )
        lines.append(PostingLine.credit(cash, amount, f"Loan payment: {raw.description}"))
        return lines
