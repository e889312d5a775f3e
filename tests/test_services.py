"""Tests for the business, chart-of-accounts, bank account and transaction services."""

from datetime import date
from decimal import Decimal

import pytest

from ledgerpost.domain.accounts import DEFAULT_CHART_OF_ACCOUNTS, classify_code
from ledgerpost.domain.entities import (
    AccountType,
    PostingTemplate,
    ReconciliationStatus,
    TransactionType,
)
from ledgerpost.domain.errors import (
    ConflictError,
    DependencyError,
    MissingAccountRoles,
    MissingRequiredAccount,
    NotFoundError,
    ValidationError,
)
from ledgerpost.domain.transaction import OPENING_BALANCE_DESCRIPTION


def postings_by_code(transaction_service, accounts, transaction_id):
    codes = {acc.id: code for code, acc in accounts.items()}
    return [
        (codes[p.account_id], p.debit_amount, p.credit_amount)
        for p in transaction_service.get_postings(transaction_id)
    ]


class TestBusinessService:
    def test_create_seeds_default_chart(self, business_service, chart_service):
        business_id = business_service.create_business("Corner Shop")

        assert len(chart_service.list_accounts(business_id)) == len(DEFAULT_CHART_OF_ACCOUNTS)

    def test_create_without_chart(self, business_service, chart_service):
        business_id = business_service.create_business("Empty Co", seed_chart=False)

        assert chart_service.list_accounts(business_id) == []

    def test_duplicate_name_rejected(self, business_service, business):
        with pytest.raises(ConflictError):
            business_service.create_business("Acme Bakery")

    def test_empty_name_rejected(self, business_service):
        with pytest.raises(ValidationError):
            business_service.create_business("  ")

    def test_list_businesses_sorted_by_name(self, business_service):
        business_service.create_business("Zeta", seed_chart=False)
        business_service.create_business("Alpha", seed_chart=False)

        assert [b.name for b in business_service.list_businesses()] == ["Alpha", "Zeta"]


class TestChartOfAccountsService:
    def test_seed_is_idempotent(self, chart_service, business):
        assert chart_service.seed_default_chart(business) == 0

    def test_create_account(self, chart_service, business):
        account_id = chart_service.create_account(
            business, "6450", "Software Subscriptions", AccountType.EXPENSE, description="SaaS"
        )

        account = chart_service.get_account(account_id)
        assert (account.code, account.type, account.is_active) == ("6450", AccountType.EXPENSE, True)

    def test_duplicate_code_rejected(self, chart_service, business):
        with pytest.raises(ConflictError):
            chart_service.create_account(business, "1000", "Another Cash", AccountType.ASSET)

    @pytest.mark.parametrize("code", ["", "12", "ABCD", "1000-1"])
    def test_malformed_code_rejected(self, chart_service, business, code):
        with pytest.raises(ValidationError):
            chart_service.create_account(business, code, "Bad", AccountType.ASSET)

    def test_unknown_parent_rejected(self, chart_service, business):
        with pytest.raises(NotFoundError):
            chart_service.create_account(business, "1020", "Till", AccountType.ASSET, parent_id=999)

    def test_change_type_blocked_by_postings(
        self, chart_service, transaction_service, business, accounts, make_raw
    ):
        transaction_service.create_transaction(business, make_raw("Rent", category="Rent"))

        with pytest.raises(DependencyError):
            chart_service.change_type(accounts["6100"].id, AccountType.ASSET)

    def test_change_type_without_postings(self, chart_service, accounts):
        chart_service.change_type(accounts["6800"].id, AccountType.ASSET)

        assert chart_service.get_account(accounts["6800"].id).type == AccountType.ASSET

    def test_deactivate_hides_account_and_its_role(self, chart_service, business, accounts):
        chart_service.deactivate_account(accounts["6900"].id)

        active_codes = [acc.code for acc in chart_service.list_accounts(business)]
        all_codes = [acc.code for acc in chart_service.list_accounts(business, include_inactive=True)]
        assert "6900" not in active_codes
        assert "6900" in all_codes
        assert chart_service.build_account_map(business).misc_expense is None

        chart_service.reactivate_account(accounts["6900"].id)
        assert chart_service.build_account_map(business).misc_expense == accounts["6900"].id

    def test_delete_blocked_by_bank_account(self, chart_service, accounts, checking):
        with pytest.raises(DependencyError, match="1 bank account"):
            chart_service.delete_account(accounts["1000"].id)

    def test_delete_unused_account(self, chart_service, business, accounts):
        chart_service.delete_account(accounts["3400"].id)

        with pytest.raises(NotFoundError):
            chart_service.require_account_by_code(business, "3400")

    def test_rename_account(self, chart_service, accounts):
        chart_service.rename_account(accounts["6300"].id, " Supplies ")

        assert chart_service.get_account(accounts["6300"].id).name == "Supplies"

    def test_classify_code(self):
        assert classify_code("1010") == "ASSETS"
        assert classify_code("5000") == "COST_OF_SALES"
        assert classify_code("9000") is None
        assert classify_code("abc") is None


class TestBankAccountService:
    def test_create_links_ledger_account(self, bank_account_service, accounts, checking):
        bank_account = bank_account_service.get_bank_account(checking)

        assert bank_account.ledger_account_id == accounts["1000"].id
        assert not bank_account.is_externally_synced
        assert bank_account.external_balance is None

    def test_expense_ledger_account_rejected(self, bank_account_service, business, accounts):
        with pytest.raises(ValidationError):
            bank_account_service.create_bank_account(business, "Oops", accounts["6100"].id)

    def test_inactive_ledger_account_rejected(self, bank_account_service, chart_service, business, accounts):
        chart_service.deactivate_account(accounts["1010"].id)

        with pytest.raises(ValidationError):
            bank_account_service.create_bank_account(business, "Till", accounts["1010"].id)

    def test_ledger_account_of_other_business_rejected(
        self, bank_account_service, business_service, chart_service, business
    ):
        other = business_service.create_business("Other Co")
        foreign_cash = chart_service.require_account_by_code(other, "1000")

        with pytest.raises(NotFoundError):
            bank_account_service.create_bank_account(business, "Foreign", foreign_cash.id)

    def test_synced_accounts_listed_first(self, bank_account_service, business, checking, synced_card):
        assert [b.id for b in bank_account_service.list_bank_accounts(business)] == [synced_card, checking]

    def test_record_sync_on_local_account_rejected(self, bank_account_service, checking):
        with pytest.raises(ValidationError):
            bank_account_service.record_sync(checking, Decimal("10.00"))


class TestTransactionService:
    def test_create_transaction_with_bank_account(
        self, transaction_service, business, accounts, checking, make_raw
    ):
        transaction_id = transaction_service.create_transaction(
            business, make_raw("Flour", "80.00", category="Cost of Goods Sold"), bank_account_id=checking
        )

        txn = transaction_service.get_transaction(transaction_id)
        assert txn.bank_account_id == checking
        assert txn.category_account_id == accounts["5000"].id
        assert txn.reconciliation_status == ReconciliationStatus.UNRECONCILED
        assert postings_by_code(transaction_service, accounts, transaction_id) == [
            ("5000", Decimal("80.00"), Decimal("0.00")),
            ("1000", Decimal("0.00"), Decimal("80.00")),
        ]

    def test_templated_transaction_has_no_category(
        self, transaction_service, business, accounts, make_raw
    ):
        transaction_id = transaction_service.create_transaction(
            business, make_raw("Visa payment", "300.00", template=PostingTemplate.CREDIT_CARD_PAYMENT)
        )

        assert transaction_service.get_transaction(transaction_id).category_account_id is None
        assert postings_by_code(transaction_service, accounts, transaction_id)[0][0] == "2100"

    def test_duplicate_external_id_rejected(self, transaction_service, business, make_raw):
        transaction_service.create_transaction(business, make_raw(external_id="abc"))

        with pytest.raises(ConflictError):
            transaction_service.create_transaction(business, make_raw(external_id="abc"))

    def test_transfer_without_counterparty_rejected(self, transaction_service, business, make_raw):
        with pytest.raises(ValidationError):
            transaction_service.create_transaction(
                business, make_raw("Move money", direction=TransactionType.TRANSFER)
            )

    def test_invalid_row_rejected(self, transaction_service, business, make_raw):
        with pytest.raises(ValidationError):
            transaction_service.create_transaction(business, make_raw(amount="-3.00"))

    def test_business_without_cash_rejected(
        self, transaction_service, business_service, chart_service, make_raw
    ):
        business_id = business_service.create_business("Cashless", seed_chart=False)
        chart_service.create_account(business_id, "4000", "Sales", AccountType.INCOME)
        chart_service.create_account(business_id, "6900", "Misc", AccountType.EXPENSE)

        with pytest.raises(MissingAccountRoles):
            transaction_service.create_transaction(business_id, make_raw())

    def test_list_transactions_newest_first(self, transaction_service, business, make_raw):
        older = transaction_service.create_transaction(business, make_raw(date=date(2024, 1, 5)))
        newer = transaction_service.create_transaction(business, make_raw(date=date(2024, 2, 5)))

        assert [t.id for t in transaction_service.list_transactions(business)] == [newer, older]
        assert [
            t.id for t in transaction_service.list_transactions(business, start_date=date(2024, 2, 1))
        ] == [newer]

    def test_recategorize_moves_category_lines_only(
        self, transaction_service, business, accounts, make_raw
    ):
        transaction_id = transaction_service.create_transaction(
            business,
            make_raw("Workshop fee", "107.00", TransactionType.INCOME, tax_amount=Decimal("7.00")),
        )

        new_account = transaction_service.recategorize(transaction_id, "Sales Revenue")

        assert new_account == accounts["4000"].id
        assert transaction_service.get_transaction(transaction_id).category_account_id == new_account
        assert postings_by_code(transaction_service, accounts, transaction_id) == [
            ("1000", Decimal("107.00"), Decimal("0.00")),
            ("4000", Decimal("0.00"), Decimal("100.00")),
            ("2300", Decimal("0.00"), Decimal("7.00")),
        ]

    def test_recategorize_without_match_raises(self, transaction_service, business, make_raw):
        transaction_id = transaction_service.create_transaction(business, make_raw())

        with pytest.raises(NotFoundError):
            transaction_service.recategorize(transaction_id, "Zebra grooming")

    def test_recategorize_templated_transaction_rejected(self, transaction_service, business, make_raw):
        transaction_id = transaction_service.create_transaction(
            business, make_raw("Payroll", template=PostingTemplate.PAYROLL)
        )

        with pytest.raises(ValidationError):
            transaction_service.recategorize(transaction_id, "Rent")

    def test_recategorize_onto_cash_account_rejected(self, transaction_service, temp_db, business, make_raw):
        transaction_id = transaction_service.create_transaction(business, make_raw())
        before = temp_db.get_postings(transaction_id)

        with pytest.raises(ValidationError):
            transaction_service.recategorize(transaction_id, "1000")
        assert temp_db.get_postings(transaction_id) == before

    def test_set_reconciliation_status(self, transaction_service, business, make_raw):
        transaction_id = transaction_service.create_transaction(business, make_raw())

        transaction_service.set_reconciliation_status(transaction_id, ReconciliationStatus.RECONCILED)

        txn = transaction_service.get_transaction(transaction_id)
        assert txn.reconciliation_status == ReconciliationStatus.RECONCILED

    def test_delete_removes_postings(self, temp_db, transaction_service, business, accounts, make_raw):
        transaction_id = transaction_service.create_transaction(business, make_raw())

        transaction_service.delete_transaction(transaction_id)

        assert transaction_service.get_transaction(transaction_id) is None
        assert temp_db.get_postings(transaction_id) == []
        assert temp_db.sum_postings(accounts["1000"].id) == (Decimal("0.00"), Decimal("0.00"))

    def test_delete_unknown_transaction(self, transaction_service):
        with pytest.raises(NotFoundError):
            transaction_service.delete_transaction(999)

    def test_opening_balance_for_asset_account(self, transaction_service, accounts, checking):
        transaction_id = transaction_service.create_opening_balance(
            checking, Decimal("2500.00"), date(2024, 1, 1)
        )

        txn = transaction_service.get_transaction(transaction_id)
        assert txn.description == OPENING_BALANCE_DESCRIPTION
        assert txn.type == TransactionType.TRANSFER
        assert postings_by_code(transaction_service, accounts, transaction_id) == [
            ("1000", Decimal("2500.00"), Decimal("0.00")),
            ("3050", Decimal("0.00"), Decimal("2500.00")),
        ]

    def test_opening_balance_for_liability_account(self, transaction_service, accounts, synced_card):
        transaction_id = transaction_service.create_opening_balance(
            synced_card, Decimal("400.00"), date(2024, 1, 1)
        )

        assert postings_by_code(transaction_service, accounts, transaction_id) == [
            ("3050", Decimal("400.00"), Decimal("0.00")),
            ("2100", Decimal("0.00"), Decimal("400.00")),
        ]

    def test_negative_opening_balance_for_asset_account(self, transaction_service, accounts, checking):
        transaction_id = transaction_service.create_opening_balance(
            checking, Decimal("-50.00"), date(2024, 1, 1)
        )

        assert postings_by_code(transaction_service, accounts, transaction_id)[1] == (
            "1000",
            Decimal("0.00"),
            Decimal("50.00"),
        )

    def test_second_opening_balance_rejected(self, transaction_service, checking):
        transaction_service.create_opening_balance(checking, Decimal("10.00"), date(2024, 1, 1))

        with pytest.raises(ConflictError):
            transaction_service.create_opening_balance(checking, Decimal("10.00"), date(2024, 1, 1))

    def test_zero_opening_balance_rejected(self, transaction_service, checking):
        with pytest.raises(ValidationError):
            transaction_service.create_opening_balance(checking, Decimal("0"), date(2024, 1, 1))

    def test_opening_balance_needs_equity_account(
        self, transaction_service, chart_service, accounts, checking
    ):
        chart_service.deactivate_account(accounts["3050"].id)

        with pytest.raises(MissingRequiredAccount):
            transaction_service.create_opening_balance(checking, Decimal("10.00"), date(2024, 1, 1))
