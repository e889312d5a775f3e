"""Shared pytest fixtures for ledgerpost tests."""

import logging
import os
import tempfile
from datetime import date
from decimal import Decimal

import pytest

from ledgerpost.database.factories import create_sqlite_database
from ledgerpost.domain.accounts import ChartOfAccountsService
from ledgerpost.domain.balances import BalanceService
from ledgerpost.domain.bank_accounts import BankAccountService
from ledgerpost.domain.business import BusinessService
from ledgerpost.domain.entities import RawTransaction, TransactionType
from ledgerpost.domain.transaction import TransactionService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def business_service(temp_db):
    return BusinessService(temp_db)


@pytest.fixture
def chart_service(temp_db):
    return ChartOfAccountsService(temp_db)


@pytest.fixture
def bank_account_service(temp_db):
    return BankAccountService(temp_db)


@pytest.fixture
def transaction_service(temp_db):
    return TransactionService(temp_db)


@pytest.fixture
def balance_service(temp_db):
    return BalanceService(temp_db)


@pytest.fixture
def business(business_service):
    """Create a business with the default chart of accounts and return its ID."""
    return business_service.create_business("Acme Bakery")


@pytest.fixture
def accounts(chart_service, business):
    """Map of account code to Account for the seeded chart."""
    return {acc.code: acc for acc in chart_service.list_accounts(business)}


@pytest.fixture
def account_map(chart_service, business):
    return chart_service.build_account_map(business)


@pytest.fixture
def checking(bank_account_service, business, accounts):
    """Locally-calculated checking account linked to 1000 Cash."""
    return bank_account_service.create_bank_account(
        business_id=business, name="Business Checking", ledger_account_id=accounts["1000"].id
    )


@pytest.fixture
def synced_card(bank_account_service, business, accounts):
    """Externally-synced credit card linked to 2100 Credit Cards Payable."""
    return bank_account_service.create_bank_account(
        business_id=business,
        name="Visa",
        ledger_account_id=accounts["2100"].id,
        externally_synced=True,
    )


@pytest.fixture
def make_raw():
    """Build RawTransaction records with sensible defaults."""

    def _make_raw(description="Office supplies", amount="25.00", direction=TransactionType.EXPENSE, **kwargs):
        kwargs.setdefault("date", date(2024, 3, 1))
        return RawTransaction(
            description=description,
            amount=Decimal(amount) if isinstance(amount, str) else amount,
            direction=direction,
            **kwargs,
        )

    return _make_raw


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture(autouse=True)
def reset_ledgerpost_logging():
    """Drop handlers the CLI attaches so later tests log normally."""
    yield
    logger = logging.getLogger("ledgerpost")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
