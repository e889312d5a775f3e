"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so the schema can evolve without
touching the domain services.
"""

from decimal import Decimal
from typing import Optional

from ledgerpost.domain import entities as domain
from ledgerpost.database.models import (
    Business as ORMBusiness,
    Account as ORMAccount,
    BankAccount as ORMBankAccount,
    Transaction as ORMTransaction,
    Posting as ORMPosting,
)


def _money(value) -> Optional[Decimal]:
    # SQLite hands back floats for Numeric columns on some drivers
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value.quantize(Decimal("0.01"))
    return Decimal(str(value)).quantize(Decimal("0.01"))


def business_to_domain(orm_business: ORMBusiness) -> domain.Business:
    """Convert SQLAlchemy Business model to domain Business entity."""
    return domain.Business(
        id=orm_business.id,
        name=orm_business.name,
        created_at=orm_business.created_at,
    )


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        business_id=orm_account.business_id,
        code=orm_account.code,
        name=orm_account.name,
        type=orm_account.type,
        parent_id=orm_account.parent_id,
        description=orm_account.description,
        is_active=orm_account.is_active,
        created_at=orm_account.created_at,
    )


def bank_account_to_domain(orm_bank_account: ORMBankAccount) -> domain.BankAccount:
    """Convert SQLAlchemy BankAccount model to domain BankAccount entity."""
    return domain.BankAccount(
        id=orm_bank_account.id,
        business_id=orm_bank_account.business_id,
        name=orm_bank_account.name,
        ledger_account_id=orm_bank_account.ledger_account_id,
        balance_source=orm_bank_account.balance_source,
        external_balance=_money(orm_bank_account.external_balance),
        last_synced_at=orm_bank_account.last_synced_at,
        created_at=orm_bank_account.created_at,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        business_id=orm_transaction.business_id,
        bank_account_id=orm_transaction.bank_account_id,
        type=orm_transaction.type,
        amount=_money(orm_transaction.amount),
        date=orm_transaction.date,
        description=orm_transaction.description,
        reference=orm_transaction.reference,
        external_id=orm_transaction.external_id,
        category_account_id=orm_transaction.category_account_id,
        reconciliation_status=orm_transaction.reconciliation_status,
        created_at=orm_transaction.created_at,
    )


def posting_to_domain(orm_posting: ORMPosting) -> domain.Posting:
    """Convert SQLAlchemy Posting model to domain Posting entity."""
    return domain.Posting(
        id=orm_posting.id,
        transaction_id=orm_posting.transaction_id,
        account_id=orm_posting.account_id,
        debit_amount=_money(orm_posting.debit_amount),
        credit_amount=_money(orm_posting.credit_amount),
        description=orm_posting.description,
    )


def pending_to_orm(pending: domain.PendingTransaction) -> ORMTransaction:
    """Build an unsaved ORM Transaction (with its postings) from a pending one."""
    transaction = ORMTransaction(
        business_id=pending.business_id,
        bank_account_id=pending.bank_account_id,
        type=pending.type,
        amount=pending.amount,
        date=pending.date,
        description=pending.description,
        reference=pending.reference,
        external_id=pending.external_id,
        category_account_id=pending.category_account_id,
        reconciliation_status=pending.reconciliation_status,
    )
    transaction.postings = [posting_line_to_orm(line) for line in pending.postings]
    return transaction


def posting_line_to_orm(line: domain.PostingLine) -> ORMPosting:
    return ORMPosting(
        account_id=line.account_id,
        debit_amount=line.debit_amount,
        credit_amount=line.credit_amount,
        description=line.description,
    )
