"""SQLAlchemy models for ledgerpost database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    Enum,
    CheckConstraint,
    UniqueConstraint,
    Index,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

from ledgerpost.domain.entities import (
    AccountType,
    BalanceSource,
    ReconciliationStatus,
    TransactionType,
)

Base = declarative_base()

MONEY = Numeric(14, 2)


class Business(Base):
    """Business (tenant) model."""

    __tablename__ = "businesses"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    accounts = relationship("Account", back_populates="business")
    bank_accounts = relationship("BankAccount", back_populates="business")


class Account(Base):
    """Chart-of-accounts entry model."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False)
    code = Column(String, nullable=False)
    name = Column(String, nullable=False)
    type = Column(Enum(AccountType), nullable=False)
    parent_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    description = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (UniqueConstraint("business_id", "code", name="uq_business_account_code"),)

    # Relationships
    business = relationship("Business", back_populates="accounts")
    parent = relationship("Account", remote_side=[id], backref="children")
    postings = relationship("Posting", back_populates="account")


class BankAccount(Base):
    """Bank account model, linked to its ledger account."""

    __tablename__ = "bank_accounts"

    id = Column(Integer, primary_key=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False)
    name = Column(String, nullable=False)
    ledger_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    balance_source = Column(
        Enum(BalanceSource, values_callable=lambda e: [m.value for m in e]),
        default=BalanceSource.LOCALLY_CALCULATED,
        nullable=False,
    )
    external_balance = Column(MONEY, nullable=True)
    last_synced_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    business = relationship("Business", back_populates="bank_accounts")
    ledger_account = relationship("Account")


class Transaction(Base):
    """Transaction model."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False)
    bank_account_id = Column(Integer, ForeignKey("bank_accounts.id"), nullable=True)
    type = Column(Enum(TransactionType), nullable=False)
    amount = Column(MONEY, nullable=False)
    date = Column(Date, nullable=False)
    description = Column(String, nullable=False)
    reference = Column(String, nullable=True)
    external_id = Column(String, nullable=True)
    category_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    reconciliation_status = Column(
        Enum(ReconciliationStatus),
        default=ReconciliationStatus.UNRECONCILED,
        nullable=False,
    )
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_transaction_amount_non_negative"),
        Index("ix_transactions_business_external_id", "business_id", "external_id"),
        Index("ix_transactions_bank_account_date", "bank_account_id", "date"),
    )

    # Relationships
    postings = relationship(
        "Posting",
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="Posting.id",
    )


class Posting(Base):
    """Journal entry line model."""

    __tablename__ = "postings"

    id = Column(Integer, primary_key=True)
    transaction_id = Column(Integer, ForeignKey("transactions.id", ondelete="CASCADE"), nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    debit_amount = Column(MONEY, default=0, nullable=False)
    credit_amount = Column(MONEY, default=0, nullable=False)
    description = Column(String, nullable=True)

    # A line is a debit or a credit, never both and never neither
    __table_args__ = (
        CheckConstraint("debit_amount >= 0", name="ck_posting_debit_non_negative"),
        CheckConstraint("credit_amount >= 0", name="ck_posting_credit_non_negative"),
        CheckConstraint(
            "(debit_amount > 0 AND credit_amount = 0) OR (debit_amount = 0 AND credit_amount > 0)",
            name="ck_posting_one_side",
        ),
        Index("ix_postings_account_id", "account_id"),
    )

    # Relationships
    transaction = relationship("Transaction", back_populates="postings")
    account = relationship("Account", back_populates="postings")


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """SQLite ignores foreign keys unless asked per connection."""
    module = type(dbapi_connection).__module__
    if module.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
