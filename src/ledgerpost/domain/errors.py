"""Shared domain error messages and error types."""

from typing import Iterable, Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


class MissingAccountRoles(ValidationError):
    """Mandatory account roles are absent from the account map.

    This is a configuration problem for the whole import, not a data problem
    of a single row.
    """

    def __init__(self, roles: Iterable[str]):
        self.roles = tuple(roles)
        super().__init__(
            f"Chart of accounts is missing required accounts: {', '.join(self.roles)}"
        )


class PostingError(DomainError):
    """A single transaction cannot be turned into postings."""


class MissingRequiredAccount(PostingError):
    """The template needs an account role that is not configured."""

    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"No '{kind}' account configured")


class UnresolvedCategory(PostingError):
    """No account matched the category and no fallback account exists."""

    def __init__(self, category: Optional[str], direction: str):
        self.category = category
        self.direction = direction
        label = f"'{category}'" if category else "(none)"
        super().__init__(f"Could not resolve {direction} category {label} and no fallback account exists")


class InvalidTransferAccount(PostingError):
    """Transfer leg points at an account that is not an asset or liability."""

    def __init__(self, account_id: int, account_type: Optional[str]):
        self.account_id = account_id
        super().__init__(
            f"Transfer account {account_id} must be an asset or liability account"
            + (f", got {account_type}" if account_type else "")
        )


class InvariantViolation(DomainError):
    """Postings would break the double-entry invariant.

    Never expected in practice; indicates a defect in a posting template.
    """


class UnbalancedTemplate(InvariantViolation):
    """Posting template produced debits and credits that do not match."""

    def __init__(self, total_debits, total_credits):
        self.total_debits = total_debits
        self.total_credits = total_credits
        super().__init__(
            f"Unbalanced postings: debits {total_debits} != credits {total_credits}"
        )


class TransientWriteError(DomainError):
    """Write failed for a reason worth retrying (timeout, lock contention)."""


def business_not_found(business_id: int) -> str:
    """Return message for missing business."""
    return f"Business {business_id} not found"


def account_not_found(account_id: int) -> str:
    """Return message for missing chart-of-accounts entry."""
    return f"Account {account_id} not found"


def account_code_not_found(code: str) -> str:
    return f"Account with code '{code}' not found"


def bank_account_not_found(bank_account_id: int) -> str:
    return f"Bank account {bank_account_id} not found"


def transaction_not_found(transaction_id: int) -> str:
    return f"Transaction {transaction_id} not found"


def duplicate_account_code(code: str, business_id: int) -> str:
    """Return message for duplicate chart-of-accounts code."""
    return f"Account code '{code}' already exists for business {business_id}"


def account_type_locked(account_id: int, posting_count: int) -> str:
    """Return message when an account type change would rewrite history."""
    return (
        f"Cannot change type of account {account_id}: it has {posting_count} "
        f"posting{'s' if posting_count != 1 else ''}"
    )


def account_delete_blocked(account_id: int, posting_count: int, bank_account_count: int) -> str:
    """Return message when account is still referenced by postings or bank accounts."""
    parts = []
    if posting_count > 0:
        parts.append(f"{posting_count} posting{'s' if posting_count != 1 else ''}")
    if bank_account_count > 0:
        parts.append(
            f"{bank_account_count} bank account{'s' if bank_account_count != 1 else ''}"
        )
    return (
        f"Cannot delete account {account_id}: it has {', '.join(parts)}. "
        "Deactivate it instead."
    )
