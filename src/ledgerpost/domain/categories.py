"""Category resolution: map free-text category labels to chart accounts."""

import logging
import re
from abc import ABC, abstractmethod
from typing import Iterable, Optional

from ledgerpost.domain.account_map import AccountMap
from ledgerpost.domain.entities import Account, AccountType, TransactionType
from ledgerpost.domain.errors import UnresolvedCategory

logger = logging.getLogger(__name__)

LEADING_CODE = re.compile(r"^(\d{4})")
WORD_SPLIT = re.compile(r"\s+")


class CategoryResolver(ABC):
    """Resolves a category label to an account ID for a transaction direction."""

    @abstractmethod
    def resolve(self, category: Optional[str], direction: TransactionType) -> int:
        """Return the account ID for the category.

        Raises:
            UnresolvedCategory: If nothing matches and no fallback exists
        """
        pass


def keyword_score(keywords: Iterable[str], text: str) -> int:
    """Sum the lengths of the keywords found in text."""
    return sum(len(keyword) for keyword in keywords if keyword in text)


def split_keywords(category: str) -> list[str]:
    return [
        word
        for word in WORD_SPLIT.split(category.lower())
        if word and any(ch.isalnum() for ch in word)
    ]


class ChartCategoryResolver(CategoryResolver):
    """Resolves categories against a business's active chart of accounts.

    Resolution order:

    1. Exact, case-insensitive name match across active accounts.
    2. A leading four-digit code, matched against account codes.
    3. Keyword scoring over name and description of active accounts of the
       expected type; the highest score wins and ties go to the account that
       comes first in code order.
    4. The account map's fallback for the direction.

    Results are cached per (label, direction) for the lifetime of the
    resolver, which is one import job.
    """

    def __init__(self, accounts: Iterable[Account], account_map: AccountMap):
        self.accounts = sorted(
            (acc for acc in accounts if acc.is_active), key=lambda acc: (acc.code, acc.id)
        )
        self.account_map = account_map
        self._cache: dict[tuple[str, TransactionType], int] = {}

    def resolve(self, category: Optional[str], direction: TransactionType) -> int:
        label = (category or "").strip()
        key = (label.lower(), direction)
        if key in self._cache:
            return self._cache[key]

        account_id = self.match(label, self.expected_type(direction)) if label else None

        if account_id is None:
            account_id = self.account_map.fallback_for(direction)
            if account_id is None:
                raise UnresolvedCategory(label or None, direction.value.lower())
            logger.debug(
                "Category %r fell back to account %d for %s",
                label,
                account_id,
                direction.value.lower(),
            )

        self._cache[key] = account_id
        return account_id

    @staticmethod
    def expected_type(direction: TransactionType) -> AccountType:
        """Account type a category should have for a transaction direction."""
        if direction == TransactionType.INCOME:
            return AccountType.INCOME
        return AccountType.EXPENSE

    def match(self, label: str, expected_type: AccountType) -> Optional[int]:
        """Match a label without falling back. Returns None when nothing matches."""
        lowered = label.lower()
        for account in self.accounts:
            if account.name.lower() == lowered:
                return account.id

        code_match = LEADING_CODE.match(label)
        if code_match:
            code = code_match.group(1)
            for account in self.accounts:
                if account.code == code:
                    return account.id

        keywords = split_keywords(label)
        if not keywords:
            return None

        best_id = None
        best_score = 0
        for account in self.accounts:
            if account.type != expected_type:
                continue
            text = f"{account.name} {account.description or ''}".lower()
            score = keyword_score(keywords, text)
            if score > best_score:
                best_score = score
                best_id = account.id
        return best_id
