"""Duplicate detection for bank-feed imports."""

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from ledgerpost.config import DuplicatePolicy
from ledgerpost.database.base import Database
from ledgerpost.domain.entities import (
    DuplicateCheckResult,
    DuplicateMatch,
    RawTransaction,
    TransactionType,
)
from ledgerpost.domain.errors import ValidationError

logger = logging.getLogger(__name__)

# Confidence is reported with this many decimal places
CONFIDENCE_PLACES = 6


def score_match(
    candidate_amount: Decimal,
    candidate_date: date,
    existing_amount: Decimal,
    existing_date: date,
    policy: DuplicatePolicy,
) -> float:
    """Score how likely an existing transaction duplicates a candidate.

    ``amount_weight * amount_match + date_weight * date_match`` where
    ``amount_match = 1 - |diff| / candidate_amount`` and
    ``date_match = 1 - |days| / date_window_days``.
    """
    if candidate_amount <= 0:
        raise ValidationError("Candidate amount must be greater than zero")

    amount_match = Decimal(1) - abs(Decimal(candidate_amount) - Decimal(existing_amount)) / Decimal(
        candidate_amount
    )
    days_apart = abs((candidate_date - existing_date).days)
    date_match = Decimal(1) - Decimal(days_apart) / Decimal(policy.date_window_days)

    confidence = (
        Decimal(str(policy.amount_weight)) * amount_match
        + Decimal(str(policy.date_weight)) * date_match
    )
    return round(float(confidence), CONFIDENCE_PLACES)


class DuplicateDetector:
    """Scores a candidate transaction against the existing ledger."""

    def __init__(self, db: Database, policy: Optional[DuplicatePolicy] = None):
        self.db = db
        self.policy = policy or DuplicatePolicy()

    def check(
        self,
        business_id: int,
        candidate: RawTransaction,
        bank_account_id: Optional[int] = None,
    ) -> DuplicateCheckResult:
        """Check a candidate against transactions in its date and amount window.

        Only transactions of the same direction on the same bank account are
        considered and every one of them is scored. The highest-confidence
        match is reported; it counts as a
        duplicate when its confidence exceeds the policy threshold.
        """
        if candidate.date is None:
            raise ValidationError("Candidate date is required for duplicate detection")

        policy = self.policy
        amount = Decimal(candidate.amount)
        window = timedelta(days=policy.date_window_days)
        candidates = self.db.find_transactions_in_window(
            business_id=business_id,
            bank_account_id=bank_account_id,
            transaction_type=TransactionType(candidate.direction),
            start_date=candidate.date - window,
            end_date=candidate.date + window,
            min_amount=amount * (Decimal(1) - policy.amount_tolerance),
            max_amount=amount * (Decimal(1) + policy.amount_tolerance),
        )
        if not candidates:
            return DuplicateCheckResult(is_duplicate=False, confidence=0.0)

        best: Optional[DuplicateMatch] = None
        for existing in candidates:
            confidence = score_match(
                amount, candidate.date, existing.amount, existing.date, policy
            )
            if best is None or confidence > best.confidence:
                best = DuplicateMatch(
                    transaction_id=existing.id,
                    date=existing.date,
                    amount=existing.amount,
                    description=existing.description,
                    confidence=confidence,
                )

        is_duplicate = best.confidence > policy.duplicate_threshold
        logger.debug(
            "Best match for %r is transaction %d (confidence %.3f)",
            candidate.description,
            best.transaction_id,
            best.confidence,
        )
        return DuplicateCheckResult(
            is_duplicate=is_duplicate, confidence=best.confidence, match=best
        )
