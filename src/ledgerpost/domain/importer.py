"""Batch import processor.

Turns an ordered list of raw transactions into persisted, balanced ledger
transactions. Work is split into small batches; each batch is written as one
atomic unit and retried on transient failures. Row-level problems are
collected and never abort the rest of the import.
"""

import logging
import math
import threading
import time
from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation
from typing import Callable, Iterable, Optional, Sequence

from ledgerpost.config import DuplicatePolicy, ImportConfig
from ledgerpost.database.base import Database
from ledgerpost.domain.account_map import AccountMap
from ledgerpost.domain.categories import CategoryResolver, ChartCategoryResolver
from ledgerpost.domain.duplicates import DuplicateDetector
from ledgerpost.domain.entities import (
    ImportProgress,
    ImportResult,
    PendingTransaction,
    PossibleMatch,
    RawTransaction,
    RowError,
    SkippedRow,
    TransactionType,
)
from ledgerpost.domain.errors import (
    DomainError,
    InvariantViolation,
    MissingAccountRoles,
    NotFoundError,
    TransientWriteError,
    ValidationError,
    bank_account_not_found,
    business_not_found,
)
from ledgerpost.domain.postings import PostingFactory, to_money

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ImportProgress], None]

CANCELLED_REASON = "Import cancelled before this row was processed"


@dataclass(frozen=True)
class _PreparedRow:
    row: int
    pending: PendingTransaction


class BatchImportProcessor:
    """Imports raw transactions for one business in bounded, retryable batches."""

    def __init__(
        self,
        db: Database,
        config: Optional[ImportConfig] = None,
        duplicate_policy: Optional[DuplicatePolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize batch import processor.

        Args:
            db: Database instance
            config: Batch size, retry and timeout settings
            duplicate_policy: Scoring constants used when duplicate
                detection is enabled
            sleep: Function used to wait between retries
        """
        self.db = db
        self.config = config or ImportConfig()
        self.duplicate_detector = DuplicateDetector(db, duplicate_policy)
        self.sleep = sleep

    def import_transactions(
        self,
        business_id: int,
        records: Iterable[RawTransaction],
        account_map: AccountMap,
        bank_account_id: Optional[int] = None,
        resolver: Optional[CategoryResolver] = None,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> ImportResult:
        """Import raw transactions.

        Args:
            business_id: Business the transactions belong to
            records: Raw transactions in input order
            account_map: Well-known account roles for the business
            bank_account_id: Bank account the records came from. Its ledger
                account replaces the map's cash role.
            resolver: Category resolver; defaults to one built from the
                business's active chart of accounts
            progress_callback: Called after each batch
            cancel_event: When set, no further batches are started

        Returns:
            ImportResult. ``success`` is False only when the import could not
            start (missing business, bank account or mandatory accounts); in
            that case nothing was written.
        """
        records = list(records)
        total = len(records)

        try:
            account_map = self._check_preconditions(business_id, account_map, bank_account_id)
        except (MissingAccountRoles, NotFoundError) as e:
            logger.warning("Import for business %d not started: %s", business_id, e)
            return ImportResult(success=False, total=total, error=str(e))

        active_accounts = self.db.list_accounts(business_id, active_only=True)
        if resolver is None:
            resolver = ChartCategoryResolver(active_accounts, account_map)
        factory = PostingFactory(account_map, {acc.id: acc.type for acc in active_accounts})

        job = _ImportJob(
            processor=self,
            business_id=business_id,
            account_map=account_map,
            bank_account_id=bank_account_id,
            resolver=resolver,
            factory=factory,
        )
        result = ImportResult(success=True, total=total)

        batch_size = self.config.batch_size
        total_batches = math.ceil(total / batch_size)
        logger.info(
            "Importing %d transactions for business %d in %d batches",
            total,
            business_id,
            total_batches,
        )

        for batch_index, start in enumerate(range(0, total, batch_size)):
            if cancel_event is not None and cancel_event.is_set():
                for row in range(start + 1, total + 1):
                    result.skipped.append(SkippedRow(row=row, reason=CANCELLED_REASON))
                result.skipped_count += total - start
                result.cancelled = True
                logger.info("Import cancelled after %d of %d rows", start, total)
                break

            batch_number = batch_index + 1
            batch = records[start:start + batch_size]
            logger.debug("Starting batch %d/%d (%d rows)", batch_number, total_batches, len(batch))

            prepared = []
            for offset, raw in enumerate(batch):
                row = start + offset + 1
                outcome = job.prepare(row, raw, result)
                if outcome is not None:
                    prepared.append(outcome)

            if prepared:
                self._write_batch(prepared, batch_number, result)

            processed = min(start + batch_size, total)
            logger.debug("Finished batch %d/%d", batch_number, total_batches)
            self._report_progress(
                progress_callback,
                ImportProgress(
                    processed=processed,
                    total=total,
                    current_batch=batch_number,
                    total_batches=total_batches,
                ),
            )

        logger.info(
            "Import finished: %d imported, %d failed, %d skipped",
            result.imported_count,
            result.failed_count,
            result.skipped_count,
        )
        return result

    def _check_preconditions(
        self, business_id: int, account_map: AccountMap, bank_account_id: Optional[int]
    ) -> AccountMap:
        if self.db.get_business(business_id) is None:
            raise NotFoundError(business_not_found(business_id))

        if bank_account_id is not None:
            bank_account = self.db.get_bank_account(bank_account_id)
            if bank_account is None or bank_account.business_id != business_id:
                raise NotFoundError(bank_account_not_found(bank_account_id))
            account_map = account_map.with_cash(bank_account.ledger_account_id)

        account_map.require_mandatory()
        return account_map

    def _write_batch(
        self, prepared: Sequence[_PreparedRow], batch_number: int, result: ImportResult
    ) -> None:
        pending = [item.pending for item in prepared]
        try:
            transaction_ids = self.write_with_retry(pending, batch_number)
        except TransientWriteError as e:
            attempts = self.config.max_retries + 1
            logger.error(
                "Batch %d failed after %d attempts: %s", batch_number, attempts, e
            )
            self._fail_batch(
                prepared, result, f"Batch write failed after {attempts} attempts: {e}"
            )
            return
        except InvariantViolation as e:
            logger.error("Batch %d rejected by the ledger: %s", batch_number, e)
            self._fail_batch(prepared, result, f"Batch rejected: {e}")
            return

        result.transaction_ids.extend(transaction_ids)
        result.imported_count += len(transaction_ids)

    @staticmethod
    def _fail_batch(
        prepared: Sequence[_PreparedRow], result: ImportResult, message: str
    ) -> None:
        for item in prepared:
            result.errors.append(RowError(row=item.row, message=message))
        result.failed_count += len(prepared)

    def write_with_retry(
        self, pending: Sequence[PendingTransaction], batch_number: int = 1
    ) -> list[int]:
        """Write one batch, retrying transient failures with exponential backoff.

        Raises:
            TransientWriteError: When every attempt failed
        """
        retries = 0
        while True:
            try:
                return self.db.write_batch(pending, timeout=self.config.per_batch_timeout)
            except TransientWriteError as e:
                if retries >= self.config.max_retries:
                    raise
                retries += 1
                delay = self.config.backoff_base * (2 ** (retries - 1))
                logger.warning(
                    "Batch %d write failed (%s), retry %d/%d in %.1fs",
                    batch_number,
                    e,
                    retries,
                    self.config.max_retries,
                    delay,
                )
                self.sleep(delay)

    @staticmethod
    def _report_progress(
        progress_callback: Optional[ProgressCallback], progress: ImportProgress
    ) -> None:
        if progress_callback is None:
            return
        try:
            progress_callback(progress)
        except Exception:
            logger.warning("Progress callback raised; continuing import", exc_info=True)


class _ImportJob:
    """Per-import state: resolver cache, bank account lookups, seen external IDs."""

    def __init__(
        self,
        processor: BatchImportProcessor,
        business_id: int,
        account_map: AccountMap,
        bank_account_id: Optional[int],
        resolver: CategoryResolver,
        factory: PostingFactory,
    ):
        self.db = processor.db
        self.detect_duplicates = processor.config.detect_duplicates
        self.duplicate_detector = processor.duplicate_detector
        self.business_id = business_id
        self.account_map = account_map
        self.bank_account_id = bank_account_id
        self.resolver = resolver
        self.factory = factory
        self._ledger_accounts: dict[int, int] = {}
        self._seen_external_ids: set[str] = set()

    def prepare(
        self, row: int, raw: RawTransaction, result: ImportResult
    ) -> Optional[_PreparedRow]:
        """Validate a row and build its postings.

        Returns None when the row was recorded as failed or skipped.
        """
        if not raw.selected:
            self._skip(result, row, "Not selected for import")
            return None

        try:
            amount = validate_raw(raw)
        except ValidationError as e:
            self._fail(result, row, str(e))
            return None
        raw = replace(raw, amount=amount)

        if raw.external_id:
            if (
                raw.external_id in self._seen_external_ids
                or self.db.external_id_exists(self.business_id, raw.external_id)
            ):
                self._skip(result, row, f"Already imported (external id {raw.external_id})")
                return None

        bank_account_id = raw.bank_account_id or self.bank_account_id
        try:
            cash_account_id = self._cash_account_for(bank_account_id)

            if self.detect_duplicates:
                check = self.duplicate_detector.check(self.business_id, raw, bank_account_id)
                if check.is_duplicate:
                    self._skip(
                        result,
                        row,
                        f"Duplicate of transaction {check.match.transaction_id} "
                        f"(confidence {check.confidence:.2f})",
                    )
                    return None
                if check.is_possible_match:
                    result.possible_matches.append(
                        PossibleMatch(
                            row=row,
                            transaction_id=check.match.transaction_id,
                            confidence=check.confidence,
                        )
                    )

            category_account_id = None
            if raw.template is None and raw.direction != TransactionType.TRANSFER:
                category_account_id = self.resolver.resolve(raw.category, raw.direction)

            lines = self.factory.build(raw, category_account_id, cash_account_id)
        except InvariantViolation as e:
            logger.error("Row %d produced invalid postings: %s", row, e)
            self._fail(result, row, str(e))
            return None
        except DomainError as e:
            self._fail(result, row, str(e))
            return None

        if not lines:
            self._skip(result, row, "Transfer has no counterparty account")
            return None

        if raw.external_id:
            self._seen_external_ids.add(raw.external_id)

        pending = PendingTransaction(
            business_id=self.business_id,
            bank_account_id=bank_account_id,
            type=raw.direction,
            amount=amount,
            date=raw.date,
            description=raw.description.strip(),
            postings=tuple(lines),
            reference=raw.reference,
            external_id=raw.external_id,
            category_account_id=category_account_id,
        )
        return _PreparedRow(row=row, pending=pending)

    def _cash_account_for(self, bank_account_id: Optional[int]) -> int:
        if bank_account_id is None or bank_account_id == self.bank_account_id:
            # Preconditions already swapped the job's bank account into the map
            return self.account_map.cash

        if bank_account_id not in self._ledger_accounts:
            bank_account = self.db.get_bank_account(bank_account_id)
            if bank_account is None or bank_account.business_id != self.business_id:
                raise NotFoundError(bank_account_not_found(bank_account_id))
            self._ledger_accounts[bank_account_id] = bank_account.ledger_account_id
        return self._ledger_accounts[bank_account_id]

    @staticmethod
    def _fail(result: ImportResult, row: int, message: str) -> None:
        result.errors.append(RowError(row=row, message=message))
        result.failed_count += 1

    @staticmethod
    def _skip(result: ImportResult, row: int, reason: str) -> None:
        result.skipped.append(SkippedRow(row=row, reason=reason))
        result.skipped_count += 1


def validate_raw(raw: RawTransaction) -> Decimal:
    """Validate the row-level fields of a raw transaction.

    Returns:
        The amount as a Decimal

    Raises:
        ValidationError: For a missing date, a non-positive or non-finite
            amount, or an empty description
    """
    if raw.date is None:
        raise ValidationError("Invalid or missing date")

    try:
        amount = raw.amount if isinstance(raw.amount, Decimal) else Decimal(str(raw.amount))
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(f"Invalid amount '{raw.amount}'") from e
    if not amount.is_finite() or to_money(amount) <= 0:
        raise ValidationError("Amount must be a positive number")

    if not raw.description or not raw.description.strip():
        raise ValidationError("Description is required")

    for label, extra in (
        ("tax", raw.tax_amount),
        ("principal", raw.principal_amount),
        ("interest", raw.interest_amount),
    ):
        if extra is not None and (not Decimal(extra).is_finite() or extra < 0):
            raise ValidationError(f"Invalid {label} amount '{extra}'")

    return to_money(amount)
