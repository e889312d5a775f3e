"""Configuration for the ledger-posting engine.

This module exposes typed, frozen dataclasses for the tunable parts of the
engine (batch sizes, retry policy, duplicate scoring, reconciliation
tolerance) and a loader that reads them from a TOML file:

    [import]
    batch_size = 20
    max_retries = 3

    [duplicates]
    duplicate_threshold = 0.9

    [reconciliation]
    tolerance = "0.01"
"""

import os
import tomllib
from dataclasses import dataclass, field, fields, replace
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional

from ledgerpost.domain.errors import ValidationError

CONFIG_ENV_VAR = "LEDGERPOST_CONFIG"


@dataclass(frozen=True)
class ImportConfig:
    """Batch import processing settings.

    Attributes:
        batch_size: Number of transactions written per atomic unit.
        max_retries: Retries of a batch write after a transient failure.
        per_batch_timeout: Seconds a batch write may take before it is rolled
            back and treated as a transient failure. None disables the check.
        backoff_base: Seconds to wait before the first retry; doubled on each
            subsequent retry.
        detect_duplicates: Run the duplicate detector on every row (bank-feed
            and statement re-import path).
    """

    batch_size: int = 10
    max_retries: int = 3
    per_batch_timeout: Optional[float] = 30.0
    backoff_base: float = 1.0
    detect_duplicates: bool = False

    def __post_init__(self):
        if self.batch_size < 1:
            raise ValidationError("batch_size must be at least 1")
        if self.max_retries < 0:
            raise ValidationError("max_retries must not be negative")
        if self.per_batch_timeout is not None and self.per_batch_timeout <= 0:
            raise ValidationError("per_batch_timeout must be positive")
        if self.backoff_base < 0:
            raise ValidationError("backoff_base must not be negative")


@dataclass(frozen=True)
class DuplicatePolicy:
    """Duplicate scoring constants.

    A candidate is compared to existing transactions on the same bank account
    within ``date_window_days`` and ``amount_tolerance`` (a fraction of the
    candidate amount). Confidence is
    ``amount_weight * amount_match + date_weight * date_match`` and a match
    above ``duplicate_threshold`` counts as a duplicate; anything lower is
    reported as a possible match.
    """

    date_window_days: int = 2
    amount_tolerance: Decimal = Decimal("0.01")
    amount_weight: float = 0.7
    date_weight: float = 0.3
    duplicate_threshold: float = 0.9

    def __post_init__(self):
        if self.date_window_days < 1:
            raise ValidationError("date_window_days must be at least 1")
        if self.amount_tolerance < 0:
            raise ValidationError("amount_tolerance must not be negative")
        if not 0 <= self.duplicate_threshold <= 1:
            raise ValidationError("duplicate_threshold must be between 0 and 1")


@dataclass(frozen=True)
class ReconciliationPolicy:
    """A difference strictly below ``tolerance`` counts as reconciled."""

    tolerance: Decimal = Decimal("0.01")


@dataclass(frozen=True)
class EngineConfig:
    importing: ImportConfig = field(default_factory=ImportConfig)
    duplicates: DuplicatePolicy = field(default_factory=DuplicatePolicy)
    reconciliation: ReconciliationPolicy = field(default_factory=ReconciliationPolicy)


_DECIMAL_FIELDS = {"amount_tolerance", "tolerance"}


def _build_section(cls, section_name: str, data: dict[str, Any]):
    allowed = {f.name for f in fields(cls)}
    unknown = set(data) - allowed
    if unknown:
        raise ValidationError(
            f"Unknown keys in [{section_name}]: {', '.join(sorted(unknown))}"
        )
    values = {}
    for key, value in data.items():
        if key in _DECIMAL_FIELDS:
            value = Decimal(str(value))
        values[key] = value
    return cls(**values)


def load_config(path: Optional[str] = None) -> EngineConfig:
    """Load engine configuration.

    Args:
        path: Path to a TOML file. If None, checks the LEDGERPOST_CONFIG
            environment variable, then falls back to defaults.

    Returns:
        EngineConfig instance

    Raises:
        ValidationError: If the file is unreadable TOML or holds unknown keys
        FileNotFoundError: If an explicit path does not exist
    """
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR)
    if path is None:
        return EngineConfig()

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        with open(config_path, "rb") as f:
            raw = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ValidationError(f"Invalid config file {path}: {e}") from e

    unknown_sections = set(raw) - {"import", "duplicates", "reconciliation"}
    if unknown_sections:
        raise ValidationError(
            f"Unknown config sections: {', '.join(sorted(unknown_sections))}"
        )

    return EngineConfig(
        importing=_build_section(ImportConfig, "import", raw.get("import", {})),
        duplicates=_build_section(DuplicatePolicy, "duplicates", raw.get("duplicates", {})),
        reconciliation=_build_section(
            ReconciliationPolicy, "reconciliation", raw.get("reconciliation", {})
        ),
    )


def with_import_overrides(config: EngineConfig, **overrides: Any) -> EngineConfig:
    """Return a copy of ``config`` with the given ImportConfig fields replaced.

    None values are ignored so CLI options that were not given keep the
    configured value.
    """
    changes = {k: v for k, v in overrides.items() if v is not None}
    if not changes:
        return config
    return replace(config, importing=replace(config.importing, **changes))
