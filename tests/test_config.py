"""Tests for engine configuration loading."""

from decimal import Decimal

import pytest

from ledgerpost.config import (
    CONFIG_ENV_VAR,
    DuplicatePolicy,
    EngineConfig,
    ImportConfig,
    load_config,
    with_import_overrides,
)
from ledgerpost.domain.errors import ValidationError


def write_config(tmp_path, text):
    path = tmp_path / "ledgerpost.toml"
    path.write_text(text)
    return str(path)


def test_defaults_without_file(monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)

    config = load_config()

    assert config == EngineConfig()
    assert config.importing.batch_size == 10
    assert config.importing.max_retries == 3
    assert config.duplicates.duplicate_threshold == 0.9
    assert config.reconciliation.tolerance == Decimal("0.01")


def test_load_from_file(tmp_path):
    path = write_config(
        tmp_path,
        """
[import]
batch_size = 25
detect_duplicates = true

[duplicates]
amount_tolerance = 0.02

[reconciliation]
tolerance = "0.50"
""",
    )

    config = load_config(path)

    assert config.importing.batch_size == 25
    assert config.importing.detect_duplicates is True
    assert config.importing.max_retries == 3
    assert config.duplicates.amount_tolerance == Decimal("0.02")
    assert config.reconciliation.tolerance == Decimal("0.50")


def test_path_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv(CONFIG_ENV_VAR, write_config(tmp_path, "[import]\nmax_retries = 1\n"))

    assert load_config().importing.max_retries == 1


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "nope.toml"))


@pytest.mark.parametrize(
    "text",
    [
        "[import]\nbatch_sise = 5\n",
        "[imports]\nbatch_size = 5\n",
        "[import]\nbatch_size = 0\n",
        "[import\n",
    ],
)
def test_invalid_config_rejected(tmp_path, text):
    with pytest.raises(ValidationError):
        load_config(write_config(tmp_path, text))


def test_policy_validation():
    with pytest.raises(ValidationError):
        ImportConfig(max_retries=-1)
    with pytest.raises(ValidationError):
        DuplicatePolicy(date_window_days=0)
    with pytest.raises(ValidationError):
        DuplicatePolicy(duplicate_threshold=1.5)


def test_import_overrides_ignore_none():
    config = EngineConfig()

    updated = with_import_overrides(config, batch_size=50, max_retries=None)

    assert updated.importing.batch_size == 50
    assert updated.importing.max_retries == 3
    assert with_import_overrides(config, batch_size=None) is config
