"""Retry policy, settings validation, logging setup and the billing CLI arguments."""

import logging
from datetime import date

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import OperationalError

from academy_billing.core.config import Settings
from academy_billing.core.exceptions import TransientStoreError
from academy_billing.core.logging import LOGGER_NAME, configure_logging
from academy_billing.core.retry import is_transient, with_retries
from academy_billing.scripts.run_billing import parse_args


def _locked() -> OperationalError:
    return OperationalError("SELECT 1", {}, Exception("database is locked"))


async def test_with_retries_gives_up_after_budget() -> None:
    calls = []

    async def always_locked():
        calls.append(1)
        raise _locked()

    with pytest.raises(TransientStoreError):
        await with_retries(always_locked, description="test op", max_attempts=3, backoff_seconds=0)
    assert len(calls) == 3


async def test_with_retries_does_not_retry_logic_errors() -> None:
    calls = []

    async def bad():
        calls.append(1)
        raise ValueError("bad input")

    with pytest.raises(ValueError):
        await with_retries(bad, description="test op", max_attempts=3, backoff_seconds=0)
    assert len(calls) == 1


def test_is_transient() -> None:
    assert is_transient(_locked())
    assert not is_transient(RuntimeError("nope"))


def test_half_fee_band_must_end_at_cutoff() -> None:
    with pytest.raises(ValidationError):
        Settings(DATABASE_URL="sqlite+aiosqlite://", BILLING_CUTOFF_DAY=10, BILLING_HALF_FEE_FROM_DAY=15)

    settings = Settings(DATABASE_URL="sqlite+aiosqlite://", BILLING_CUTOFF_DAY=20, BILLING_HALF_FEE_FROM_DAY=11)
    assert settings.billing_half_fee_from_day == 11


def test_cli_arguments() -> None:
    args = parse_args(["--date", "2025-08-01", "--preview"])
    assert args.date == date(2025, 8, 1)
    assert args.preview is True
    assert args.create_tables is False

    assert parse_args([]).date is None


def test_configure_logging_attaches_one_handler() -> None:
    logger = configure_logging("debug")
    configure_logging("info")
    try:
        named = [h for h in logger.handlers if h.get_name() == LOGGER_NAME]
        assert len(named) == 1
        assert logger.level == logging.INFO
    finally:
        for handler in named:
            logger.removeHandler(handler)
