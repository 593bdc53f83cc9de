"""Billing period keys and the ledger's billing state."""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional, Union


def month_year(day: date) -> str:
    """Billing-period key, e.g. date(2025, 8, 14) -> "2025-08"."""
    return f"{day.year:04d}-{day.month:02d}"


def month_start(day: date) -> date:
    return day.replace(day=1)


def same_month(a: date, b: date) -> bool:
    return (a.year, a.month) == (b.year, b.month)


@dataclass(frozen=True)
class Unbilled:
    """Ledger has never been charged; the next cycle is the student's first month."""


@dataclass(frozen=True)
class BilledThrough:
    """Ledger was last charged on `last_date`."""

    last_date: date

    def covers(self, run_date: date) -> bool:
        """True when the run month has already been charged (or the clock went backwards)."""
        return month_start(self.last_date) >= month_start(run_date)


BillingState = Union[Unbilled, BilledThrough]


def billing_state_from(last_fee_calculation_date: Optional[date]) -> BillingState:
    if last_fee_calculation_date is None:
        return Unbilled()
    return BilledThrough(last_fee_calculation_date)


def next_month(day: date) -> date:
    """First day of the month after `day`'s month."""
    return (month_start(day) + timedelta(days=32)).replace(day=1)
