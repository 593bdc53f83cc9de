"""
Charge rules for one student and one billing month. Pure: no I/O, no clock.

First month (ledger Unbilled):
    admission fee (if not yet billed) + period fee, where the period fee is
    - full when enrolled on or before the cutoff day (cutoff day inclusive),
    - deferred to the following month when enrolled after the cutoff day,
    - half, for monthly courses, inside the optional half-fee band.
    The cutoff is measured against the enrollment day even when the first run
    happens in a later month.
Regular month:
    monthly course -> monthly fee; yearly course -> yearly fee only if it was never billed.

A run bills every month from the first unbilled one through the run month, so a
student whose first run lands after the enrollment month is billed retroactively.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List, Optional

from academy_billing.core.billing_period import (
    BilledThrough,
    BillingState,
    Unbilled,
    month_start,
    month_year,
    next_month,
    same_month,
)
from academy_billing.core.enums import CalculationType, CourseType
from academy_billing.core.models import FeeCatalogEntry
from academy_billing.core.money import ZERO, half, quantize, to_decimal

DEFAULT_CUTOFF_DAY = 20


@dataclass(frozen=True)
class ChargeDecision:
    calculation_type: CalculationType
    month_year: str
    billing_date: date
    fee_amount: Decimal
    admission_amount: Decimal
    period_amount: Decimal
    includes_admission: bool
    includes_yearly: bool
    enrollment_day: Optional[int]
    reason: str


_SUFFIXES = {1: "st", 2: "nd", 3: "rd"}


def _ordinal(day: int) -> str:
    if 11 <= day % 100 <= 13:
        return f"{day}th"
    return f"{day}{_SUFFIXES.get(day % 10, 'th')}"


def _period_fee(entry: FeeCatalogEntry, course_type: CourseType) -> Decimal:
    if course_type == CourseType.YEARLY:
        return quantize(entry.yearly_fee)
    return quantize(entry.monthly_fee)


def compute_charge(
    *,
    state: BillingState,
    course_type: CourseType,
    enrollment_date: date,
    run_date: date,
    entry: FeeCatalogEntry,
    admission_fee_paid: bool,
    yearly_fee_billed: bool,
    cutoff_day: int = DEFAULT_CUTOFF_DAY,
    half_fee_from_day: Optional[int] = None,
) -> ChargeDecision:
    course_type = CourseType(course_type)
    key = month_year(run_date)
    period_label = "yearly fee" if course_type == CourseType.YEARLY else "monthly fee"

    if isinstance(state, Unbilled):
        return _first_month(
            course_type=course_type,
            enrollment_date=enrollment_date,
            run_date=run_date,
            entry=entry,
            admission_fee_paid=admission_fee_paid,
            yearly_fee_billed=yearly_fee_billed,
            cutoff_day=cutoff_day,
            half_fee_from_day=half_fee_from_day,
            key=key,
            period_label=period_label,
        )

    if course_type == CourseType.YEARLY:
        if yearly_fee_billed:
            period, reason = ZERO, "No fee - yearly fee already billed"
        else:
            period, reason = _period_fee(entry, course_type), "Full yearly fee - deferred from enrollment month"
        return ChargeDecision(
            calculation_type=CalculationType.REGULAR_MONTH,
            month_year=key,
            billing_date=run_date,
            fee_amount=period,
            admission_amount=ZERO,
            period_amount=period,
            includes_admission=False,
            includes_yearly=not yearly_fee_billed,
            enrollment_day=None,
            reason=reason,
        )

    period = _period_fee(entry, course_type)
    return ChargeDecision(
        calculation_type=CalculationType.REGULAR_MONTH,
        month_year=key,
        billing_date=run_date,
        fee_amount=period,
        admission_amount=ZERO,
        period_amount=period,
        includes_admission=False,
        includes_yearly=False,
        enrollment_day=None,
        reason="Full monthly fee - subsequent month",
    )


def _first_month(
    *,
    course_type: CourseType,
    enrollment_date: date,
    run_date: date,
    entry: FeeCatalogEntry,
    admission_fee_paid: bool,
    yearly_fee_billed: bool,
    cutoff_day: int,
    half_fee_from_day: Optional[int],
    key: str,
    period_label: str,
) -> ChargeDecision:
    day = enrollment_date.day
    full_period = _period_fee(entry, course_type)
    admission = ZERO if admission_fee_paid else quantize(entry.admission_fee)

    deferred = False
    if course_type == CourseType.YEARLY and yearly_fee_billed:
        period, period_reason = ZERO, "yearly fee already billed"
    elif day > cutoff_day:
        period, deferred = ZERO, True
        period_reason = (
            f"{period_label} deferred to next month - enrolled on {_ordinal(day)} "
            f"(after cutoff day {cutoff_day})"
        )
    elif (
        course_type == CourseType.MONTHLY
        and half_fee_from_day is not None
        and day >= half_fee_from_day
    ):
        period = half(full_period)
        period_reason = (
            f"half {period_label} - enrolled on {_ordinal(day)} "
            f"({_ordinal(half_fee_from_day)}-{_ordinal(cutoff_day)}: half fee)"
        )
    else:
        period = full_period
        period_reason = f"full {period_label} - enrolled on {_ordinal(day)} (on or before cutoff day {cutoff_day})"

    parts = []
    if admission > ZERO:
        parts.append("admission fee")
    elif not admission_fee_paid:
        parts.append("admission fee (zero in catalog)")
    parts.append(period_reason)

    return ChargeDecision(
        calculation_type=CalculationType.FIRST_MONTH,
        month_year=key,
        billing_date=run_date,
        fee_amount=quantize(to_decimal(admission) + period),
        admission_amount=admission,
        period_amount=period,
        includes_admission=not admission_fee_paid,
        includes_yearly=course_type == CourseType.YEARLY and not yearly_fee_billed and not deferred,
        enrollment_day=day,
        reason="First month: " + " + ".join(parts),
    )


def months_due(state: BillingState, enrollment_date: date, run_date: date) -> List[date]:
    """Billing dates still owed up to `run_date`, oldest first.

    The enrollment month is billed on the enrollment date, intermediate months on
    their first day and the run month on `run_date`. Empty when the run month is
    already covered or precedes the enrollment month.
    """
    first_owed = month_start(enrollment_date)
    if isinstance(state, BilledThrough):
        first_owed = max(first_owed, next_month(state.last_date))

    run_month = month_start(run_date)
    dates = []
    current = first_owed
    while current < run_month:
        dates.append(enrollment_date if same_month(current, enrollment_date) else current)
        current = next_month(current)
    if current == run_month:
        dates.append(run_date)
    return dates


def plan_charges(
    *,
    state: BillingState,
    course_type: CourseType,
    enrollment_date: date,
    run_date: date,
    entry: FeeCatalogEntry,
    admission_fee_paid: bool,
    yearly_fee_billed: bool,
    cutoff_day: int = DEFAULT_CUTOFF_DAY,
    half_fee_from_day: Optional[int] = None,
) -> List[ChargeDecision]:
    """One decision per owed month, carrying the ledger flags forward between months."""
    plan = []
    for billing_date in months_due(state, enrollment_date, run_date):
        decision = compute_charge(
            state=state,
            course_type=course_type,
            enrollment_date=enrollment_date,
            run_date=billing_date,
            entry=entry,
            admission_fee_paid=admission_fee_paid,
            yearly_fee_billed=yearly_fee_billed,
            cutoff_day=cutoff_day,
            half_fee_from_day=half_fee_from_day,
        )
        plan.append(decision)
        state = BilledThrough(billing_date)
        admission_fee_paid = admission_fee_paid or decision.includes_admission
        yearly_fee_billed = yearly_fee_billed or decision.includes_yearly
    return plan
