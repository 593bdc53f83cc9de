"""Unit tests for the monthly charge rules."""

from datetime import date
from decimal import Decimal

from academy_billing.api.v1.billing.rules import compute_charge, months_due, plan_charges
from academy_billing.core.billing_period import BilledThrough, Unbilled
from academy_billing.core.enums import CalculationType, CourseType
from academy_billing.core.models import FeeCatalogEntry


def _entry(admission="1000", monthly="500", yearly="5000") -> FeeCatalogEntry:
    return FeeCatalogEntry(
        admission_fee=Decimal(admission),
        monthly_fee=Decimal(monthly),
        yearly_fee=Decimal(yearly),
    )


def _first(enrolled: date, run: date, course_type=CourseType.MONTHLY, **kwargs):
    params = dict(
        state=Unbilled(),
        course_type=course_type,
        enrollment_date=enrolled,
        run_date=run,
        entry=_entry(),
        admission_fee_paid=False,
        yearly_fee_billed=False,
    )
    params.update(kwargs)
    return compute_charge(**params)


def test_enrolled_on_cutoff_day_pays_full_month() -> None:
    d = _first(date(2025, 8, 20), date(2025, 8, 20))
    assert d.calculation_type == CalculationType.FIRST_MONTH
    assert d.fee_amount == Decimal("1500.00")
    assert d.includes_admission is True
    assert d.enrollment_day == 20
    assert d.month_year == "2025-08"
    assert d.reason.startswith("First month: ")


def test_enrolled_after_cutoff_defers_period_fee() -> None:
    d = _first(date(2025, 8, 21), date(2025, 8, 21))
    assert d.fee_amount == Decimal("1000.00")
    assert d.period_amount == Decimal("0")
    assert "deferred" in d.reason
    assert "21st" in d.reason


def test_months_due_starts_at_first_unbilled_month() -> None:
    assert months_due(Unbilled(), date(2025, 8, 5), date(2025, 8, 5)) == [date(2025, 8, 5)]
    assert months_due(Unbilled(), date(2025, 8, 5), date(2025, 10, 2)) == [
        date(2025, 8, 5),
        date(2025, 9, 1),
        date(2025, 10, 2),
    ]
    assert months_due(BilledThrough(date(2025, 11, 3)), date(2025, 8, 5), date(2026, 1, 1)) == [
        date(2025, 12, 1),
        date(2026, 1, 1),
    ]
    assert months_due(BilledThrough(date(2025, 9, 1)), date(2025, 8, 5), date(2025, 9, 30)) == []


def test_late_first_run_bills_enrollment_month_under_cutoff() -> None:
    plan = plan_charges(
        state=Unbilled(),
        course_type=CourseType.MONTHLY,
        enrollment_date=date(2025, 8, 25),
        run_date=date(2025, 9, 1),
        entry=_entry(),
        admission_fee_paid=False,
        yearly_fee_billed=False,
    )
    assert [(d.month_year, d.calculation_type, d.fee_amount) for d in plan] == [
        ("2025-08", CalculationType.FIRST_MONTH, Decimal("1000.00")),
        ("2025-09", CalculationType.REGULAR_MONTH, Decimal("500.00")),
    ]
    assert plan[0].billing_date == date(2025, 8, 25)
    assert plan[1].billing_date == date(2025, 9, 1)


def test_plan_carries_yearly_flag_between_months() -> None:
    plan = plan_charges(
        state=Unbilled(),
        course_type=CourseType.YEARLY,
        enrollment_date=date(2025, 8, 5),
        run_date=date(2025, 10, 1),
        entry=_entry(),
        admission_fee_paid=False,
        yearly_fee_billed=False,
    )
    assert [d.fee_amount for d in plan] == [Decimal("6000.00"), Decimal("0"), Decimal("0")]
    assert [d.includes_yearly for d in plan] == [True, False, False]



def test_admission_already_paid_is_not_charged() -> None:
    d = _first(date(2025, 8, 5), date(2025, 8, 5), admission_fee_paid=True)
    assert d.fee_amount == Decimal("500.00")
    assert d.includes_admission is False


def test_half_fee_band_for_monthly_course() -> None:
    d = _first(date(2025, 8, 15), date(2025, 8, 15), cutoff_day=20, half_fee_from_day=11)
    assert d.fee_amount == Decimal("1250.00")
    assert "half monthly fee" in d.reason

    before_band = _first(date(2025, 8, 10), date(2025, 8, 10), cutoff_day=20, half_fee_from_day=11)
    assert before_band.fee_amount == Decimal("1500.00")


def test_half_fee_band_does_not_apply_to_yearly_course() -> None:
    d = _first(
        date(2025, 8, 15), date(2025, 8, 15),
        course_type=CourseType.YEARLY, cutoff_day=20, half_fee_from_day=11,
    )
    assert d.fee_amount == Decimal("6000.00")
    assert d.includes_yearly is True


def test_yearly_course_after_cutoff_bills_yearly_fee_next_month() -> None:
    first = _first(date(2025, 8, 25), date(2025, 8, 25), course_type=CourseType.YEARLY)
    assert first.fee_amount == Decimal("1000.00")
    assert first.includes_yearly is False

    second = compute_charge(
        state=BilledThrough(date(2025, 8, 25)),
        course_type=CourseType.YEARLY,
        enrollment_date=date(2025, 8, 25),
        run_date=date(2025, 9, 1),
        entry=_entry(),
        admission_fee_paid=True,
        yearly_fee_billed=False,
    )
    assert second.calculation_type == CalculationType.REGULAR_MONTH
    assert second.fee_amount == Decimal("5000.00")
    assert second.includes_yearly is True


def test_yearly_fee_is_billed_once() -> None:
    d = compute_charge(
        state=BilledThrough(date(2025, 8, 5)),
        course_type=CourseType.YEARLY,
        enrollment_date=date(2025, 8, 5),
        run_date=date(2025, 9, 1),
        entry=_entry(),
        admission_fee_paid=True,
        yearly_fee_billed=True,
    )
    assert d.fee_amount == Decimal("0")
    assert d.includes_yearly is False
    assert d.reason == "No fee - yearly fee already billed"


def test_regular_month_monthly_course() -> None:
    d = compute_charge(
        state=BilledThrough(date(2025, 8, 25)),
        course_type=CourseType.MONTHLY,
        enrollment_date=date(2025, 8, 25),
        run_date=date(2025, 9, 1),
        entry=_entry(),
        admission_fee_paid=True,
        yearly_fee_billed=False,
    )
    assert d.calculation_type == CalculationType.REGULAR_MONTH
    assert d.fee_amount == Decimal("500.00")
    assert d.enrollment_day is None
    assert d.reason == "Full monthly fee - subsequent month"


def test_ordinal_suffixes_in_reason() -> None:
    assert "22nd" in _first(date(2025, 8, 22), date(2025, 8, 22)).reason
    assert "23rd" in _first(date(2025, 8, 23), date(2025, 8, 23)).reason
    assert "11th" in _first(date(2025, 8, 11), date(2025, 8, 11)).reason
