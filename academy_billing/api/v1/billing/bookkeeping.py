"""
Calculation history (append-only) and monthly schedule (claim once per student-month).

claim_month is the idempotency guard of the billing engine: it is a find-or-create
against monthly_fee_schedules backed by the (student_id, month_year) unique
constraint, with a compare-and-swap for rows created ahead of time. Losing any
race raises ScheduleConflict, which callers treat as "already billed".
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy import exists, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from academy_billing.core.enums import CalculationType
from academy_billing.core.exceptions import ScheduleConflict
from academy_billing.core.models import FeeCalculationHistory, MonthlyFeeSchedule
from academy_billing.core.money import ZERO, quantize

CATALOG_MISS_REASON = "no fee catalog entry"


# --- Calculation history ---
def record_calculation(
    db: AsyncSession,
    student_id: UUID,
    calculation_date: date,
    month_year: str,
    calculation_type: Optional[CalculationType],
    fee_amount: Decimal,
    reason: str,
    enrollment_day: Optional[int] = None,
) -> FeeCalculationHistory:
    """Append one history row. Caller must commit."""
    entry = FeeCalculationHistory(
        student_id=student_id,
        calculation_date=calculation_date,
        month_year=month_year,
        calculation_type=calculation_type.value if calculation_type else None,
        fee_amount=quantize(fee_amount),
        enrollment_day=enrollment_day,
        reason=reason,
    )
    db.add(entry)
    return entry


def record_catalog_miss(db: AsyncSession, student_id: UUID, calculation_date: date, month_year: str) -> FeeCalculationHistory:
    return record_calculation(
        db, student_id, calculation_date, month_year,
        calculation_type=None, fee_amount=ZERO, reason=CATALOG_MISS_REASON,
    )


async def has_billing_entry(db: AsyncSession, student_id: UUID, month_year: str) -> bool:
    stmt = select(
        exists().where(
            FeeCalculationHistory.student_id == student_id,
            FeeCalculationHistory.month_year == month_year,
            FeeCalculationHistory.calculation_type.is_not(None),
        )
    )
    return bool((await db.execute(stmt)).scalar())


async def has_catalog_miss(db: AsyncSession, student_id: UUID, month_year: str) -> bool:
    stmt = select(
        exists().where(
            FeeCalculationHistory.student_id == student_id,
            FeeCalculationHistory.month_year == month_year,
            FeeCalculationHistory.calculation_type.is_(None),
        )
    )
    return bool((await db.execute(stmt)).scalar())


async def list_history(db: AsyncSession, student_id: UUID) -> List[FeeCalculationHistory]:
    stmt = (
        select(FeeCalculationHistory)
        .where(FeeCalculationHistory.student_id == student_id)
        .order_by(
            FeeCalculationHistory.calculation_date.desc(),
            FeeCalculationHistory.month_year.desc(),
            FeeCalculationHistory.created_at.desc(),
        )
    )
    return list((await db.execute(stmt)).scalars().all())


# --- Monthly schedule ---
async def find_schedule(db: AsyncSession, student_id: UUID, month_year: str) -> Optional[MonthlyFeeSchedule]:
    stmt = select(MonthlyFeeSchedule).where(
        MonthlyFeeSchedule.student_id == student_id,
        MonthlyFeeSchedule.month_year == month_year,
    )
    return (await db.execute(stmt)).scalar_one_or_none()


def create_pending(db: AsyncSession, student_id: UUID, month_year: str, scheduled_date: date) -> MonthlyFeeSchedule:
    """Ahead-of-time row (e.g. at enrollment). Caller must commit."""
    row = MonthlyFeeSchedule(
        student_id=student_id,
        month_year=month_year,
        scheduled_date=scheduled_date,
        fee_amount=ZERO,
        is_processed=False,
    )
    db.add(row)
    return row


async def claim_month(
    db: AsyncSession,
    student_id: UUID,
    month_year: str,
    scheduled_date: date,
    fee_amount: Decimal,
    now: datetime,
) -> None:
    """Mark (student, month) processed exactly once inside the caller's transaction.

    Raises ScheduleConflict when the month is already claimed; the caller must roll back.
    """
    existing = await find_schedule(db, student_id, month_year)
    if existing is not None:
        if existing.is_processed:
            raise ScheduleConflict(student_id, month_year)
        result = await db.execute(
            update(MonthlyFeeSchedule)
            .where(
                MonthlyFeeSchedule.id == existing.id,
                MonthlyFeeSchedule.is_processed.is_(False),
            )
            .values(is_processed=True, processed_at=now, fee_amount=quantize(fee_amount))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ScheduleConflict(student_id, month_year)
        return

    row = MonthlyFeeSchedule(
        student_id=student_id,
        month_year=month_year,
        scheduled_date=scheduled_date,
        fee_amount=quantize(fee_amount),
        is_processed=True,
        processed_at=now,
    )
    db.add(row)
    try:
        await db.flush()
    except IntegrityError as exc:
        # A concurrent worker inserted the row first; caller must roll back
        raise ScheduleConflict(student_id, month_year) from exc
