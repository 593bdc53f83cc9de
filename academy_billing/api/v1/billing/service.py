"""
Billing scheduler: bills every due student once per calendar month.

Each student is billed in its own session and transaction: every owed month from
the first unbilled one through the run month is claimed in monthly_fee_schedules,
appended to the history and charged to the ledger. A failure for
one student is logged and counted; the run continues. Re-running the same month
is a no-op for students already billed, so an interrupted run can simply be
started again.
"""

import asyncio
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from academy_billing.api.v1.fee_catalog import service as fee_catalog_service
from academy_billing.api.v1.students import service as students_service
from academy_billing.core.billing_period import BilledThrough, month_year
from academy_billing.core.config import settings
from academy_billing.core.enums import BillingOutcome, CourseType
from academy_billing.core.exceptions import CatalogMiss, ScheduleConflict
from academy_billing.core.ledger import lock_ledger, post_charge
from academy_billing.core.models import Student, StudentLedger
from academy_billing.core.money import ZERO, quantize, to_decimal
from academy_billing.core.retry import with_retries

from . import bookkeeping
from .rules import ChargeDecision, plan_charges
from .schemas import (
    BillingPreview,
    BillingPreviewItem,
    BillingRunSummary,
    StudentBillingResult,
)

logger = logging.getLogger(__name__)


def _result(student_id: UUID, outcome: BillingOutcome, key: str, **kwargs) -> StudentBillingResult:
    return StudentBillingResult(student_id=student_id, outcome=outcome, month_year=key, **kwargs)


def _summarize(plan: List[ChargeDecision]) -> Tuple[Decimal, str]:
    """Total charge and a reason line covering every billed month."""
    total = quantize(sum((d.fee_amount for d in plan), ZERO))
    if len(plan) == 1:
        return total, plan[0].reason
    return total, "; ".join(f"{d.month_year}: {d.reason}" for d in plan)


async def bill_student(
    db: AsyncSession,
    student_id: UUID,
    run_date: date,
    *,
    now: datetime,
    cutoff_day: Optional[int] = None,
    half_fee_from_day: Optional[int] = None,
) -> StudentBillingResult:
    """Bill one student for run_date's month in a single transaction on `db`."""
    key = month_year(run_date)
    cutoff_day = settings.billing_cutoff_day if cutoff_day is None else cutoff_day
    if half_fee_from_day is None:
        half_fee_from_day = settings.billing_half_fee_from_day

    try:
        student = await db.get(Student, student_id, populate_existing=True)
        ledger = await lock_ledger(db, student_id) if student else None
        if student is None or ledger is None:
            await db.rollback()
            return _result(student_id, BillingOutcome.NOT_DUE, key, reason="unknown student or missing ledger")

        if not student.is_active or student.is_dropped_out or student.enrollment_date > run_date:
            await db.rollback()
            return _result(student_id, BillingOutcome.NOT_DUE, key, reason="student not billable on this date")

        state = ledger.billing_state
        if isinstance(state, BilledThrough) and state.covers(run_date):
            await db.rollback()
            return _result(student_id, BillingOutcome.ALREADY_BILLED, key, reason="ledger already billed this month")

        schedule = await bookkeeping.find_schedule(db, student_id, key)
        if (schedule is not None and schedule.is_processed) or await bookkeeping.has_billing_entry(db, student_id, key):
            await db.rollback()
            logger.debug("Student %s already billed for %s", student_id, key)
            return _result(student_id, BillingOutcome.ALREADY_BILLED, key, reason="month already processed")

        try:
            entry = await fee_catalog_service.lookup(db, student.class_id, student.course_type)
        except CatalogMiss as miss:
            logger.warning("Student %s unbillable for %s: %s", student_id, key, miss.message)
            if not await bookkeeping.has_catalog_miss(db, student_id, key):
                bookkeeping.record_catalog_miss(db, student_id, run_date, key)
            try:
                await db.commit()
            except IntegrityError:
                # a concurrent run recorded the same miss first
                await db.rollback()
            return _result(student_id, BillingOutcome.UNBILLABLE, key, reason=bookkeeping.CATALOG_MISS_REASON)

        plan = plan_charges(
            state=state,
            course_type=CourseType(student.course_type),
            enrollment_date=student.enrollment_date,
            run_date=run_date,
            entry=entry,
            admission_fee_paid=ledger.admission_fee_paid,
            yearly_fee_billed=ledger.yearly_fee_billed,
            cutoff_day=cutoff_day,
            half_fee_from_day=half_fee_from_day,
        )
        if not plan:
            await db.rollback()
            return _result(student_id, BillingOutcome.ALREADY_BILLED, key, reason="no month due")

        for decision in plan:
            await bookkeeping.claim_month(
                db, student_id, decision.month_year, decision.billing_date, decision.fee_amount, now
            )
            bookkeeping.record_calculation(
                db,
                student_id,
                run_date,
                decision.month_year,
                decision.calculation_type,
                decision.fee_amount,
                decision.reason,
                enrollment_day=decision.enrollment_day,
            )
            post_charge(
                ledger,
                decision.fee_amount,
                decision.billing_date,
                includes_admission=decision.includes_admission,
                includes_yearly=decision.includes_yearly,
            )
        await db.commit()
    except ScheduleConflict:
        await db.rollback()
        logger.debug("Student %s month %s claimed by another run", student_id, key)
        return _result(student_id, BillingOutcome.ALREADY_BILLED, key, reason="month claimed by another run")
    except Exception:
        await db.rollback()
        raise

    fee_amount, reason = _summarize(plan)
    for decision in plan:
        logger.info(
            "Billed student %s for %s: %s %s (%s)",
            student_id, decision.month_year, decision.calculation_type.value, decision.fee_amount, decision.reason,
        )
    return _result(
        student_id,
        BillingOutcome.BILLED,
        key,
        calculation_type=plan[0].calculation_type,
        fee_amount=fee_amount,
        reason=reason,
        months_billed=[d.month_year for d in plan],
    )


async def run_billing(
    session_factory: async_sessionmaker,
    run_date: date,
    *,
    now: Optional[datetime] = None,
    concurrency: Optional[int] = None,
    cutoff_day: Optional[int] = None,
    half_fee_from_day: Optional[int] = None,
) -> BillingRunSummary:
    """
    Bill all due students for run_date's month. run_date is fixed for the whole run.

    Returns a summary (processed, skipped, unbillable, failed) instead of raising for
    per-student failures.
    """
    now = now or datetime.now(timezone.utc)
    key = month_year(run_date)
    limit = asyncio.Semaphore(concurrency or settings.billing_concurrency)

    async with session_factory() as db:
        candidates = await students_service.list_billing_candidates(db, run_date)
    logger.info("Billing run for %s (run date %s): %d candidate student(s)", key, run_date, len(candidates))

    async def _bill_in_own_session(student_id: UUID) -> StudentBillingResult:
        async with session_factory() as db:
            return await bill_student(
                db, student_id, run_date,
                now=now, cutoff_day=cutoff_day, half_fee_from_day=half_fee_from_day,
            )

    async def _bill(student_id: UUID) -> StudentBillingResult:
        async with limit:
            try:
                return await with_retries(
                    lambda: _bill_in_own_session(student_id),
                    description=f"Billing student {student_id} for {key}",
                )
            except Exception as exc:
                logger.exception("Billing failed for student %s (%s)", student_id, key)
                return _result(student_id, BillingOutcome.FAILED, key, reason=str(exc))

    results: List[StudentBillingResult] = list(await asyncio.gather(*(_bill(s) for s in candidates)))

    summary = BillingRunSummary(run_date=run_date, month_year=key, candidates=len(candidates), results=results)
    total = Decimal("0")
    for r in results:
        if r.outcome == BillingOutcome.BILLED:
            summary.processed += 1
            total += to_decimal(r.fee_amount)
        elif r.outcome == BillingOutcome.UNBILLABLE:
            summary.unbillable += 1
        elif r.outcome == BillingOutcome.FAILED:
            summary.failed += 1
        else:
            summary.skipped += 1
    summary.total_billed = quantize(total)

    logger.info(
        "Billing run for %s finished: processed=%d skipped=%d unbillable=%d failed=%d total_billed=%s",
        key, summary.processed, summary.skipped, summary.unbillable, summary.failed, summary.total_billed,
    )
    return summary


async def preview_billing(
    db: AsyncSession,
    run_date: date,
    *,
    cutoff_day: Optional[int] = None,
    half_fee_from_day: Optional[int] = None,
) -> BillingPreview:
    """What run_billing would charge for run_date, without writing anything."""
    key = month_year(run_date)
    cutoff_day = settings.billing_cutoff_day if cutoff_day is None else cutoff_day
    if half_fee_from_day is None:
        half_fee_from_day = settings.billing_half_fee_from_day

    candidate_ids = await students_service.list_billing_candidates(db, run_date)
    items: List[BillingPreviewItem] = []
    total = Decimal("0")
    unbillable = 0
    if candidate_ids:
        rows = (
            await db.execute(
                select(Student, StudentLedger)
                .join(StudentLedger, StudentLedger.student_id == Student.id)
                .where(Student.id.in_(candidate_ids))
                .order_by(Student.enrollment_date, Student.id)
            )
        ).all()
        for student, ledger in rows:
            pending = to_decimal(ledger.pending_amount)
            entry = await fee_catalog_service.find_entry(db, student.class_id, student.course_type)
            if entry is None:
                unbillable += 1
                items.append(
                    BillingPreviewItem(
                        student_id=student.id,
                        student_name=student.name,
                        class_id=student.class_id,
                        course_type=student.course_type,
                        current_pending=pending,
                        reason=bookkeeping.CATALOG_MISS_REASON,
                    )
                )
                continue
            plan = plan_charges(
                state=ledger.billing_state,
                course_type=CourseType(student.course_type),
                enrollment_date=student.enrollment_date,
                run_date=run_date,
                entry=entry,
                admission_fee_paid=ledger.admission_fee_paid,
                yearly_fee_billed=ledger.yearly_fee_billed,
                cutoff_day=cutoff_day,
                half_fee_from_day=half_fee_from_day,
            )
            fee_amount, reason = _summarize(plan)
            total += fee_amount
            items.append(
                BillingPreviewItem(
                    student_id=student.id,
                    student_name=student.name,
                    class_id=student.class_id,
                    course_type=student.course_type,
                    calculation_type=plan[0].calculation_type if plan else None,
                    current_pending=pending,
                    fee_amount=fee_amount,
                    new_pending=quantize(pending + fee_amount),
                    reason=reason,
                    months=[d.month_year for d in plan],
                )
            )

    return BillingPreview(
        run_date=run_date,
        month_year=key,
        students_to_bill=len(items) - unbillable,
        unbillable=unbillable,
        total_to_bill=quantize(total) if items else ZERO,
        items=items,
    )
