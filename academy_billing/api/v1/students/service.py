"""Students service: directory records, ledger creation, ledger snapshot, billing candidates."""

import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from academy_billing.api.v1.billing import bookkeeping
from academy_billing.core.billing_period import BilledThrough, month_start, month_year
from academy_billing.core.exceptions import ServiceError, StudentNotFound
from academy_billing.core.models import SchoolClass, SoCenter, Student, StudentLedger
from academy_billing.core.money import ZERO, to_decimal

from .schemas import (
    FeeCalculationHistoryItem,
    LedgerSnapshot,
    SchoolClassCreate,
    SchoolClassResponse,
    SoCenterCreate,
    SoCenterResponse,
    StudentEnroll,
    StudentResponse,
)

logger = logging.getLogger(__name__)


# --- Classes / SO Centers ---
async def create_class(db: AsyncSession, payload: SchoolClassCreate) -> SchoolClassResponse:
    name = payload.name.strip()
    existing = (await db.execute(select(SchoolClass).where(SchoolClass.name == name))).scalar_one_or_none()
    if existing:
        raise ServiceError("Class with this name already exists", status.HTTP_409_CONFLICT)
    cl = SchoolClass(name=name, is_active=True)
    db.add(cl)
    await db.commit()
    await db.refresh(cl)
    return SchoolClassResponse.model_validate(cl)


async def create_so_center(db: AsyncSession, payload: SoCenterCreate) -> SoCenterResponse:
    center = SoCenter(name=payload.name.strip(), wallet_balance=ZERO, is_active=True)
    db.add(center)
    await db.commit()
    await db.refresh(center)
    return SoCenterResponse.model_validate(center)


# --- Students ---
async def enroll_student(db: AsyncSession, payload: StudentEnroll) -> StudentResponse:
    """Create the student, its ledger and the enrollment-month schedule row in one transaction."""
    cl = await db.get(SchoolClass, payload.class_id)
    if not cl or not cl.is_active:
        raise ServiceError("Invalid class", status.HTTP_400_BAD_REQUEST)
    if payload.so_center_id is not None:
        center = await db.get(SoCenter, payload.so_center_id)
        if not center or not center.is_active:
            raise ServiceError("Invalid SO center", status.HTTP_400_BAD_REQUEST)

    student = Student(
        name=payload.name.strip(),
        class_id=payload.class_id,
        so_center_id=payload.so_center_id,
        course_type=payload.course_type.value,
        enrollment_date=payload.enrollment_date,
        parent_phone=(payload.parent_phone or "").strip() or None,
        is_active=True,
        is_dropped_out=False,
    )
    db.add(student)
    await db.flush()
    db.add(
        StudentLedger(
            student_id=student.id,
            admission_fee_paid=payload.admission_fee_paid,
            yearly_fee_billed=False,
            total_fee_amount=ZERO,
            paid_amount=ZERO,
            pending_amount=ZERO,
            last_fee_calculation_date=None,
        )
    )
    bookkeeping.create_pending(db, student.id, month_year(payload.enrollment_date), payload.enrollment_date)
    await db.commit()
    await db.refresh(student)
    logger.info("Enrolled student %s (%s) on %s, course type %s",
                student.id, student.name, student.enrollment_date, student.course_type)
    return StudentResponse.model_validate(student)


async def get_student(db: AsyncSession, student_id: UUID) -> Student:
    student = await db.get(Student, student_id)
    if not student:
        raise StudentNotFound(student_id)
    return student


async def deactivate_student(db: AsyncSession, student_id: UUID, dropped_out: bool = False) -> StudentResponse:
    """Soft deactivation. The ledger stays; the scheduler stops billing the student."""
    student = await get_student(db, student_id)
    student.is_active = False
    if dropped_out:
        student.is_dropped_out = True
    await db.commit()
    await db.refresh(student)
    logger.info("Deactivated student %s (dropped_out=%s)", student.id, student.is_dropped_out)
    return StudentResponse.model_validate(student)


async def get_ledger_snapshot(db: AsyncSession, student_id: UUID) -> LedgerSnapshot:
    ledger = await db.get(StudentLedger, student_id)
    if not ledger:
        raise StudentNotFound(student_id)
    await db.refresh(ledger)
    state = ledger.billing_state
    return LedgerSnapshot(
        student_id=ledger.student_id,
        total_fee_amount=to_decimal(ledger.total_fee_amount),
        paid_amount=to_decimal(ledger.paid_amount),
        pending_amount=to_decimal(ledger.pending_amount),
        admission_fee_paid=ledger.admission_fee_paid,
        yearly_fee_billed=ledger.yearly_fee_billed,
        last_fee_calculation_date=ledger.last_fee_calculation_date,
        billing_state="billed_through" if isinstance(state, BilledThrough) else "unbilled",
    )


async def get_fee_history(db: AsyncSession, student_id: UUID) -> List[FeeCalculationHistoryItem]:
    await get_student(db, student_id)
    rows = await bookkeeping.list_history(db, student_id)
    return [FeeCalculationHistoryItem.model_validate(r) for r in rows]


async def list_billing_candidates(db: AsyncSession, run_date: date, limit: Optional[int] = None) -> List[UUID]:
    """Active, not dropped out, enrolled by run_date, and not yet billed in run_date's month."""
    stmt = (
        select(Student.id)
        .join(StudentLedger, StudentLedger.student_id == Student.id)
        .where(
            Student.is_active.is_(True),
            Student.is_dropped_out.is_(False),
            Student.enrollment_date <= run_date,
            or_(
                StudentLedger.last_fee_calculation_date.is_(None),
                StudentLedger.last_fee_calculation_date < month_start(run_date),
            ),
        )
        .order_by(Student.enrollment_date, Student.id)
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    return [row[0] for row in (await db.execute(stmt)).all()]
