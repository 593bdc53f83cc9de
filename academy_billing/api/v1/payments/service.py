"""Payment applier: records a payment and pays down the student ledger in one transaction."""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academy_billing.core.events import PaymentApplied, PaymentEvents, payment_events
from academy_billing.core.exceptions import InvalidPayment, StudentNotFound
from academy_billing.core.ledger import lock_ledger, post_payment
from academy_billing.core.models import PaymentRecord, SchoolClass, Student
from academy_billing.core.money import ZERO, quantize, to_decimal
from academy_billing.core.retry import with_retries

from .schemas import PaymentCreate, PaymentReceipt, PaymentRecordResponse

logger = logging.getLogger(__name__)

# Largest value a Numeric(12, 2) column holds
MAX_PAYMENT_AMOUNT = Decimal("9999999999.99")


def _validate(payload: PaymentCreate) -> None:
    amount = to_decimal(payload.amount)
    if not amount.is_finite():
        raise InvalidPayment("Payment amount must be a finite number")
    if amount <= ZERO:
        raise InvalidPayment("Payment amount must be greater than zero")
    if amount > MAX_PAYMENT_AMOUNT:
        raise InvalidPayment(f"Payment amount cannot exceed {MAX_PAYMENT_AMOUNT}")
    if quantize(amount) != amount:
        raise InvalidPayment("Payment amount cannot have more than two decimal places")
    if not payload.method.strip():
        raise InvalidPayment("Payment method is required")
    if not payload.receipt_number.strip():
        raise InvalidPayment("Receipt number is required")


async def _apply_once(
    db: AsyncSession,
    payload: PaymentCreate,
    now: datetime,
) -> tuple:
    try:
        student = await db.get(Student, payload.student_id, populate_existing=True)
        if not student:
            raise InvalidPayment(f"Unknown student: {payload.student_id}", status.HTTP_404_NOT_FOUND)
        ledger = await lock_ledger(db, student.id)
        if ledger is None:
            raise InvalidPayment(f"No ledger for student: {payload.student_id}", status.HTTP_404_NOT_FOUND)

        applied, excess = post_payment(ledger, to_decimal(payload.amount))
        record = PaymentRecord(
            student_id=student.id,
            amount=quantize(payload.amount),
            applied_amount=applied,
            excess_amount=excess,
            method=payload.method.strip().upper(),
            receipt_number=payload.receipt_number.strip(),
            fee_type=(payload.fee_type or "").strip().lower() or None,
            month=(payload.month or "").strip() or None,
            year=payload.year,
            recorded_by=payload.recorded_by,
            created_at=now,
        )
        db.add(record)
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    await db.refresh(record)
    return student, ledger, record


async def apply_payment(
    db: AsyncSession,
    payload: PaymentCreate,
    *,
    events: Optional[PaymentEvents] = None,
    now: Optional[datetime] = None,
) -> PaymentReceipt:
    """
    Apply a payment against pending first; pending never goes below zero.

    Raises InvalidPayment (ledger untouched) for non-positive amounts or unknown students,
    TransientStoreError when the store keeps failing after retries.
    """
    _validate(payload)
    now = now or datetime.now(timezone.utc)

    student, ledger, record = await with_retries(
        lambda: _apply_once(db, payload, now),
        description=f"Payment {payload.receipt_number} for student {payload.student_id}",
    )
    logger.info(
        "Applied payment %s (receipt %s) for student %s: amount=%s applied=%s excess=%s pending=%s",
        record.id, record.receipt_number, student.id, record.amount,
        record.applied_amount, record.excess_amount, ledger.pending_amount,
    )

    await (events or payment_events).emit(
        PaymentApplied(
            payment_id=record.id,
            student_id=student.id,
            so_center_id=student.so_center_id,
            amount=to_decimal(record.amount),
            applied_amount=to_decimal(record.applied_amount),
            excess_amount=to_decimal(record.excess_amount),
            method=record.method,
            receipt_number=record.receipt_number,
            created_at=record.created_at,
        )
    )

    class_name = (
        await db.execute(select(SchoolClass.name).where(SchoolClass.id == student.class_id))
    ).scalar_one_or_none()
    return PaymentReceipt(
        payment_id=record.id,
        student_id=student.id,
        student_name=student.name,
        class_name=class_name,
        amount=to_decimal(record.amount),
        applied_amount=to_decimal(record.applied_amount),
        excess_amount=to_decimal(record.excess_amount),
        method=record.method,
        receipt_number=record.receipt_number,
        fee_type=record.fee_type,
        new_paid_amount=to_decimal(ledger.paid_amount),
        new_pending_amount=to_decimal(ledger.pending_amount),
        total_fee_amount=to_decimal(ledger.total_fee_amount),
        created_at=record.created_at,
    )


async def get_payment_history(db: AsyncSession, student_id: UUID) -> List[PaymentRecordResponse]:
    student = await db.get(Student, student_id)
    if not student:
        raise StudentNotFound(student_id)
    stmt = (
        select(PaymentRecord)
        .where(PaymentRecord.student_id == student_id)
        .order_by(PaymentRecord.created_at.desc())
    )
    result = await db.execute(stmt)
    return [PaymentRecordResponse.model_validate(p) for p in result.scalars().all()]
