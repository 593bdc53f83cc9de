"""
Student ledger mutations. The only code that changes total/paid/pending.

Both mutations run on a ledger row locked with SELECT ... FOR UPDATE so the billing
scheduler and the payment applier serialize on the same student. Backends without
row locks (SQLite) fall back to the version column: a write based on a stale read
matches no row, raises StaleDataError and is retried from a fresh read.
"""

from datetime import date
from decimal import Decimal
from typing import Optional, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academy_billing.core.models import StudentLedger
from academy_billing.core.money import EPSILON, ZERO, quantize, to_decimal


class LedgerImbalance(AssertionError):
    pass


async def lock_ledger(db: AsyncSession, student_id: UUID) -> Optional[StudentLedger]:
    """Load the ledger row for update. populate_existing refreshes a row already in the session."""
    stmt = (
        select(StudentLedger)
        .where(StudentLedger.student_id == student_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return (await db.execute(stmt)).scalar_one_or_none()


def assert_balanced(ledger: StudentLedger) -> None:
    total = to_decimal(ledger.total_fee_amount)
    paid = to_decimal(ledger.paid_amount)
    pending = to_decimal(ledger.pending_amount)
    if min(total, paid, pending) < ZERO:
        raise LedgerImbalance(f"Negative ledger amount for student {ledger.student_id}")
    if abs(total - paid - pending) >= EPSILON:
        raise LedgerImbalance(
            f"Ledger out of balance for student {ledger.student_id}: total={total} paid={paid} pending={pending}"
        )


def post_charge(
    ledger: StudentLedger,
    amount: Decimal,
    run_date: date,
    *,
    includes_admission: bool,
    includes_yearly: bool,
) -> None:
    """Add a billed amount to total and pending and stamp the calculation date."""
    amount = quantize(amount)
    if amount < ZERO:
        raise ValueError("Charge amount cannot be negative")
    ledger.total_fee_amount = quantize(to_decimal(ledger.total_fee_amount) + amount)
    ledger.pending_amount = quantize(to_decimal(ledger.pending_amount) + amount)
    ledger.last_fee_calculation_date = run_date
    if includes_admission:
        ledger.admission_fee_paid = True
    if includes_yearly:
        ledger.yearly_fee_billed = True
    assert_balanced(ledger)


def post_payment(ledger: StudentLedger, amount: Decimal) -> Tuple[Decimal, Decimal]:
    """
    Pay down pending first. Returns (applied, excess).
    Pending floors at 0; the excess still counts as paid and is added to total so
    total = paid + pending keeps holding.
    """
    amount = quantize(amount)
    if amount <= ZERO:
        raise ValueError("Payment amount must be positive")
    pending = to_decimal(ledger.pending_amount)
    applied = min(amount, pending)
    excess = amount - applied
    ledger.pending_amount = quantize(pending - applied)
    ledger.paid_amount = quantize(to_decimal(ledger.paid_amount) + amount)
    ledger.total_fee_amount = quantize(to_decimal(ledger.total_fee_amount) + excess)
    assert_balanced(ledger)
    return applied, excess
