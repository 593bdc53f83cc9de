"""Monthly fee schedule: one row per (student, month). Its uniqueness is the billing idempotency guard."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Numeric, String, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from academy_billing.db.session import Base


class MonthlyFeeSchedule(Base):
    """Flipped to is_processed=true exactly once per (student, month)."""

    __tablename__ = "monthly_fee_schedules"
    __table_args__ = (
        UniqueConstraint("student_id", "month_year", name="uq_monthly_fee_schedule_student_month"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid, ForeignKey("students.id", ondelete="RESTRICT"), nullable=False)
    month_year = Column(String(7), nullable=False)
    scheduled_date = Column(Date, nullable=False)
    fee_amount = Column(Numeric(12, 2), nullable=False, default=0)
    is_processed = Column(Boolean, nullable=False, default=False)
    processed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    student = relationship("Student", foreign_keys=[student_id])
