"""Payment record: one row per payment received against a student ledger."""

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, String, Uuid
from sqlalchemy.orm import relationship

from academy_billing.db.session import Base


class PaymentRecord(Base):
    """Immutable once created. applied_amount + excess_amount = amount."""

    __tablename__ = "payment_records"
    __table_args__ = (
        CheckConstraint("amount > 0", name="chk_payment_amount_positive"),
        CheckConstraint("applied_amount >= 0 AND excess_amount >= 0", name="chk_payment_split_non_negative"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid, ForeignKey("students.id", ondelete="RESTRICT"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    applied_amount = Column(Numeric(12, 2), nullable=False)
    excess_amount = Column(Numeric(12, 2), nullable=False, default=0)
    method = Column(String(30), nullable=False)  # CASH, UPI, CARD, BANK
    receipt_number = Column(String(100), nullable=False, index=True)
    fee_type = Column(String(30), nullable=True)  # monthly, yearly, admission
    month = Column(String(20), nullable=True)
    year = Column(Integer, nullable=True)
    recorded_by = Column(Uuid, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    student = relationship("Student", foreign_keys=[student_id])
