"""Student directory record and its financial ledger."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Uuid
from sqlalchemy.orm import relationship

from academy_billing.core.billing_period import BillingState, billing_state_from
from academy_billing.db.session import Base


class Student(Base):
    """
    Enrolled student. enrollment_date and course_type are fixed at creation.
    Never deleted; deactivated via is_active (and is_dropped_out for dropouts).
    """

    __tablename__ = "students"
    __table_args__ = (
        CheckConstraint("course_type IN ('monthly','yearly')", name="chk_student_course_type"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    class_id = Column(Uuid, ForeignKey("classes.id", ondelete="RESTRICT"), nullable=False, index=True)
    so_center_id = Column(Uuid, ForeignKey("so_centers.id", ondelete="SET NULL"), nullable=True, index=True)
    course_type = Column(String(20), nullable=False)  # monthly, yearly
    enrollment_date = Column(Date, nullable=False)
    parent_phone = Column(String(50), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    is_dropped_out = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    school_class = relationship("SchoolClass", foreign_keys=[class_id], lazy="joined")
    so_center = relationship("SoCenter", foreign_keys=[so_center_id])
    ledger = relationship("StudentLedger", back_populates="student", uselist=False)


class StudentLedger(Base):
    """
    Per-student financial state. total_fee_amount = paid_amount + pending_amount after every commit.
    Charged only by the billing scheduler; paid down only by the payment applier.
    """

    __tablename__ = "student_ledgers"
    __table_args__ = (
        CheckConstraint(
            "total_fee_amount >= 0 AND paid_amount >= 0 AND pending_amount >= 0",
            name="chk_student_ledger_non_negative",
        ),
        CheckConstraint(
            "ABS(total_fee_amount - paid_amount - pending_amount) < 0.005",
            name="chk_student_ledger_balanced",
        ),
    )

    student_id = Column(Uuid, ForeignKey("students.id", ondelete="RESTRICT"), primary_key=True)
    admission_fee_paid = Column(Boolean, nullable=False, default=False)
    # Yearly fee is charged at most once per student
    yearly_fee_billed = Column(Boolean, nullable=False, default=False)
    total_fee_amount = Column(Numeric(12, 2), nullable=False, default=0)
    paid_amount = Column(Numeric(12, 2), nullable=False, default=0)
    pending_amount = Column(Numeric(12, 2), nullable=False, default=0)
    last_fee_calculation_date = Column(Date, nullable=True)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    # Bumped on every UPDATE; a write against a stale row raises StaleDataError
    version = Column(Integer, nullable=False)

    student = relationship("Student", back_populates="ledger")

    __mapper_args__ = {"version_id_col": version}

    @property
    def billing_state(self) -> BillingState:
        return billing_state_from(self.last_fee_calculation_date)
