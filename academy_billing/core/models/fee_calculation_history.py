"""Fee calculation history: append-only audit of every billing decision."""

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Index, Integer, Numeric, String, Text, Uuid, text
from sqlalchemy.orm import relationship

from academy_billing.db.session import Base


class FeeCalculationHistory(Base):
    """One row per billing decision. Never updated or deleted."""

    __tablename__ = "fee_calculation_history"
    __table_args__ = (
        CheckConstraint(
            "calculation_type IS NULL OR calculation_type IN ('first_month','regular_month')",
            name="chk_fee_calculation_type",
        ),
        CheckConstraint("fee_amount >= 0", name="chk_fee_calculation_amount_non_negative"),
        # At most one charge and one catalog-miss row per student-month
        Index(
            "uq_fee_calculation_history_billed_month",
            "student_id",
            "month_year",
            unique=True,
            sqlite_where=text("calculation_type IS NOT NULL"),
            postgresql_where=text("calculation_type IS NOT NULL"),
        ),
        Index(
            "uq_fee_calculation_history_catalog_miss",
            "student_id",
            "month_year",
            unique=True,
            sqlite_where=text("calculation_type IS NULL"),
            postgresql_where=text("calculation_type IS NULL"),
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid, ForeignKey("students.id", ondelete="RESTRICT"), nullable=False, index=True)
    calculation_date = Column(Date, nullable=False)
    month_year = Column(String(7), nullable=False, index=True)  # e.g. "2025-08"
    # first_month, regular_month; NULL when the student could not be billed
    calculation_type = Column(String(20), nullable=True)
    fee_amount = Column(Numeric(12, 2), nullable=False, default=0)
    enrollment_day = Column(Integer, nullable=True)  # first_month only
    reason = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    student = relationship("Student", foreign_keys=[student_id])
