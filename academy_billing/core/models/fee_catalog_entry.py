"""Fee catalog: admission/monthly/yearly amounts per (class, course type)."""

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Numeric, String, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from academy_billing.db.session import Base


class FeeCatalogEntry(Base):
    """Admin-managed fee amounts. Read-only for the billing engine."""

    __tablename__ = "fee_catalog_entries"
    __table_args__ = (
        UniqueConstraint("class_id", "course_type", name="uq_fee_catalog_class_course_type"),
        CheckConstraint("course_type IN ('monthly','yearly')", name="chk_fee_catalog_course_type"),
        CheckConstraint(
            "admission_fee >= 0 AND monthly_fee >= 0 AND yearly_fee >= 0",
            name="chk_fee_catalog_non_negative",
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    class_id = Column(Uuid, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False)
    course_type = Column(String(20), nullable=False)
    admission_fee = Column(Numeric(12, 2), nullable=False, default=0)
    monthly_fee = Column(Numeric(12, 2), nullable=False, default=0)
    yearly_fee = Column(Numeric(12, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    school_class = relationship("SchoolClass", foreign_keys=[class_id])
