"""SO Center (satellite tutoring location) and its wallet transactions."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Numeric, String, Uuid
from sqlalchemy.orm import relationship

from academy_billing.db.session import Base


class SoCenter(Base):
    __tablename__ = "so_centers"
    __table_args__ = (
        CheckConstraint("wallet_balance >= 0", name="chk_so_center_wallet_non_negative"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    wallet_balance = Column(Numeric(12, 2), nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)


class WalletTransaction(Base):
    """Credit/debit against an SO Center wallet. Immutable."""

    __tablename__ = "wallet_transactions"
    __table_args__ = (
        CheckConstraint("type IN ('credit','debit')", name="chk_wallet_transaction_type"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    so_center_id = Column(Uuid, ForeignKey("so_centers.id", ondelete="CASCADE"), nullable=False, index=True)
    payment_id = Column(Uuid, ForeignKey("payment_records.id", ondelete="SET NULL"), nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)
    type = Column(String(10), nullable=False)  # credit, debit
    description = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    so_center = relationship("SoCenter", backref="wallet_transactions")
