"""Payment schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class PaymentCreate(BaseModel):
    student_id: UUID
    # Validated again in the service so direct callers get InvalidPayment, not a pydantic error
    amount: Decimal = Field(..., description="Must be greater than zero")
    method: str = Field(..., max_length=30, description="CASH, UPI, CARD, BANK")
    receipt_number: str = Field(..., min_length=1, max_length=100)
    fee_type: Optional[str] = Field(None, max_length=30, description="monthly, yearly, admission")
    month: Optional[str] = Field(None, max_length=20)
    year: Optional[int] = None
    recorded_by: Optional[UUID] = None


class PaymentReceipt(BaseModel):
    payment_id: UUID
    student_id: UUID
    student_name: str
    class_name: Optional[str] = None
    amount: Decimal
    applied_amount: Decimal
    excess_amount: Decimal
    method: str
    receipt_number: str
    fee_type: Optional[str] = None
    new_paid_amount: Decimal
    new_pending_amount: Decimal
    total_fee_amount: Decimal
    created_at: datetime


class PaymentRecordResponse(BaseModel):
    id: UUID
    student_id: UUID
    amount: Decimal
    applied_amount: Decimal
    excess_amount: Decimal
    method: str
    receipt_number: str
    fee_type: Optional[str] = None
    month: Optional[str] = None
    year: Optional[int] = None
    recorded_by: Optional[UUID] = None
    created_at: datetime

    class Config:
        from_attributes = True
