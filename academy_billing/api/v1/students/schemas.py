"""Student directory and ledger schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from academy_billing.core.enums import CalculationType, CourseType


# --- Classes / SO Centers ---
class SchoolClassCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)


class SchoolClassResponse(BaseModel):
    id: UUID
    name: str
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class SoCenterCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class SoCenterResponse(BaseModel):
    id: UUID
    name: str
    wallet_balance: Decimal
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


# --- Students ---
class StudentEnroll(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    class_id: UUID
    so_center_id: Optional[UUID] = None
    course_type: CourseType
    enrollment_date: date
    parent_phone: Optional[str] = None
    admission_fee_paid: bool = False


class StudentResponse(BaseModel):
    id: UUID
    name: str
    class_id: UUID
    so_center_id: Optional[UUID] = None
    course_type: CourseType
    enrollment_date: date
    parent_phone: Optional[str] = None
    is_active: bool
    is_dropped_out: bool
    created_at: datetime

    class Config:
        from_attributes = True


class LedgerSnapshot(BaseModel):
    """Per-student ledger for dashboards."""

    student_id: UUID
    total_fee_amount: Decimal
    paid_amount: Decimal
    pending_amount: Decimal
    admission_fee_paid: bool
    yearly_fee_billed: bool
    last_fee_calculation_date: Optional[date] = None
    billing_state: str  # unbilled | billed_through


class FeeCalculationHistoryItem(BaseModel):
    id: UUID
    student_id: UUID
    calculation_date: date
    month_year: str
    calculation_type: Optional[CalculationType] = None
    fee_amount: Decimal
    enrollment_day: Optional[int] = None
    reason: str
    created_at: datetime

    class Config:
        from_attributes = True
