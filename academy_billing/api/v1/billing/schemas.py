"""Billing run schemas."""

from datetime import date
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from academy_billing.core.enums import BillingOutcome, CalculationType


class BillingRunRequest(BaseModel):
    run_date: Optional[date] = Field(None, description="Billing reference date; defaults to today's UTC date")


class StudentBillingResult(BaseModel):
    student_id: UUID
    outcome: BillingOutcome
    month_year: str
    calculation_type: Optional[CalculationType] = None
    fee_amount: Optional[Decimal] = None
    reason: Optional[str] = None
    months_billed: List[str] = Field(default_factory=list)


class BillingRunSummary(BaseModel):
    run_date: date
    month_year: str
    candidates: int = 0
    processed: int = 0
    skipped: int = 0
    unbillable: int = 0
    failed: int = 0
    total_billed: Decimal = Decimal("0.00")
    results: List[StudentBillingResult] = Field(default_factory=list)


class BillingPreviewItem(BaseModel):
    student_id: UUID
    student_name: str
    class_id: UUID
    course_type: str
    calculation_type: Optional[CalculationType] = None
    current_pending: Decimal
    fee_amount: Optional[Decimal] = None  # None when the student has no fee catalog entry
    new_pending: Optional[Decimal] = None
    reason: str
    months: List[str] = Field(default_factory=list)


class BillingPreview(BaseModel):
    run_date: date
    month_year: str
    students_to_bill: int
    unbillable: int
    total_to_bill: Decimal
    items: List[BillingPreviewItem]
