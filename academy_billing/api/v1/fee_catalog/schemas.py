"""Fee catalog schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from academy_billing.core.enums import CourseType


class FeeCatalogEntryUpsert(BaseModel):
    class_id: UUID
    course_type: CourseType
    admission_fee: Decimal = Field(Decimal("0"), ge=0)
    monthly_fee: Decimal = Field(Decimal("0"), ge=0)
    yearly_fee: Decimal = Field(Decimal("0"), ge=0)


class FeeCatalogEntryResponse(BaseModel):
    id: UUID
    class_id: UUID
    course_type: CourseType
    admission_fee: Decimal
    monthly_fee: Decimal
    yearly_fee: Decimal
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
