"""Fee catalog: lookup for the billing engine, upsert/list for the admin workflow."""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from academy_billing.core.enums import CourseType
from academy_billing.core.exceptions import CatalogMiss, ServiceError
from academy_billing.core.models import FeeCatalogEntry, SchoolClass
from academy_billing.core.money import quantize

from .schemas import FeeCatalogEntryResponse, FeeCatalogEntryUpsert

logger = logging.getLogger(__name__)


async def find_entry(db: AsyncSession, class_id: UUID, course_type: str) -> Optional[FeeCatalogEntry]:
    stmt = select(FeeCatalogEntry).where(
        FeeCatalogEntry.class_id == class_id,
        FeeCatalogEntry.course_type == CourseType(course_type).value,
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def lookup(db: AsyncSession, class_id: UUID, course_type: str) -> FeeCatalogEntry:
    """Pure read. Raises CatalogMiss when no entry exists for the pair."""
    entry = await find_entry(db, class_id, course_type)
    if entry is None:
        raise CatalogMiss(class_id, CourseType(course_type).value)
    return entry


async def upsert_entry(db: AsyncSession, payload: FeeCatalogEntryUpsert) -> FeeCatalogEntryResponse:
    cl = await db.get(SchoolClass, payload.class_id)
    if not cl or not cl.is_active:
        raise ServiceError("Invalid class", status.HTTP_400_BAD_REQUEST)

    entry = await find_entry(db, payload.class_id, payload.course_type.value)
    if entry is None:
        entry = FeeCatalogEntry(class_id=payload.class_id, course_type=payload.course_type.value)
        db.add(entry)
    entry.admission_fee = quantize(payload.admission_fee)
    entry.monthly_fee = quantize(payload.monthly_fee)
    entry.yearly_fee = quantize(payload.yearly_fee)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ServiceError(
            "A fee catalog entry for this class and course type was created concurrently",
            status.HTTP_409_CONFLICT,
        )
    await db.refresh(entry)
    logger.info(
        "Fee catalog %s/%s set: admission=%s monthly=%s yearly=%s",
        entry.class_id, entry.course_type, entry.admission_fee, entry.monthly_fee, entry.yearly_fee,
    )
    return FeeCatalogEntryResponse.model_validate(entry)


async def list_entries(db: AsyncSession, class_id: Optional[UUID] = None) -> List[FeeCatalogEntryResponse]:
    stmt = select(FeeCatalogEntry)
    if class_id is not None:
        stmt = stmt.where(FeeCatalogEntry.class_id == class_id)
    stmt = stmt.order_by(FeeCatalogEntry.class_id, FeeCatalogEntry.course_type)
    result = await db.execute(stmt)
    return [FeeCatalogEntryResponse.model_validate(e) for e in result.scalars().all()]
