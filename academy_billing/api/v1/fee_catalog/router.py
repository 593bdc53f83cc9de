"""Fee catalog router (admin-managed amounts per class and course type)."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from academy_billing.core.exceptions import ServiceError
from academy_billing.db.session import get_db

from .schemas import FeeCatalogEntryResponse, FeeCatalogEntryUpsert
from . import service

router = APIRouter(prefix="/api/v1/fee-catalog", tags=["fee-catalog"])


@router.put("", response_model=FeeCatalogEntryResponse)
async def upsert_fee_catalog_entry(
    payload: FeeCatalogEntryUpsert,
    db: AsyncSession = Depends(get_db),
) -> FeeCatalogEntryResponse:
    try:
        return await service.upsert_entry(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[FeeCatalogEntryResponse])
async def list_fee_catalog(
    class_id: Optional[UUID] = Query(None),
    db: AsyncSession = Depends(get_db),
) -> List[FeeCatalogEntryResponse]:
    return await service.list_entries(db, class_id=class_id)
