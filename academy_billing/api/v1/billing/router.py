"""Billing router: admin trigger and dry-run preview of the monthly billing run."""

from datetime import date, datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from academy_billing.db.session import get_db, get_session_factory

from .schemas import BillingPreview, BillingRunRequest, BillingRunSummary
from . import service

router = APIRouter(prefix="/api/v1/billing", tags=["billing"])


def _today() -> date:
    return datetime.now(timezone.utc).date()


@router.post("/run", response_model=BillingRunSummary)
async def run_billing(
    payload: Optional[BillingRunRequest] = None,
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> BillingRunSummary:
    """Bill all due students for the month of run_date. Safe to repeat for the same month."""
    run_date = (payload.run_date if payload else None) or _today()
    return await service.run_billing(session_factory, run_date)


@router.get("/preview", response_model=BillingPreview)
async def preview_billing(
    run_date: Optional[date] = Query(None, description="Defaults to today's UTC date"),
    db: AsyncSession = Depends(get_db),
) -> BillingPreview:
    return await service.preview_billing(db, run_date or _today())
