"""Payments router: payment submission feeding the payment applier."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from academy_billing.core.exceptions import ServiceError
from academy_billing.db.session import get_db

from .schemas import PaymentCreate, PaymentReceipt
from . import service

router = APIRouter(prefix="/api/v1/payments", tags=["payments"])


@router.post(
    "",
    response_model=PaymentReceipt,
    status_code=status.HTTP_201_CREATED,
)
async def submit_payment(
    payload: PaymentCreate,
    db: AsyncSession = Depends(get_db),
) -> PaymentReceipt:
    try:
        return await service.apply_payment(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
