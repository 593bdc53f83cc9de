"""Students router: directory surface, ledger snapshot, payment and fee calculation history."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from academy_billing.api.v1.payments import service as payments_service
from academy_billing.api.v1.payments.schemas import PaymentRecordResponse
from academy_billing.core.exceptions import ServiceError
from academy_billing.db.session import get_db

from .schemas import (
    FeeCalculationHistoryItem,
    LedgerSnapshot,
    SchoolClassCreate,
    SchoolClassResponse,
    SoCenterCreate,
    SoCenterResponse,
    StudentEnroll,
    StudentResponse,
)
from . import service

router = APIRouter(prefix="/api/v1", tags=["students"])


# --- Classes / SO Centers ---
@router.post("/classes", response_model=SchoolClassResponse, status_code=status.HTTP_201_CREATED)
async def create_class(
    payload: SchoolClassCreate,
    db: AsyncSession = Depends(get_db),
) -> SchoolClassResponse:
    try:
        return await service.create_class(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/so-centers", response_model=SoCenterResponse, status_code=status.HTTP_201_CREATED)
async def create_so_center(
    payload: SoCenterCreate,
    db: AsyncSession = Depends(get_db),
) -> SoCenterResponse:
    return await service.create_so_center(db, payload)


# --- Students ---
@router.post("/students", response_model=StudentResponse, status_code=status.HTTP_201_CREATED)
async def enroll_student(
    payload: StudentEnroll,
    db: AsyncSession = Depends(get_db),
) -> StudentResponse:
    try:
        return await service.enroll_student(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/students/{student_id}/deactivate", response_model=StudentResponse)
async def deactivate_student(
    student_id: UUID,
    dropped_out: bool = Query(False, description="Mark the student as dropped out"),
    db: AsyncSession = Depends(get_db),
) -> StudentResponse:
    try:
        return await service.deactivate_student(db, student_id, dropped_out=dropped_out)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/students/{student_id}/ledger", response_model=LedgerSnapshot)
async def get_ledger(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> LedgerSnapshot:
    try:
        return await service.get_ledger_snapshot(db, student_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/students/{student_id}/payments", response_model=List[PaymentRecordResponse])
async def get_payment_history(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> List[PaymentRecordResponse]:
    try:
        return await payments_service.get_payment_history(db, student_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/students/{student_id}/fee-history", response_model=List[FeeCalculationHistoryItem])
async def get_fee_history(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> List[FeeCalculationHistoryItem]:
    try:
        return await service.get_fee_history(db, student_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
