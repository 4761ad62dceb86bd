"""Fees router: assessment, ledger reads, payment history."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.auth.rbac import require_admin
from app.auth.schemas import CurrentUser
from app.core.enums import UserRole
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import FeeCreate, FeeResponse, PaymentResponse
from . import service

router = APIRouter(prefix="/api/v1/fees", tags=["fees"])


def _ensure_can_view_student(current_user: CurrentUser, student_id: str) -> None:
    # Students only see their own ledger; staff and parents see any.
    if current_user.role == UserRole.STUDENT and current_user.id != student_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions",
        )


@router.post(
    "",
    response_model=FeeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_fee(
    payload: FeeCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> FeeResponse:
    try:
        return await service.create_fee(db, payload, created_by=current_user.id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/unpaid",
    response_model=List[FeeResponse],
    dependencies=[Depends(require_admin)],
)
async def list_unpaid_fees(
    db: AsyncSession = Depends(get_db),
) -> List[FeeResponse]:
    return await service.list_unpaid_fees(db)


@router.get(
    "/student/{student_id}",
    response_model=List[FeeResponse],
)
async def list_student_fees(
    student_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[FeeResponse]:
    _ensure_can_view_student(current_user, student_id)
    return await service.list_student_fees(db, student_id)


@router.get(
    "/payments/{student_id}",
    response_model=List[PaymentResponse],
)
async def get_payment_history(
    student_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[PaymentResponse]:
    _ensure_can_view_student(current_user, student_id)
    return await service.get_payment_history(db, student_id)


@router.get(
    "/{fee_id}",
    response_model=FeeResponse,
)
async def get_fee(
    fee_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> FeeResponse:
    try:
        fee = await service.get_fee_detail(db, fee_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    _ensure_can_view_student(current_user, fee.student_id)
    return fee
