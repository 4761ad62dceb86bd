"""Coupons router: admin management and live validation."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.auth.rbac import require_admin
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import (
    CouponCreate,
    CouponResponse,
    CouponUpdate,
    CouponValidateRequest,
    CouponValidationResult,
)
from . import service

router = APIRouter(prefix="/api/v1/coupons", tags=["coupons"])


@router.post(
    "/validate",
    response_model=CouponValidationResult,
    dependencies=[Depends(get_current_user)],
)
async def validate_coupon(
    payload: CouponValidateRequest,
    db: AsyncSession = Depends(get_db),
) -> CouponValidationResult:
    return await service.validate_coupon(db, payload.code, payload.amount)


@router.post(
    "",
    response_model=CouponResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_coupon(
    payload: CouponCreate,
    db: AsyncSession = Depends(get_db),
) -> CouponResponse:
    try:
        return await service.create_coupon(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "",
    response_model=List[CouponResponse],
    dependencies=[Depends(require_admin)],
)
async def list_coupons(
    active_only: bool = Query(False),
    db: AsyncSession = Depends(get_db),
) -> List[CouponResponse]:
    return await service.list_coupons(db, active_only=active_only)


@router.get(
    "/{coupon_id}",
    response_model=CouponResponse,
    dependencies=[Depends(require_admin)],
)
async def get_coupon(
    coupon_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> CouponResponse:
    result = await service.get_coupon(db, coupon_id)
    if not result:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Coupon not found")
    return result


@router.patch(
    "/{coupon_id}",
    response_model=CouponResponse,
    dependencies=[Depends(require_admin)],
)
async def update_coupon(
    coupon_id: UUID,
    payload: CouponUpdate,
    db: AsyncSession = Depends(get_db),
) -> CouponResponse:
    try:
        result = await service.update_coupon(db, coupon_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    if not result:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Coupon not found")
    return result


@router.delete(
    "/{coupon_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
async def delete_coupon(
    coupon_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> None:
    if not await service.delete_coupon(db, coupon_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Coupon not found")
