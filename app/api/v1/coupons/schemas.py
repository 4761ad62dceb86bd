"""Coupon schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.core.enums import DiscountType


class CouponCreate(BaseModel):
    code: str = Field(..., min_length=3, max_length=20)
    description: Optional[str] = None
    discount_type: DiscountType
    discount_value: Decimal = Field(Decimal("0"), ge=0)
    max_uses: int = Field(..., ge=1)
    expiry_date: date
    is_active: bool = True


class CouponUpdate(BaseModel):
    description: Optional[str] = None
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = Field(None, ge=0)
    max_uses: Optional[int] = Field(None, ge=1)
    expiry_date: Optional[date] = None
    is_active: Optional[bool] = None

    @field_validator("discount_type", "discount_value", "max_uses", "expiry_date", "is_active")
    @classmethod
    def _not_null(cls, value):
        # Omit a field to leave it unchanged; only description can be cleared.
        if value is None:
            raise ValueError("must not be null")
        return value


class CouponResponse(BaseModel):
    id: UUID
    code: str
    description: Optional[str] = None
    discount_type: DiscountType
    discount_value: Decimal
    max_uses: int
    used_count: int
    expiry_date: date
    is_active: bool
    display_value: str
    created_at: datetime
    updated_at: datetime


class CouponValidateRequest(BaseModel):
    code: str = Field(..., max_length=50)
    amount: Decimal = Field(..., ge=0)


class CouponValidationResult(BaseModel):
    """Outcome of a coupon check. message is always safe to show to the user."""

    valid: bool
    coupon: Optional[CouponResponse] = None
    discount_amount: Optional[Decimal] = None
    message: str
