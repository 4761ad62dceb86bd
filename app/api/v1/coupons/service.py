"""Coupon service: admin CRUD, side-effect-free validation, usage recording after a completed payment."""

import logging
import re
from datetime import date
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.enums import DiscountType
from app.core.exceptions import ServiceError
from app.core.models import Coupon, CouponUsage
from app.core.utils import currency_symbol, to_decimal, to_uuid, utcnow

from .schemas import CouponCreate, CouponResponse, CouponUpdate, CouponValidationResult

logger = logging.getLogger(__name__)

COUPON_CODE_PATTERN = re.compile(r"^[A-Z0-9_-]{3,20}$")

MSG_INVALID = "Invalid coupon code"
MSG_INACTIVE = "This coupon is inactive"
MSG_EXHAUSTED = "This coupon has reached its maximum usage limit"
MSG_EXPIRED = "This coupon has expired"
MSG_APPLIED = "Coupon applied successfully"
MSG_ERROR = "Error validating coupon"


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


def format_discount_value(discount_type: str, discount_value, currency_code: Optional[str] = None) -> str:
    """Human-readable discount: ``20%``, ``₦5,000.00`` or ``Free``."""
    value = to_decimal(discount_value)
    if discount_type == DiscountType.percentage.value:
        return f"{value.normalize():f}%"
    if discount_type == DiscountType.fixed.value:
        return f"{currency_symbol(currency_code or settings.currency_code)}{value:,.2f}"
    if discount_type == DiscountType.free.value:
        return "Free"
    return str(value)


def compute_discount(discount_type: str, discount_value, amount: Decimal) -> Decimal:
    """Discount for ``amount``. Never exceeds the amount itself."""
    value = to_decimal(discount_value)
    amount = to_decimal(amount)
    if discount_type == DiscountType.percentage.value:
        discount = amount * value / Decimal("100")
    elif discount_type == DiscountType.fixed.value:
        discount = min(value, amount)
    elif discount_type == DiscountType.free.value:
        discount = amount
    else:
        discount = Decimal("0")
    return min(discount, amount)


def coupon_to_response(coupon: Coupon) -> CouponResponse:
    return CouponResponse(
        id=to_uuid(coupon.id),
        code=coupon.code,
        description=coupon.description,
        discount_type=DiscountType(coupon.discount_type),
        discount_value=to_decimal(coupon.discount_value),
        max_uses=coupon.max_uses,
        used_count=coupon.used_count,
        expiry_date=coupon.expiry_date,
        is_active=coupon.is_active,
        display_value=format_discount_value(coupon.discount_type, coupon.discount_value),
        created_at=coupon.created_at,
        updated_at=coupon.updated_at,
    )


async def get_coupon_by_code(db: AsyncSession, code: str) -> Optional[Coupon]:
    return (
        await db.execute(select(Coupon).where(Coupon.code == normalize_code(code)))
    ).scalar_one_or_none()


# --- Validation ---
async def validate_coupon(
    db: AsyncSession,
    code: str,
    amount: Decimal,
    today: Optional[date] = None,
) -> CouponValidationResult:
    """
    Check a user-entered code against ``amount``. Read-only and repeatable, so the
    UI may call it on every keystroke. Checks run in order and stop at the first failure.
    """
    try:
        coupon = await get_coupon_by_code(db, code)
    except SQLAlchemyError:
        logger.exception("Coupon lookup failed for code=%r", normalize_code(code))
        return CouponValidationResult(valid=False, message=MSG_ERROR)

    if coupon is None:
        return CouponValidationResult(valid=False, message=MSG_INVALID)
    if not coupon.is_active:
        return CouponValidationResult(valid=False, message=MSG_INACTIVE)
    if coupon.used_count >= coupon.max_uses:
        return CouponValidationResult(valid=False, message=MSG_EXHAUSTED)
    # Date-only comparison: a coupon stays usable for the whole of its expiry day.
    if coupon.expiry_date < (today or date.today()):
        return CouponValidationResult(valid=False, message=MSG_EXPIRED)

    discount = compute_discount(coupon.discount_type, coupon.discount_value, amount)
    return CouponValidationResult(
        valid=True,
        coupon=coupon_to_response(coupon),
        discount_amount=discount,
        message=MSG_APPLIED,
    )


# --- Usage ---
async def record_coupon_usage(
    db: AsyncSession,
    code: str,
    user_id: Optional[str],
    fee_id: UUID,
    transaction_reference: str,
    discount_amount: Decimal,
) -> Optional[CouponUsage]:
    """
    Count one use of a coupon against a completed payment. Runs inside the caller's
    transaction and does not commit. Returns None when the coupon is gone or exhausted;
    the payment itself is never undone for that.
    """
    normalized = normalize_code(code)
    coupon = await get_coupon_by_code(db, normalized)
    if coupon is None:
        logger.warning("Coupon %s used by payment %s no longer exists", normalized, transaction_reference)
        return None

    result = await db.execute(
        update(Coupon)
        .where(Coupon.id == coupon.id, Coupon.used_count < Coupon.max_uses)
        .values(used_count=Coupon.used_count + 1, updated_at=utcnow())
        .execution_options(synchronize_session="fetch")
    )
    if result.rowcount == 0:
        logger.warning(
            "Coupon %s exhausted before payment %s completed; usage not counted",
            normalized,
            transaction_reference,
        )
        return None

    usage = CouponUsage(
        coupon_id=coupon.id,
        coupon_code=normalized,
        user_id=user_id,
        fee_id=fee_id,
        transaction_reference=transaction_reference,
        discount_amount=to_decimal(discount_amount),
    )
    db.add(usage)
    logger.info(
        "Recorded coupon usage: %s by user %s for fee %s with discount %s",
        normalized,
        user_id,
        fee_id,
        discount_amount,
    )
    return usage


# --- Admin CRUD ---
def _validate_discount(discount_type: DiscountType, discount_value: Decimal) -> None:
    if discount_type == DiscountType.percentage and not (Decimal("0") < discount_value <= Decimal("100")):
        raise ServiceError("Percentage discount must be between 1 and 100", status.HTTP_400_BAD_REQUEST)
    if discount_type == DiscountType.fixed and discount_value <= 0:
        raise ServiceError("Fixed discount must be greater than 0", status.HTTP_400_BAD_REQUEST)


async def create_coupon(db: AsyncSession, payload: CouponCreate) -> CouponResponse:
    code = normalize_code(payload.code)
    if not COUPON_CODE_PATTERN.match(code):
        raise ServiceError(
            "Coupon code must be 3-20 characters and contain only uppercase letters, numbers, underscores, and hyphens",
            status.HTTP_400_BAD_REQUEST,
        )
    _validate_discount(payload.discount_type, payload.discount_value)
    if await get_coupon_by_code(db, code):
        raise ServiceError("A coupon with this code already exists", status.HTTP_409_CONFLICT)

    coupon = Coupon(
        code=code,
        description=(payload.description or "").strip() or None,
        discount_type=payload.discount_type.value,
        discount_value=payload.discount_value,
        max_uses=payload.max_uses,
        used_count=0,
        expiry_date=payload.expiry_date,
        is_active=payload.is_active,
    )
    db.add(coupon)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ServiceError("A coupon with this code already exists", status.HTTP_409_CONFLICT)
    await db.refresh(coupon)
    return coupon_to_response(coupon)


async def list_coupons(db: AsyncSession, active_only: bool = False) -> List[CouponResponse]:
    stmt = select(Coupon)
    if active_only:
        stmt = stmt.where(Coupon.is_active.is_(True))
    result = await db.execute(stmt.order_by(Coupon.created_at.desc()))
    return [coupon_to_response(c) for c in result.scalars().all()]


async def get_coupon(db: AsyncSession, coupon_id: UUID) -> Optional[CouponResponse]:
    coupon = await db.get(Coupon, coupon_id)
    return coupon_to_response(coupon) if coupon else None


async def update_coupon(db: AsyncSession, coupon_id: UUID, payload: CouponUpdate) -> Optional[CouponResponse]:
    coupon = await db.get(Coupon, coupon_id)
    if not coupon:
        return None
    data = payload.model_dump(exclude_unset=True)
    discount_type = data.get("discount_type") or DiscountType(coupon.discount_type)
    discount_value = data.get("discount_value")
    if discount_value is None:
        discount_value = to_decimal(coupon.discount_value)
    _validate_discount(discount_type, discount_value)
    if "max_uses" in data and data["max_uses"] < coupon.used_count:
        raise ServiceError("Maximum uses cannot be lower than the current usage count", status.HTTP_400_BAD_REQUEST)

    for key, value in data.items():
        if key == "discount_type":
            value = value.value
        elif key == "description":
            value = (value or "").strip() or None
        setattr(coupon, key, value)
    await db.commit()
    await db.refresh(coupon)
    return coupon_to_response(coupon)


async def delete_coupon(db: AsyncSession, coupon_id: UUID) -> bool:
    coupon = await db.get(Coupon, coupon_id)
    if not coupon:
        return False
    await db.delete(coupon)
    await db.commit()
    return True
