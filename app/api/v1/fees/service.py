"""Fees service: fee assessment, ledger reads, payment history."""

from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import FeeStatus
from app.core.exceptions import ServiceError
from app.core.models import Fee, FeeAuditLog, Payment
from app.core.utils import to_decimal, to_uuid

from .schemas import FeeCreate, FeeResponse, PaymentResponse


def fee_to_response(fee: Fee) -> FeeResponse:
    return FeeResponse(
        id=to_uuid(fee.id),
        student_id=fee.student_id,
        student_name=fee.student_name,
        class_name=fee.class_name,
        fee_type=fee.fee_type,
        term=fee.term,
        academic_year=fee.academic_year,
        description=fee.description,
        due_date=fee.due_date,
        total_amount=to_decimal(fee.total_amount),
        amount_paid=to_decimal(fee.amount_paid),
        balance=to_decimal(fee.balance),
        status=FeeStatus(fee.status),
        created_at=fee.created_at,
        updated_at=fee.updated_at,
    )


def payment_to_response(payment: Payment) -> PaymentResponse:
    return PaymentResponse(
        id=to_uuid(payment.id),
        fee_id=to_uuid(payment.fee_id),
        student_id=payment.student_id,
        student_name=payment.student_name,
        amount=to_decimal(payment.amount),
        payment_method=payment.payment_method,
        payment_date=payment.payment_date,
        transaction_reference=payment.transaction_reference,
        status=payment.status,
        metadata=payment.details,
        created_at=payment.created_at,
    )


async def get_fee(db: AsyncSession, fee_id: UUID) -> Optional[Fee]:
    return (await db.execute(select(Fee).where(Fee.id == fee_id))).scalar_one_or_none()


async def create_fee(
    db: AsyncSession,
    payload: FeeCreate,
    created_by: Optional[str],
) -> FeeResponse:
    if payload.total_amount <= 0:
        raise ServiceError("Fee amount must be greater than 0", status.HTTP_400_BAD_REQUEST)
    fee = Fee(
        student_id=payload.student_id.strip(),
        student_name=payload.student_name.strip(),
        class_name=(payload.class_name or "").strip() or None,
        fee_type=payload.fee_type.strip(),
        term=(payload.term or "").strip() or None,
        academic_year=(payload.academic_year or "").strip() or None,
        description=(payload.description or "").strip() or None,
        due_date=payload.due_date,
        total_amount=payload.total_amount,
        amount_paid=0,
        balance=payload.total_amount,
        status=FeeStatus.unpaid.value,
    )
    db.add(fee)
    await db.flush()
    db.add(
        FeeAuditLog(
            reference_table="fees",
            reference_id=fee.id,
            action_type="CREATE",
            old_value=None,
            new_value={
                "student_id": fee.student_id,
                "fee_type": fee.fee_type,
                "total_amount": str(payload.total_amount),
            },
            changed_by=created_by,
        )
    )
    await db.commit()
    await db.refresh(fee)
    return fee_to_response(fee)


async def get_fee_detail(db: AsyncSession, fee_id: UUID) -> FeeResponse:
    fee = await get_fee(db, fee_id)
    if not fee:
        raise ServiceError("Fee record not found", status.HTTP_404_NOT_FOUND)
    return fee_to_response(fee)


async def list_student_fees(db: AsyncSession, student_id: str) -> List[FeeResponse]:
    result = await db.execute(
        select(Fee).where(Fee.student_id == student_id).order_by(Fee.created_at.desc())
    )
    return [fee_to_response(f) for f in result.scalars().all()]


async def list_unpaid_fees(db: AsyncSession) -> List[FeeResponse]:
    """Fees with an outstanding balance (unpaid or partially paid)."""
    result = await db.execute(
        select(Fee)
        .where(Fee.status.in_([FeeStatus.unpaid.value, FeeStatus.partial.value]))
        .order_by(Fee.due_date.asc(), Fee.created_at.asc())
    )
    return [fee_to_response(f) for f in result.scalars().all()]


async def get_payment_history(db: AsyncSession, student_id: str) -> List[PaymentResponse]:
    result = await db.execute(
        select(Payment)
        .where(Payment.student_id == student_id)
        .order_by(Payment.payment_date.desc())
    )
    return [payment_to_response(p) for p in result.scalars().all()]
