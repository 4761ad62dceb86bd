"""
Paystack service: webhook event dispatch, fee reconciliation, payment recording,
transaction verification and checkout preparation.

Paystack delivers webhooks at least once, so a charge can arrive twice, late, or
concurrently with another charge for the same fee. Two guards keep the ledger right:

- the transaction reference is the idempotency key. It is checked before the fee is
  touched and enforced by a UNIQUE constraint on ``payments``. The fee update and the
  payment insert commit together, so a duplicate rolls both back;
- the fee row is written compare-and-set on ``Fee.version``. A concurrent writer makes
  the flush fail with ``StaleDataError`` and the whole read-compute-write is retried.
"""

import logging
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Tuple
from uuid import UUID

import httpx
from fastapi import status
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from app.api.v1.coupons import service as coupon_service
from app.api.v1.fees import service as fee_service
from app.auth.schemas import CurrentUser
from app.core.config import settings
from app.core.enums import FeeStatus, PaymentMethod, PaymentStatus, PaystackEventType, UserRole
from app.core.exceptions import ServiceError, TransientServiceError
from app.core.models import Fee, FeeAuditLog, Payment
from app.core.utils import to_decimal, utcnow

from .client import PaystackClient, response_json
from .schemas import ChargeData, CheckoutMetadata, CheckoutRequest, CheckoutResponse, WebhookEvent
from .utils import generate_reference, is_valid_reference, to_major_unit, to_minor_unit

logger = logging.getLogger(__name__)

WEBHOOK_ACTOR = "paystack"
RETRYABLE_ERRORS = (StaleDataError, OperationalError)


class EventOutcome(str, Enum):
    APPLIED = "applied"
    DUPLICATE = "duplicate"
    MISSING_FEE_ID = "missing_fee_id"
    FEE_NOT_FOUND = "fee_not_found"
    INVALID_PAYLOAD = "invalid_payload"
    TRANSFER_LOGGED = "transfer_logged"
    UNHANDLED = "unhandled"


# --- Ledger arithmetic ---
def compute_fee_update(
    total_amount: Decimal,
    amount_paid: Decimal,
    payment_amount: Decimal,
) -> Tuple[Decimal, Decimal, FeeStatus]:
    """New (amount_paid, balance, status) after adding ``payment_amount``. Balance goes negative on overpayment."""
    new_amount_paid = to_decimal(amount_paid) + to_decimal(payment_amount)
    new_balance = to_decimal(total_amount) - new_amount_paid
    new_status = FeeStatus.paid if new_balance <= 0 else FeeStatus.partial
    return new_amount_paid, new_balance, new_status


async def _load_fee(db: AsyncSession, fee_id: UUID) -> Optional[Fee]:
    return await fee_service.get_fee(db, fee_id)


async def _payment_exists(db: AsyncSession, reference: str) -> bool:
    found = (
        await db.execute(select(Payment.id).where(Payment.transaction_reference == reference))
    ).first()
    return found is not None


# --- Payment Recorder ---
async def record_payment(
    db: AsyncSession,
    *,
    fee_id: UUID,
    student_id: Optional[str],
    student_name: Optional[str],
    amount: Decimal,
    payment_date: datetime,
    reference: str,
    details: Dict[str, Any],
    payment_method: PaymentMethod = PaymentMethod.PAYSTACK,
) -> Payment:
    """Append the payment row. Flushes but does not commit; a duplicate reference raises IntegrityError."""
    payment = Payment(
        fee_id=fee_id,
        student_id=student_id,
        student_name=student_name,
        amount=amount,
        payment_method=payment_method.value,
        payment_date=payment_date,
        transaction_reference=reference,
        status=PaymentStatus.completed.value,
        details=details,
    )
    db.add(payment)
    await db.flush()
    return payment


# --- Payment Reconciler ---
async def _apply_charge(db: AsyncSession, charge: ChargeData, fee_id: UUID) -> EventOutcome:
    """One read-compute-write attempt. Commits on success."""
    reference = charge.reference
    fee = await _load_fee(db, fee_id)
    if fee is None:
        logger.error("Fee record with ID %s not found (reference=%s)", fee_id, reference)
        return EventOutcome.FEE_NOT_FOUND

    if await _payment_exists(db, reference):
        logger.info("Charge %s already applied to fee %s; ignoring redelivery", reference, fee_id)
        return EventOutcome.DUPLICATE

    amount = to_major_unit(charge.amount)
    old_value = {
        "amount_paid": str(fee.amount_paid),
        "balance": str(fee.balance),
        "status": fee.status,
    }
    new_amount_paid, new_balance, new_status = compute_fee_update(fee.total_amount, fee.amount_paid, amount)
    fee.amount_paid = new_amount_paid
    fee.balance = new_balance
    fee.status = new_status.value
    fee.updated_at = utcnow()
    # Compare-and-set on Fee.version; StaleDataError if another writer got there first.
    await db.flush()

    metadata = charge.metadata
    discount_amount = to_decimal(metadata.discount_amount) if metadata.discount_amount is not None else None
    details: Dict[str, Any] = {
        "paystack_reference": reference,
        "customer_email": charge.customer.email if charge.customer else None,
        "discount_applied": bool(metadata.discount_applied),
        "discount_amount": str(discount_amount) if discount_amount is not None else None,
    }
    coupon_code = coupon_service.normalize_code(metadata.coupon_code) if metadata.coupon_code else None
    if coupon_code:
        details["coupon_code"] = coupon_code

    try:
        payment = await record_payment(
            db,
            fee_id=fee_id,
            student_id=metadata.student_id or fee.student_id,
            student_name=metadata.student_name or fee.student_name,
            amount=amount,
            payment_date=charge.paid_at or utcnow(),
            reference=reference,
            details=details,
        )
        db.add(
            FeeAuditLog(
                reference_table="fees",
                reference_id=fee_id,
                action_type="UPDATE",
                old_value=old_value,
                new_value={
                    "amount_paid": str(new_amount_paid),
                    "balance": str(new_balance),
                    "status": new_status.value,
                    "payment_id": str(payment.id),
                    "transaction_reference": reference,
                },
                changed_by=WEBHOOK_ACTOR,
            )
        )
        if coupon_code and metadata.discount_applied:
            await coupon_service.record_coupon_usage(
                db,
                coupon_code,
                user_id=metadata.student_id or fee.student_id,
                fee_id=fee_id,
                transaction_reference=reference,
                discount_amount=discount_amount or Decimal("0"),
            )
        await db.commit()
    except IntegrityError:
        # A concurrent delivery inserted the same reference between our check and insert.
        await db.rollback()
        if await _payment_exists(db, reference):
            logger.info("Charge %s recorded concurrently; treating as duplicate", reference)
            return EventOutcome.DUPLICATE
        raise

    logger.info(
        "Successfully processed payment %s for fee %s: paid=%s balance=%s status=%s",
        reference,
        fee_id,
        new_amount_paid,
        new_balance,
        new_status.value,
    )
    return EventOutcome.APPLIED


def _log_retry(retry_state) -> None:
    logger.warning(
        "Fee update conflict (attempt %d): %r; retrying",
        retry_state.attempt_number,
        retry_state.outcome.exception(),
    )


async def reconcile_charge(db: AsyncSession, data: Dict[str, Any]) -> EventOutcome:
    """
    Apply a ``charge.success`` payload to its fee. Permanently unusable payloads
    (bad shape, no fee id, unknown fee) are logged and acknowledged so Paystack stops
    retrying. Raises TransientServiceError when write conflicts outlast the retry limit.
    """
    try:
        charge = ChargeData.model_validate(data)
    except ValidationError as e:
        logger.error("Malformed charge.success payload (%d errors); ignoring", e.error_count())
        return EventOutcome.INVALID_PAYLOAD

    if charge.metadata is None or not charge.metadata.fee_id:
        logger.error("Missing fee_id in payment metadata (reference=%s)", charge.reference)
        return EventOutcome.MISSING_FEE_ID
    try:
        fee_id = UUID(str(charge.metadata.fee_id))
    except ValueError:
        logger.error("Fee record with ID %s not found (reference=%s)", charge.metadata.fee_id, charge.reference)
        return EventOutcome.FEE_NOT_FOUND

    try:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(max(1, settings.reconcile_max_attempts)),
            wait=wait_exponential(multiplier=0.05, max=1),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            before_sleep=_log_retry,
            reraise=True,
        ):
            with attempt:
                try:
                    return await _apply_charge(db, charge, fee_id)
                except RETRYABLE_ERRORS:
                    await db.rollback()
                    raise
    except RETRYABLE_ERRORS as e:
        logger.error(
            "Giving up on charge %s for fee %s after %d attempts: %r",
            charge.reference,
            fee_id,
            settings.reconcile_max_attempts,
            e,
        )
        raise TransientServiceError("Temporarily unable to apply payment") from e


async def handle_transfer_success(db: AsyncSession, data: Dict[str, Any]) -> EventOutcome:
    # Refund/transfer bookkeeping is not modelled yet; keep a trace for reconciliation by hand.
    logger.info(
        "Successful transfer: reference=%s amount=%s",
        data.get("reference"),
        data.get("amount"),
    )
    return EventOutcome.TRANSFER_LOGGED


_EVENT_HANDLERS = {
    PaystackEventType.CHARGE_SUCCESS: reconcile_charge,
    PaystackEventType.TRANSFER_SUCCESS: handle_transfer_success,
}


async def dispatch_event(db: AsyncSession, event: WebhookEvent) -> EventOutcome:
    try:
        kind = PaystackEventType(event.event)
    except ValueError:
        logger.info("Unhandled Paystack event: %s", event.event)
        return EventOutcome.UNHANDLED
    return await _EVENT_HANDLERS[kind](db, event.data)


# --- Transaction verification ---
async def verify_transaction(client: PaystackClient, reference: str) -> Tuple[int, Dict[str, Any]]:
    """Forward to Paystack's verify API. Returns (provider status code, provider JSON body)."""
    if not is_valid_reference(reference):
        raise ServiceError("Invalid transaction reference", status.HTTP_400_BAD_REQUEST)
    try:
        response = await client.verify_transaction(reference)
    except httpx.TimeoutException:
        logger.warning("Paystack verify timed out for reference %s", reference)
        raise ServiceError("Payment provider timed out", status.HTTP_504_GATEWAY_TIMEOUT)
    except httpx.HTTPError as e:
        logger.error("Error verifying Paystack transaction %s: %r", reference, e)
        raise ServiceError("Payment provider unavailable", status.HTTP_502_BAD_GATEWAY)
    if not response.is_success:
        logger.warning("Paystack verify failed for reference %s with status %s", reference, response.status_code)
    return response.status_code, response_json(response)


# --- Checkout ---
async def prepare_checkout(
    db: AsyncSession,
    payload: CheckoutRequest,
    current_user: CurrentUser,
) -> CheckoutResponse:
    """Everything the client-side Paystack widget needs, with the coupon already applied."""
    fee = await _load_fee(db, payload.fee_id)
    if not fee:
        raise ServiceError("Fee record not found", status.HTTP_404_NOT_FOUND)
    if current_user.role == UserRole.STUDENT and fee.student_id != current_user.id:
        raise ServiceError("Insufficient permissions", status.HTTP_403_FORBIDDEN)

    balance = to_decimal(fee.balance)
    if fee.status == FeeStatus.paid.value or balance <= 0:
        raise ServiceError("This fee has already been paid", status.HTTP_400_BAD_REQUEST)
    amount = payload.amount if payload.amount is not None else balance
    if amount > balance:
        raise ServiceError("Payment amount cannot exceed the balance", status.HTTP_400_BAD_REQUEST)

    discount = Decimal("0")
    coupon_code = None
    if payload.coupon_code and payload.coupon_code.strip():
        result = await coupon_service.validate_coupon(db, payload.coupon_code, amount)
        if not result.valid:
            raise ServiceError(result.message, status.HTTP_400_BAD_REQUEST)
        discount = to_decimal(result.discount_amount).quantize(Decimal("0.01"))
        coupon_code = result.coupon.code

    payable = amount - discount
    if payable <= 0:
        raise ServiceError(
            "Coupon covers the full amount; no online payment is required",
            status.HTTP_400_BAD_REQUEST,
        )

    return CheckoutResponse(
        reference=generate_reference(),
        email=payload.email,
        amount=amount,
        discount_amount=discount,
        payable_amount=payable,
        amount_minor=to_minor_unit(payable),
        currency=settings.currency_code,
        public_key=settings.paystack_public_key,
        metadata=CheckoutMetadata(
            fee_id=str(fee.id),
            student_id=fee.student_id,
            student_name=fee.student_name,
            discount_applied=coupon_code is not None,
            discount_amount=discount,
            coupon_code=coupon_code,
        ),
    )
