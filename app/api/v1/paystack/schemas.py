"""Paystack webhook, verify and checkout schemas."""

import json
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator


# --- Webhook ---
class WebhookEvent(BaseModel):
    """Envelope of every webhook delivery; ``data`` is parsed per event type."""

    event: str
    data: Dict[str, Any] = Field(default_factory=dict)


class ChargeCustomer(BaseModel):
    email: Optional[str] = None


class ChargeMetadata(BaseModel):
    """Metadata attached at checkout and echoed back by Paystack on the charge."""

    fee_id: Optional[str] = None
    student_id: Optional[str] = None
    student_name: Optional[str] = None
    discount_applied: Optional[bool] = None
    discount_amount: Optional[Decimal] = None
    coupon_code: Optional[str] = None


class ChargeData(BaseModel):
    reference: str = Field(..., min_length=1, max_length=100)
    amount: int = Field(..., gt=0, description="Smallest currency unit (kobo)")
    paid_at: Optional[datetime] = None
    customer: Optional[ChargeCustomer] = None
    metadata: Optional[ChargeMetadata] = None

    @field_validator("metadata", mode="before")
    @classmethod
    def _coerce_metadata(cls, value: Any) -> Any:
        # Paystack sends "" when no metadata was set, and sometimes a JSON string.
        if isinstance(value, str):
            try:
                value = json.loads(value) if value.strip() else None
            except ValueError:
                return None
        return value if isinstance(value, dict) else None


class WebhookAck(BaseModel):
    received: bool = True


# --- Checkout ---
class CheckoutRequest(BaseModel):
    fee_id: UUID
    email: EmailStr
    amount: Optional[Decimal] = Field(None, gt=0, description="Major unit; defaults to the outstanding balance")
    coupon_code: Optional[str] = Field(None, max_length=50)


class CheckoutMetadata(BaseModel):
    fee_id: str
    student_id: str
    student_name: str
    discount_applied: bool
    discount_amount: Decimal
    coupon_code: Optional[str] = None


class CheckoutResponse(BaseModel):
    reference: str
    email: str
    amount: Decimal
    discount_amount: Decimal
    payable_amount: Decimal
    amount_minor: int
    currency: str
    public_key: Optional[str] = None
    metadata: CheckoutMetadata
