"""Fees schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.core.enums import FeeStatus


class FeeCreate(BaseModel):
    student_id: str = Field(..., min_length=1, max_length=128)
    student_name: str = Field(..., min_length=1, max_length=255)
    class_name: Optional[str] = Field(None, max_length=100)
    fee_type: str = Field(..., min_length=1, max_length=100)
    term: Optional[str] = Field(None, description="1st Term, 2nd Term, 3rd Term")
    academic_year: Optional[str] = Field(None, max_length=20)
    description: Optional[str] = None
    due_date: Optional[date] = None
    total_amount: Decimal = Field(..., gt=0)


class FeeResponse(BaseModel):
    id: UUID
    student_id: str
    student_name: str
    class_name: Optional[str] = None
    fee_type: str
    term: Optional[str] = None
    academic_year: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[date] = None
    total_amount: Decimal
    amount_paid: Decimal
    balance: Decimal
    status: FeeStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PaymentResponse(BaseModel):
    id: UUID
    fee_id: UUID
    student_id: Optional[str] = None
    student_name: Optional[str] = None
    amount: Decimal
    payment_method: str
    payment_date: datetime
    transaction_reference: str
    status: str
    metadata: Optional[Dict[str, Any]] = None
    created_at: datetime
