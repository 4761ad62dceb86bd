"""Coupon and coupon usage. Usage rows snapshot the code so later coupon edits never rewrite history."""

import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)

from app.core.utils import utcnow
from app.db.session import Base


class Coupon(Base):
    __tablename__ = "coupons"
    __table_args__ = (
        UniqueConstraint("code", name="uq_coupon_code"),
        CheckConstraint("used_count <= max_uses", name="chk_coupon_usage_limit"),
        CheckConstraint(
            "discount_type IN ('percentage','fixed','free')",
            name="chk_coupon_discount_type",
        ),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    code = Column(String(20), nullable=False)  # stored uppercase
    description = Column(Text, nullable=True)
    discount_type = Column(String(20), nullable=False)
    discount_value = Column(Numeric(12, 2), nullable=False, default=0)
    max_uses = Column(Integer, nullable=False)
    used_count = Column(Integer, nullable=False, default=0)
    expiry_date = Column(Date, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class CouponUsage(Base):
    """Coupon applied to a completed payment. One row per transaction reference."""

    __tablename__ = "coupon_usages"
    __table_args__ = (
        UniqueConstraint("transaction_reference", name="uq_coupon_usage_transaction_reference"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    coupon_id = Column(Uuid(as_uuid=True), ForeignKey("coupons.id", ondelete="SET NULL"), nullable=True, index=True)
    coupon_code = Column(String(20), nullable=False)
    user_id = Column(String(128), nullable=True)
    fee_id = Column(Uuid(as_uuid=True), ForeignKey("fees.id", ondelete="RESTRICT"), nullable=False)
    transaction_reference = Column(String(100), nullable=False)
    discount_amount = Column(Numeric(12, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
