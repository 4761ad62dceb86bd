"""Payment: append-only record of one successful provider transaction."""

import uuid

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Numeric, String, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from app.core.enums import PaymentStatus
from app.core.utils import utcnow
from app.db.session import Base


class Payment(Base):
    """One row per processed transaction reference. Never updated or deleted."""

    __tablename__ = "payments"
    __table_args__ = (
        UniqueConstraint("transaction_reference", name="uq_payment_transaction_reference"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    fee_id = Column(Uuid(as_uuid=True), ForeignKey("fees.id", ondelete="RESTRICT"), nullable=False, index=True)
    student_id = Column(String(128), nullable=True, index=True)
    student_name = Column(String(255), nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)  # major currency unit
    payment_method = Column(String(30), nullable=False)  # cash, bank_transfer, cheque, paystack
    payment_date = Column(DateTime(timezone=True), nullable=False)
    transaction_reference = Column(String(100), nullable=False)
    status = Column(String(20), nullable=False, default=PaymentStatus.completed.value)
    # "metadata" is reserved on declarative classes
    details = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    fee = relationship("Fee", backref="payments")
