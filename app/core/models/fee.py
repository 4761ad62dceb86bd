"""Fee: one billing obligation per student per term. Mutated only by payment reconciliation."""

import uuid

from sqlalchemy import CheckConstraint, Column, Date, DateTime, Integer, Numeric, String, Text, Uuid

from app.core.enums import FeeStatus
from app.core.utils import utcnow
from app.db.session import Base


class Fee(Base):
    """
    Ledger row for a student's fee.
    amount_paid + balance == total_amount; status is paid iff balance <= 0.
    version is bumped on every write; updates are compare-and-set on it.
    """

    __tablename__ = "fees"
    __table_args__ = (
        CheckConstraint(
            "status IN ('unpaid','partial','paid')",
            name="chk_fee_status",
        ),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(String(128), nullable=False, index=True)
    student_name = Column(String(255), nullable=False)
    class_name = Column(String(100), nullable=True)
    fee_type = Column(String(100), nullable=False)
    term = Column(String(30), nullable=True)  # 1st Term, 2nd Term, 3rd Term
    academic_year = Column(String(20), nullable=True)  # e.g. 2023/2024
    description = Column(Text, nullable=True)
    due_date = Column(Date, nullable=True)

    total_amount = Column(Numeric(12, 2), nullable=False)
    amount_paid = Column(Numeric(12, 2), nullable=False, default=0)
    balance = Column(Numeric(12, 2), nullable=False)
    status = Column(String(20), nullable=False, default=FeeStatus.unpaid.value)

    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    __mapper_args__ = {"version_id_col": version}
