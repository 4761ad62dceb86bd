"""Fee audit log: immutable financial change tracking for audit safety."""

import uuid

from sqlalchemy import JSON, Column, DateTime, String, Uuid

from app.core.utils import utcnow
from app.db.session import Base


class FeeAuditLog(Base):
    """Immutable audit trail for fee-related financial changes."""

    __tablename__ = "fee_audit_logs"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    reference_table = Column(String(50), nullable=False)
    reference_id = Column(Uuid(as_uuid=True), nullable=False)
    action_type = Column(String(30), nullable=False)  # CREATE, UPDATE, DELETE
    old_value = Column(JSON, nullable=True)
    new_value = Column(JSON, nullable=True)
    changed_by = Column(String(128), nullable=True)  # user id, or "paystack" for webhook writes
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
