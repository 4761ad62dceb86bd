from app.core.models.fee import Fee
from app.core.models.payment import Payment
from app.core.models.coupon import Coupon, CouponUsage
from app.core.models.fee_audit_log import FeeAuditLog

__all__ = [
    "Fee",
    "Payment",
    "Coupon",
    "CouponUsage",
    "FeeAuditLog",
]
