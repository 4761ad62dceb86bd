from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    TEACHER = "teacher"
    PARENT = "parent"
    STUDENT = "student"


class FeeStatus(str, Enum):
    unpaid = "unpaid"
    partial = "partial"
    paid = "paid"


class PaymentStatus(str, Enum):
    completed = "completed"
    pending = "pending"
    failed = "failed"


class PaymentMethod(str, Enum):
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    CHEQUE = "cheque"
    PAYSTACK = "paystack"


class DiscountType(str, Enum):
    percentage = "percentage"
    fixed = "fixed"
    free = "free"


class PaystackEventType(str, Enum):
    """Webhook event kinds this backend acts on. Anything else is acknowledged and ignored."""

    CHARGE_SUCCESS = "charge.success"
    TRANSFER_SUCCESS = "transfer.success"
