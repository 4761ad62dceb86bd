"""Paystack helpers: references, currency units, provider fees and statuses."""

import re
import secrets
import string
import time
from decimal import ROUND_HALF_UP, Decimal

from app.core.enums import PaymentStatus
from app.core.utils import currency_symbol, to_decimal

# Paystack amounts are in the smallest currency unit (kobo for NGN).
MINOR_UNIT_DIVISOR = Decimal("100")

PROVIDER_FEE_RATE = Decimal("0.015")
PROVIDER_FEE_CAP = Decimal("2000")

REFERENCE_PATTERN = re.compile(r"^[A-Za-z0-9_-]{5,50}$")


def generate_reference(prefix: str = "SKL") -> str:
    """e.g. ``SKL_1697712345678_X7Q2ZP``."""
    timestamp = str(int(time.time() * 1000))
    alphabet = string.ascii_uppercase + string.digits
    random_part = "".join(secrets.choice(alphabet) for _ in range(6))
    return f"{prefix}_{timestamp}_{random_part}"


def is_valid_reference(reference: str) -> bool:
    return bool(reference) and REFERENCE_PATTERN.match(reference) is not None


def to_major_unit(amount_minor: int) -> Decimal:
    return Decimal(int(amount_minor)) / MINOR_UNIT_DIVISOR


def to_minor_unit(amount) -> int:
    return int((to_decimal(amount) * MINOR_UNIT_DIVISOR).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_currency(amount_minor: int, currency_code: str = "NGN") -> str:
    return f"{currency_symbol(currency_code)}{to_major_unit(amount_minor):,.2f}"


def calculate_provider_fee(amount) -> Decimal:
    """Paystack's local card fee: 1.5% of the amount, capped at 2,000 (major unit)."""
    return min(to_decimal(amount) * PROVIDER_FEE_RATE, PROVIDER_FEE_CAP)


def map_provider_status(provider_status: str) -> PaymentStatus:
    status = (provider_status or "").lower()
    if status == "success":
        return PaymentStatus.completed
    if status in ("failed", "abandoned"):
        return PaymentStatus.failed
    return PaymentStatus.pending
