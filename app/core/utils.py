from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_uuid(val):
    if val is None:
        return None
    return val if isinstance(val, UUID) else UUID(str(val))


def to_decimal(val) -> Decimal:
    if val is None:
        return Decimal("0")
    return val if isinstance(val, Decimal) else Decimal(str(val))


CURRENCY_SYMBOLS = {
    "NGN": "₦",
    "USD": "$",
    "GBP": "£",
    "EUR": "€",
    "GHS": "GH₵",
    "ZAR": "R",
    "KES": "KSh",
}


def currency_symbol(currency_code: str) -> str:
    """Display prefix for an amount; unknown codes fall back to ``"XYZ "``."""
    return CURRENCY_SYMBOLS.get(currency_code, f"{currency_code} ")
