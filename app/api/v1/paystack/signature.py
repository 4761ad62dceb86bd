"""Webhook signature check: HMAC-SHA512 of the raw request body, keyed with the Paystack secret."""

import hashlib
import hmac
import logging
from typing import Optional

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-paystack-signature"


def sign_payload(raw_body: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha512).hexdigest()


def verify_signature(raw_body: bytes, signature: Optional[str], secret: Optional[str]) -> bool:
    """
    True only if ``signature`` is the hex HMAC of exactly these bytes.
    The body must be hashed as received; re-serialised JSON will not match.
    Never raises: a missing header or secret is simply "not authentic".
    """
    if not signature or not secret:
        if not secret:
            logger.error("Webhook secret is not configured; rejecting delivery")
        return False
    expected = sign_payload(raw_body, secret)
    return hmac.compare_digest(expected.encode("ascii"), signature.strip().lower().encode("utf-8"))
