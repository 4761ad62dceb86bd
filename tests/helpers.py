import json
from typing import Dict, Optional

from app.api.v1.paystack.signature import sign_payload
from app.auth.security import create_access_token
from app.core.config import settings


def auth_headers(user_id: str, role: str) -> Dict[str, str]:
    token = create_access_token(subject={"sub": user_id, "role": role, "email": f"{user_id}@example.com"})
    return {"Authorization": f"Bearer {token}"}


def charge_event(
    fee_id,
    reference: str = "SKL_1700000000000_ABC123",
    amount: int = 600000,
    **metadata,
) -> Dict:
    return {
        "event": "charge.success",
        "data": {
            "reference": reference,
            "amount": amount,
            "paid_at": "2024-01-15T10:30:00.000Z",
            "customer": {"email": "parent@example.com"},
            "metadata": {
                "fee_id": str(fee_id) if fee_id is not None else None,
                "student_id": "student-1",
                "student_name": "Ada Obi",
                **metadata,
            },
        },
    }


def signed_request(payload, secret: Optional[str] = None):
    """(body bytes, headers) for a webhook delivery signed the way Paystack signs it."""
    body = payload if isinstance(payload, bytes) else json.dumps(payload).encode("utf-8")
    signature = sign_payload(body, secret or settings.paystack_secret_key)
    return body, {"x-paystack-signature": signature, "content-type": "application/json"}
