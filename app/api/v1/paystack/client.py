"""Thin async client for the Paystack REST API."""

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx
from fastapi import HTTPException, Request, status

from app.core.config import settings

logger = logging.getLogger(__name__)


class PaystackClient:
    """Wraps one shared ``httpx.AsyncClient``; created at startup and closed at shutdown."""

    def __init__(
        self,
        secret_key: Optional[str],
        base_url: str = "https://api.paystack.co",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._http = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {secret_key or ''}",
                "Content-Type": "application/json",
                "Cache-Control": "no-store",
            },
        )

    async def verify_transaction(self, reference: str) -> httpx.Response:
        """GET /transaction/verify/{reference}. Raises httpx.TimeoutException / httpx.HTTPError on transport failure."""
        return await self._http.get(f"/transaction/verify/{quote(reference, safe='')}")

    async def aclose(self) -> None:
        await self._http.aclose()


def build_paystack_client(transport: Optional[httpx.AsyncBaseTransport] = None) -> PaystackClient:
    return PaystackClient(
        secret_key=settings.paystack_secret_key,
        base_url=settings.paystack_base_url,
        timeout=settings.paystack_timeout_seconds,
        transport=transport,
    )


def get_paystack_client(request: Request) -> PaystackClient:
    """FastAPI dependency: the client opened and closed by the app lifespan."""
    client = getattr(request.app.state, "paystack_client", None)
    if client is None:
        logger.error("Paystack client requested before application startup")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Payment provider unavailable",
        )
    return client


def response_json(response: httpx.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        logger.warning("Paystack returned a non-JSON body (status %s)", response.status_code)
        return {"message": response.text[:500]}
    return body if isinstance(body, dict) else {"data": body}
