"""Paystack router: webhook, transaction verification, checkout preparation."""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.auth.schemas import CurrentUser
from app.core.config import settings
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .client import PaystackClient, get_paystack_client
from .schemas import CheckoutRequest, CheckoutResponse, WebhookAck, WebhookEvent
from .signature import verify_signature
from . import service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/paystack", tags=["paystack"])


@router.post(
    "/webhook",
    response_model=WebhookAck,
)
async def paystack_webhook(
    request: Request,
    x_paystack_signature: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> WebhookAck:
    # Hash the body exactly as received, before any JSON parsing.
    body = await request.body()
    if not verify_signature(body, x_paystack_signature, settings.paystack_secret_key):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid signature")

    try:
        event = WebhookEvent.model_validate_json(body)
    except ValidationError:
        logger.warning("Authenticated Paystack webhook with an unparseable body")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid payload")

    try:
        outcome = await service.dispatch_event(db, event)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except SQLAlchemyError:
        logger.exception(
            "Error processing Paystack webhook event=%s reference=%s",
            event.event,
            event.data.get("reference"),
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        )

    logger.info(
        "Paystack webhook event=%s reference=%s outcome=%s",
        event.event,
        event.data.get("reference"),
        outcome.value,
    )
    return WebhookAck(received=True)


@router.get(
    "/verify/{reference}",
    dependencies=[Depends(get_current_user)],
)
async def verify_transaction(
    reference: str,
    client: PaystackClient = Depends(get_paystack_client),
) -> Dict[str, Any]:
    try:
        status_code, body = await service.verify_transaction(client, reference)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    if status_code >= 400:
        return JSONResponse(
            {"error": "Failed to verify transaction", "details": body},
            status_code=status_code,
        )
    return body


@router.post(
    "/checkout",
    response_model=CheckoutResponse,
)
async def prepare_checkout(
    payload: CheckoutRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> CheckoutResponse:
    try:
        return await service.prepare_checkout(db, payload, current_user)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
