"""MamoPay webhook endpoint: receives payment events."""

import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from digitalsite.api.deps import get_db, get_gateway, get_mailer, get_settings
from digitalsite.billing.gateway import MamoPayClient
from digitalsite.billing.webhooks import PING, process_payment_webhook
from digitalsite.config import Settings
from digitalsite.errors import ValidationError
from digitalsite.notifications.mailer import Mailer
from digitalsite.schemas.webhook import WebhookResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/webhooks", tags=["webhooks"])


async def _read_payload(request: Request) -> Any:
    """Decode the body as JSON, accepting a bare ``ping`` text body too."""
    body = await request.body()
    try:
        return json.loads(body)
    except ValueError:
        if body.strip() == PING.encode():
            return PING
        logger.warning("Webhook body is not valid JSON")
        raise ValidationError("Webhook body must be valid JSON") from None


@router.post(
    "/mamopay",
    response_model=WebhookResponse,
    response_model_exclude_none=True,
    summary="Receive a MamoPay payment event",
)
async def mamopay_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
    gateway: MamoPayClient = Depends(get_gateway),
    settings: Settings = Depends(get_settings),
) -> WebhookResponse:
    """Provision accounts and add-ons from MamoPay ``charge.succeeded`` events.

    Duplicates, uncaptured charges and unsupported events are acknowledged
    with ``ignored: true`` so the sender stops retrying them. Charges on a
    known subscription renew it.
    """
    payload = await _read_payload(request)
    return await process_payment_webhook(db, payload, mailer=mailer, gateway=gateway, settings=settings)
