"""MamoPay webhook ingestion: filter, validate, deduplicate, dispatch."""

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from digitalsite.billing.gateway import MamoPayClient
from digitalsite.config import Settings
from digitalsite.errors import ValidationError
from digitalsite.models.enums import PaymentType
from digitalsite.notifications.mailer import Mailer
from digitalsite.schemas.webhook import CAPTURED, CHARGE_SUCCEEDED, PaymentEvent, WebhookResponse
from digitalsite.services.subscription_service import (
    duplicate_payment_response,
    get_payment_by_transaction_id,
    get_subscription_by_external_id,
    provision_subscription,
    purchase_addon,
    renew_subscription,
)

logger = logging.getLogger(__name__)

PING = "ping"


def _first_error_message(error: PydanticValidationError) -> str:
    first = error.errors()[0]
    path = ".".join(str(part) for part in first["loc"])
    return f"{path}: {first['msg']}" if path else first["msg"]


def parse_payment_event(payload: dict[str, Any]) -> PaymentEvent:
    """Validate a ``charge.succeeded`` payload into a typed event.

    Raises:
        ValidationError: Carrying the first violated field and its message.
    """
    try:
        return PaymentEvent.model_validate(payload)
    except PydanticValidationError as e:
        errors = e.errors(include_url=False, include_context=False, include_input=False)
        raise ValidationError(_first_error_message(e), details={"errors": errors}) from None


async def process_payment_webhook(
    db: AsyncSession,
    payload: Any,
    *,
    mailer: Mailer,
    gateway: MamoPayClient,
    settings: Settings,
) -> WebhookResponse:
    """Handle one webhook delivery.

    Pings, unsupported event types, charges that were not captured and
    already processed transactions are acknowledged with ``ignored=True``
    and touch nothing. A charge on a known MamoPay subscription is a
    renewal; anything else is a first purchase.

    Raises:
        ValidationError: If the payload is not an object or fails validation.
        BusinessRuleViolation: If a plan purchase arrives for an existing
            email, an add-on purchase for an unknown or unverified user, or
            a renewal that does not match its subscription.
    """
    if payload == PING:
        return WebhookResponse(ignored=True, message="pong")

    if not isinstance(payload, dict):
        raise ValidationError("Webhook payload must be a JSON object")

    event_type = payload.get("event_type")
    if event_type != CHARGE_SUCCEEDED:
        logger.info("Ignoring unsupported webhook event type %r", event_type)
        return WebhookResponse(ignored=True, message="Event type not supported")

    status = payload.get("status")
    if status != CAPTURED:
        logger.info("Ignoring %s with status %r", event_type, status)
        return WebhookResponse(ignored=True, message=f"Status not captured: {status}")

    event = parse_payment_event(payload)

    if await get_payment_by_transaction_id(db, event.id) is not None:
        logger.info("Transaction %s already processed, ignoring", event.id)
        return duplicate_payment_response()

    if event.subscription_id is not None:
        existing = await get_subscription_by_external_id(db, event.subscription_id)
        if existing is not None:
            logger.info("Renewal charge %s on subscription %s", event.id, event.subscription_id)
            return await renew_subscription(db, event, existing, raw_data=payload, mailer=mailer, gateway=gateway)

    logger.info(
        "Processing %s for %s (transaction %s, %s %s)",
        event.details.payment_type.value,
        event.details.email,
        event.id,
        event.amount,
        event.amount_currency,
    )
    if event.details.payment_type == PaymentType.ADDON_PURCHASE:
        return await purchase_addon(db, event, raw_data=payload, mailer=mailer, gateway=gateway)
    return await provision_subscription(
        db, event, raw_data=payload, mailer=mailer, gateway=gateway, settings=settings
    )
