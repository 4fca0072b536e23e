"""Subscription ledger: payment, subscription and add-on rows per charge."""

import logging
import uuid
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from digitalsite.billing.gateway import MamoPayClient
from digitalsite.billing.intervals import map_frequency_to_interval_unit, parse_created_date, resolve_end_date
from digitalsite.billing.plans import get_plan
from digitalsite.config import Settings
from digitalsite.database import transaction
from digitalsite.errors import BusinessRuleViolation
from digitalsite.models.addon import AddOn
from digitalsite.models.enums import AddOnStatus, ItemType, PaymentType, SubscriptionStatus
from digitalsite.models.payment import Payment
from digitalsite.models.subscription import Subscription
from digitalsite.models.user import User
from digitalsite.notifications.mailer import Mailer
from digitalsite.notifications.templates import format_date, render, subscription_display_name
from digitalsite.schemas.webhook import PaymentEvent, WebhookResponse
from digitalsite.services.account_service import build_account, get_user_by_email
from digitalsite.services.affiliate_service import credit_affiliate_commission, find_affiliate_link
from digitalsite.services.side_effects import best_effort

logger = logging.getLogger(__name__)

DUPLICATE_PAYMENT_MESSAGE = "Payment already processed"
ADDON_PROCESSING_FEE = Decimal("1.02")


async def get_payment_by_transaction_id(db: AsyncSession, transaction_id: str) -> Payment | None:
    """Look up a payment by its MamoPay transaction id (the idempotency key)."""
    result = await db.execute(select(Payment).where(Payment.transaction_id == transaction_id))
    return result.scalar_one_or_none()


async def get_subscription_by_external_id(db: AsyncSession, subscription_id: str) -> Subscription | None:
    """Look up a subscription by its MamoPay subscription id."""
    result = await db.execute(select(Subscription).where(Subscription.subscription_id == subscription_id))
    return result.scalar_one_or_none()


def duplicate_payment_response() -> WebhookResponse:
    return WebhookResponse(ignored=True, message=DUPLICATE_PAYMENT_MESSAGE)


async def _resolve_integrity_error(db: AsyncSession, event: PaymentEvent, error: IntegrityError) -> WebhookResponse:
    """Classify a unique violation raised while inserting a charge's rows.

    A concurrent delivery of the same charge wins the insert race and makes
    this one a duplicate. A concurrent signup with the same email, or a
    subscription id already on file, is a business rule violation. Anything
    else is re-raised.
    """
    if await get_payment_by_transaction_id(db, event.id) is not None:
        logger.info("Transaction %s was committed concurrently, treating as duplicate", event.id)
        return duplicate_payment_response()
    email = str(event.details.email).lower()
    if event.details.payment_type == PaymentType.PLAN_PURCHASE and await get_user_by_email(db, email):
        raise BusinessRuleViolation(f"User with email {email} already exists", details={"email": email}) from error
    if event.subscription_id and await get_subscription_by_external_id(db, event.subscription_id):
        raise BusinessRuleViolation(
            f"Subscription {event.subscription_id} already exists",
            details={"subscription_id": event.subscription_id},
        ) from error
    raise error


def _addon_unit_price(amount: Decimal) -> Decimal:
    """Strip the 2% processing fee from a charged add-on amount."""
    return (amount / ADDON_PROCESSING_FEE).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


async def store_subscriber_id(
    db: AsyncSession,
    gateway: MamoPayClient,
    subscription_pk: uuid.UUID,
    subscription_id: str,
) -> str | None:
    """Fetch the MamoPay subscriber id for a subscription and save it.

    Raises:
        ExternalServiceError: If the MamoPay lookup fails.
    """
    subscriber_id = await gateway.get_subscriber_id(subscription_id)
    if subscriber_id is None:
        return None
    async with transaction(db):
        await db.execute(
            update(Subscription).where(Subscription.id == subscription_pk).values(subscriber_id=subscriber_id)
        )
    logger.info("Stored MamoPay subscriber %s for subscription %s", subscriber_id, subscription_id)
    return subscriber_id


async def _sync_subscriber_id(
    db: AsyncSession,
    gateway: MamoPayClient,
    event: PaymentEvent,
    subscription_pk: uuid.UUID,
) -> None:
    # Synthetic ids (no MamoPay subscription_id on the charge) have no subscribers
    if event.subscription_id is None:
        return
    await best_effort(
        f"MamoPay subscriber lookup for {event.subscription_id}",
        store_subscriber_id(db, gateway, subscription_pk, event.subscription_id),
    )


async def provision_subscription(
    db: AsyncSession,
    event: PaymentEvent,
    *,
    raw_data: dict[str, Any],
    mailer: Mailer,
    gateway: MamoPayClient,
    settings: Settings,
) -> WebhookResponse:
    """Create the user, payment and subscription for a first plan purchase.

    The three rows are committed together or not at all. The subscriber id
    lookup, affiliate credit and verification email run after the commit
    and cannot undo it.
    """
    details = event.details

    # Attribution is resolved up front; the counter itself is bumped after commit
    link = await find_affiliate_link(db, event.affiliate_link)
    commission = event.affiliate_link.affiliate_amount if link is not None else Decimal("0")

    user, temporary_password = await build_account(
        db, event, affiliate_link_id=link.id if link else None, settings=settings
    )
    starts_at = parse_created_date(event.created_date)
    ends_at = resolve_end_date(starts_at, details.frequency, details.frequency_interval)

    try:
        async with transaction(db):
            db.add(user)
            await db.flush()

            payment = Payment(
                transaction_id=event.id,
                amount=event.amount,
                currency=event.amount_currency,
                status=event.status,
                payment_type=PaymentType.PLAN_PURCHASE,
                item_type=details.plan_type.value,
                buyer_id=user.id,
                affiliate_link_id=link.id if link else None,
                affiliate_commission=commission,
                raw_data=raw_data,
            )
            subscription = Subscription(
                user_id=user.id,
                subscription_id=event.subscription_id or f"SUB_{event.id}",
                starts_at=starts_at,
                ends_at=ends_at,
                status=SubscriptionStatus.ACTIVE,
                interval_unit=map_frequency_to_interval_unit(details.frequency),
                interval_count=details.frequency_interval,
                item_type=ItemType.PLAN,
                subscription_type=details.plan_type,
                raw_data=raw_data,
            )
            db.add_all([payment, subscription])
            await db.flush()
    except IntegrityError as e:
        return await _resolve_integrity_error(db, event, e)

    logger.info(
        "Provisioned user %s with subscription %s (transaction %s)",
        user.id,
        subscription.subscription_id,
        event.id,
    )

    # Captured before any side effect can roll the session back
    response = WebhookResponse(user_id=user.id, subscription_id=subscription.id, payment_id=payment.id)
    recipient = user.email
    content = render(
        "account_verification",
        first_name=user.first_name,
        plan_name=get_plan(details.plan_type).display_name,
        username=user.username,
        temporary_password=temporary_password,
        verification_url=f"{settings.frontend_url.rstrip('/')}/verify-email?token={user.verification_token}",
    )

    await _sync_subscriber_id(db, gateway, event, response.subscription_id)

    if link is not None and commission > 0:
        await best_effort(
            f"affiliate commission for link {link.id}",
            credit_affiliate_commission(db, link.id, commission, currency=event.amount_currency, mailer=mailer),
        )

    email_sent = await best_effort(f"verification email to {recipient}", mailer.send(recipient, content))

    response.message = "Subscription created successfully"
    if not email_sent:
        response.message += ", but verification email failed to send"
    return response


async def purchase_addon(
    db: AsyncSession,
    event: PaymentEvent,
    *,
    raw_data: dict[str, Any],
    mailer: Mailer,
    gateway: MamoPayClient,
) -> WebhookResponse:
    """Record an add-on bought by an existing, verified user.

    Raises:
        BusinessRuleViolation: If the buyer has no account or is unverified.
    """
    details = event.details
    email = str(details.email).lower()

    user: User | None = await get_user_by_email(db, email)
    if user is None:
        raise BusinessRuleViolation(f"User with email {email} not found for add-on purchase", details={"email": email})
    if not user.verified:
        raise BusinessRuleViolation(f"User with email {email} is not verified", details={"email": email})

    starts_at = parse_created_date(event.created_date)
    ends_at = resolve_end_date(starts_at, details.frequency, details.frequency_interval)
    interval_unit = map_frequency_to_interval_unit(details.frequency)

    try:
        async with transaction(db):
            addon = AddOn(
                user_id=user.id,
                type=details.addon_type,
                quantity=1,
                price_per_unit=_addon_unit_price(event.amount),
                status=AddOnStatus.ACTIVE,
                billing_cycle=interval_unit,
                start_date=starts_at,
                end_date=ends_at,
            )
            db.add(addon)
            await db.flush()

            payment = Payment(
                transaction_id=event.id,
                amount=event.amount,
                currency=event.amount_currency,
                status=event.status,
                payment_type=PaymentType.ADDON_PURCHASE,
                item_type=details.addon_type.value,
                buyer_id=user.id,
                addon_id=addon.id,
                raw_data=raw_data,
            )
            subscription = Subscription(
                user_id=user.id,
                subscription_id=event.subscription_id or f"SUB-ADDON-{event.id}",
                starts_at=starts_at,
                ends_at=ends_at,
                status=SubscriptionStatus.ACTIVE,
                interval_unit=interval_unit,
                interval_count=details.frequency_interval,
                item_type=ItemType.ADDON,
                addon_type=details.addon_type,
                raw_data=raw_data,
            )
            db.add_all([payment, subscription])
            await db.flush()
    except IntegrityError as e:
        return await _resolve_integrity_error(db, event, e)

    logger.info("Activated add-on %s (%s) for user %s", addon.id, addon.type.value, user.id)

    response = WebhookResponse(
        user_id=user.id,
        subscription_id=subscription.id,
        payment_id=payment.id,
        addon_id=addon.id,
    )
    recipient = user.email
    content = render(
        "addon_confirmation",
        first_name=user.first_name,
        addon_name=subscription_display_name(details.addon_type.value),
        ends_at=format_date(ends_at),
        subscription_id=subscription.subscription_id,
    )

    await _sync_subscriber_id(db, gateway, event, response.subscription_id)

    email_sent = await best_effort(f"add-on confirmation email to {recipient}", mailer.send(recipient, content))

    response.message = "Add-on purchased successfully"
    if not email_sent:
        response.message += ", but confirmation email failed to send"
    return response


async def _latest_addon(db: AsyncSession, subscription: Subscription) -> AddOn | None:
    result = await db.execute(
        select(AddOn)
        .where(AddOn.user_id == subscription.user_id, AddOn.type == subscription.addon_type)
        .order_by(AddOn.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def renew_subscription(
    db: AsyncSession,
    event: PaymentEvent,
    subscription: Subscription,
    *,
    raw_data: dict[str, Any],
    mailer: Mailer,
    gateway: MamoPayClient,
) -> WebhookResponse:
    """Record a recurring charge on an existing subscription and extend it.

    The new period runs from the current ``ends_at``. For an add-on
    subscription the buyer's most recent add-on of that type is extended with
    it. No account is created. A charge on a CANCELLED subscription is only
    recorded as a payment.

    Raises:
        BusinessRuleViolation: If the charge names a different buyer or item
            kind than the subscription, or an add-on subscription has no
            add-on left to extend.
    """
    details = event.details
    email = str(details.email).lower()
    sid = subscription.subscription_id

    owner: User | None = await db.get(User, subscription.user_id)
    if owner is None or owner.email.lower() != email:
        raise BusinessRuleViolation(
            f"Subscription {sid} belongs to another account",
            details={"subscription_id": sid, "email": email},
        )

    is_addon = subscription.item_type == ItemType.ADDON
    if is_addon != (details.payment_type == PaymentType.ADDON_PURCHASE):
        raise BusinessRuleViolation(
            f"{details.payment_type.value} charge does not match {subscription.item_type.value} subscription {sid}",
            details={"subscription_id": sid},
        )

    addon: AddOn | None = None
    if is_addon:
        addon = await _latest_addon(db, subscription)
        if addon is None:
            raise BusinessRuleViolation(f"No add-on found for subscription {sid}", details={"subscription_id": sid})

    kind = subscription.addon_type if is_addon else (subscription.subscription_type or details.plan_type)
    # Cancellation is terminal: the charge is recorded, the period is not extended
    renewable = subscription.status == SubscriptionStatus.ACTIVE
    ends_at = subscription.ends_at
    if renewable:
        ends_at = resolve_end_date(subscription.ends_at, details.frequency, details.frequency_interval)

    try:
        async with transaction(db):
            payment = Payment(
                transaction_id=event.id,
                amount=event.amount,
                currency=event.amount_currency,
                status=event.status,
                payment_type=details.payment_type,
                item_type=kind.value,
                buyer_id=owner.id,
                addon_id=addon.id if addon else None,
                raw_data=raw_data,
            )
            db.add(payment)
            if renewable:
                subscription.ends_at = ends_at
                if addon is not None:
                    addon.end_date = ends_at
            await db.flush()
    except IntegrityError as e:
        return await _resolve_integrity_error(db, event, e)

    response = WebhookResponse(
        user_id=owner.id,
        subscription_id=subscription.id,
        payment_id=payment.id,
        addon_id=addon.id if addon else None,
    )

    if not renewable:
        logger.warning("Charge %s arrived for cancelled subscription %s, recorded without renewal", event.id, sid)
        response.message = f"Payment recorded, but subscription {sid} is cancelled and was not renewed"
        return response

    logger.info("Renewed subscription %s until %s (transaction %s)", sid, ends_at.isoformat(), event.id)

    recipient = owner.email
    content = render(
        "subscription_renewal",
        first_name=owner.first_name,
        subscription_name=subscription_display_name(kind.value),
        subscription_id=sid,
        ends_at=format_date(ends_at),
    )

    if subscription.subscriber_id is None:
        await _sync_subscriber_id(db, gateway, event, response.subscription_id)

    email_sent = await best_effort(f"renewal email to {recipient}", mailer.send(recipient, content))

    response.message = "Subscription renewed successfully"
    if not email_sent:
        response.message += ", but renewal email failed to send"
    return response
