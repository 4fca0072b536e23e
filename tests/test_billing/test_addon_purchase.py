"""Tests for add-on purchases arriving through the payment webhook."""

from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from digitalsite.billing.webhooks import process_payment_webhook
from digitalsite.errors import BusinessRuleViolation
from digitalsite.models.addon import AddOn
from digitalsite.models.enums import AddOnStatus, AddOnType, IntervalUnit, ItemType, PaymentType
from digitalsite.models.payment import Payment
from digitalsite.models.subscription import Subscription


def _addon_payload(make_payload, email: str, **overrides) -> dict:
    return make_payload(
        email=email,
        paymentType="ADDON_PURCHASE",
        addonType="EXTRA_FUNNEL",
        amount=10.2,
        **overrides,
    )


@pytest.fixture
def purchase(db_session, mailer, gateway, app_settings):
    async def _purchase(payload):
        return await process_payment_webhook(
            db_session, payload, mailer=mailer, gateway=gateway, settings=app_settings
        )

    return _purchase


class TestAddonPurchase:
    """Add-on purchases create Payment, AddOn and Subscription for an existing user."""

    async def test_creates_payment_addon_and_subscription(
        self, db_session, mailer, gateway, purchase, make_payload, test_user
    ):
        payload = _addon_payload(make_payload, test_user.email, transaction_id="MPB-CHRG-ADDON1", subscription_id=None)
        response = await purchase(payload)

        assert response.message == "Add-on purchased successfully"
        assert response.user_id == test_user.id

        addon = await db_session.scalar(select(AddOn).where(AddOn.id == response.addon_id))
        assert addon.type == AddOnType.EXTRA_FUNNEL
        assert addon.quantity == 1
        assert addon.price_per_unit == Decimal("10.00")
        assert addon.status == AddOnStatus.ACTIVE
        assert addon.billing_cycle == IntervalUnit.MONTH
        assert addon.start_date == datetime(2025, 1, 15, 10, 30, 0)
        assert addon.end_date == datetime(2025, 2, 15, 10, 30, 0)

        payment = await db_session.scalar(select(Payment).where(Payment.id == response.payment_id))
        assert payment.payment_type == PaymentType.ADDON_PURCHASE
        assert payment.item_type == "EXTRA_FUNNEL"
        assert payment.addon_id == addon.id

        subscription = await db_session.scalar(select(Subscription).where(Subscription.id == response.subscription_id))
        assert subscription.subscription_id == "SUB-ADDON-MPB-CHRG-ADDON1"
        assert subscription.item_type == ItemType.ADDON
        assert subscription.addon_type == AddOnType.EXTRA_FUNNEL
        assert subscription.subscription_type is None
        assert subscription.ends_at == addon.end_date

        assert mailer.subjects_for(test_user.email) == ["Add-on Activated: Additional Funnel"]
        assert gateway.lookups == []

    async def test_subscriber_id_stored_for_recurring_addon(
        self, db_session, gateway, purchase, make_payload, test_user
    ):
        payload = _addon_payload(make_payload, test_user.email, subscription_id="MPB-SUB-ADDON-7")
        await purchase(payload)

        subscriber_id = await db_session.scalar(
            select(Subscription.subscriber_id).where(Subscription.subscription_id == "MPB-SUB-ADDON-7")
        )
        assert gateway.lookups == ["MPB-SUB-ADDON-7"]
        assert subscriber_id == "MPB-SUBR-MPB-SUB-ADDON-7"

    async def test_unknown_buyer_rejected(self, db_session, purchase, make_payload):
        payload = _addon_payload(make_payload, "nobody@example.com")
        with pytest.raises(BusinessRuleViolation):
            await purchase(payload)
        assert await db_session.scalar(select(func.count()).select_from(AddOn)) == 0

    async def test_unverified_buyer_rejected(self, purchase, make_payload, create_user):
        user = await create_user(verified=False)
        payload = _addon_payload(make_payload, user.email)
        with pytest.raises(BusinessRuleViolation) as exc_info:
            await purchase(payload)
        assert "not verified" in exc_info.value.message

    async def test_repeat_delivery_ignored(self, db_session, purchase, make_payload, test_user):
        payload = _addon_payload(make_payload, test_user.email)
        await purchase(payload)
        second = await purchase(payload)

        assert second.ignored is True
        assert await db_session.scalar(select(func.count()).select_from(AddOn)) == 1

    async def test_email_failure_reported_in_message(self, mailer, purchase, make_payload, test_user):
        mailer.fail = True
        payload = _addon_payload(make_payload, test_user.email)
        response = await purchase(payload)
        assert response.message == "Add-on purchased successfully, but confirmation email failed to send"
        assert response.addon_id is not None


class TestAddonRenewal:
    """A recurring add-on charge extends the existing add-on and its subscription."""

    async def test_renewal_extends_addon_without_new_rows(
        self, db_session, mailer, purchase, make_payload, test_user
    ):
        first = await purchase(_addon_payload(make_payload, test_user.email, subscription_id="MPB-SUB-ADDON-R"))
        renewal = _addon_payload(
            make_payload,
            test_user.email,
            subscription_id="MPB-SUB-ADDON-R",
            created_date="2025-02-15-10-30-00",
        )

        response = await purchase(renewal)

        assert response.message == "Subscription renewed successfully"
        assert response.addon_id == first.addon_id
        assert await db_session.scalar(select(func.count()).select_from(AddOn)) == 1
        assert await db_session.scalar(select(func.count()).select_from(Subscription)) == 1
        assert await db_session.scalar(select(func.count()).select_from(Payment)) == 2

        end_date = await db_session.scalar(select(AddOn.end_date).where(AddOn.id == first.addon_id))
        assert end_date == datetime(2025, 3, 15, 10, 30, 0)

        payment = await db_session.scalar(select(Payment).where(Payment.id == response.payment_id))
        assert payment.payment_type == PaymentType.ADDON_PURCHASE
        assert payment.addon_id == first.addon_id
        assert payment.item_type == "EXTRA_FUNNEL"

        assert mailer.subjects_for(test_user.email)[-1] == "Subscription Renewed: Additional Funnel"
