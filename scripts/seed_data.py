"""Seed the database with a demo partner account and its affiliate link.

The affiliate token can be used in local webhook payloads
(``custom_data.affiliateLink.token``) to exercise commission attribution.

Run inside Docker:
    docker compose exec backend python -m scripts.seed_data
"""

import asyncio
from datetime import timedelta
from decimal import Decimal

from sqlalchemy import delete, select

from digitalsite.auth.passwords import hash_password
from digitalsite.billing.intervals import map_frequency_to_interval_unit, resolve_end_date, utcnow
from digitalsite.billing.plans import get_plan
from digitalsite.database import async_session_factory, engine
from digitalsite.models.affiliate_link import AffiliateLink
from digitalsite.models.enums import ItemType, SubscriptionStatus, UserPlan
from digitalsite.models.subscription import Subscription
from digitalsite.models.user import User

# ---------------------------------------------------------------------------
# Seed data definitions
# ---------------------------------------------------------------------------

DEMO_PARTNER = {
    "email": "partner@digitalsite.dev",
    "username": "demopartner",
    "password": "partner1234",
    "first_name": "Demo",
    "last_name": "Partner",
}

AFFILIATE_TOKEN = "demo-partner-affiliate-token"
DEMO_SUBSCRIPTION_ID = "MPB-SUB-DEMO-PARTNER"


async def seed() -> None:
    """Create the demo partner, an annual AGENCY subscription and an affiliate link.

    Idempotent: an existing demo partner is deleted together with its
    subscriptions and affiliate links before re-seeding.
    """
    async with async_session_factory() as session:
        result = await session.execute(select(User).where(User.email == DEMO_PARTNER["email"]))
        existing_user = result.scalar_one_or_none()

        if existing_user is not None:
            print(f"Demo partner '{DEMO_PARTNER['email']}' already exists. Deleting and re-seeding...")
            await session.execute(delete(AffiliateLink).where(AffiliateLink.user_id == existing_user.id))
            await session.execute(delete(Subscription).where(Subscription.user_id == existing_user.id))
            await session.flush()
            await session.execute(delete(User).where(User.id == existing_user.id))
            await session.flush()

        # ------------------------------------------------------------------
        # 1. Create verified partner account
        # ------------------------------------------------------------------
        limits = get_plan(UserPlan.AGENCY)
        now = utcnow()
        user = User(
            email=DEMO_PARTNER["email"],
            username=DEMO_PARTNER["username"],
            hashed_password=hash_password(DEMO_PARTNER["password"]),
            first_name=DEMO_PARTNER["first_name"],
            last_name=DEMO_PARTNER["last_name"],
            plan=UserPlan.AGENCY,
            verified=True,
            maximum_funnels=limits.maximum_funnels,
            maximum_custom_domains=limits.maximum_custom_domains,
            maximum_subdomains=limits.maximum_subdomains,
            maximum_admins=limits.maximum_admins,
            trial_start_date=now,
            trial_end_date=now + timedelta(days=14),
        )
        session.add(user)
        await session.flush()
        print(f"Created demo partner: {user.email} (id={user.id})")

        # ------------------------------------------------------------------
        # 2. Create annual AGENCY subscription
        # ------------------------------------------------------------------
        subscription = Subscription(
            user_id=user.id,
            subscription_id=DEMO_SUBSCRIPTION_ID,
            starts_at=now,
            ends_at=resolve_end_date(now, "annually", 1),
            status=SubscriptionStatus.ACTIVE,
            interval_unit=map_frequency_to_interval_unit("annually"),
            interval_count=1,
            item_type=ItemType.PLAN,
            subscription_type=UserPlan.AGENCY,
            raw_data={"seeded": True},
        )
        session.add(subscription)

        # ------------------------------------------------------------------
        # 3. Create affiliate link
        # ------------------------------------------------------------------
        link = AffiliateLink(token=AFFILIATE_TOKEN, user_id=user.id, total_commission=Decimal("0"))
        session.add(link)
        await session.commit()

        print()
        print("=" * 60)
        print("Seed Summary")
        print("=" * 60)
        print(f"   User:           {DEMO_PARTNER['email']} / {DEMO_PARTNER['password']}")
        print(f"   Subscription:   {DEMO_SUBSCRIPTION_ID} ({limits.display_name}, annual)")
        print(f"   Affiliate link: {AFFILIATE_TOKEN}")
        print("=" * 60)


async def main() -> None:
    try:
        await seed()
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
