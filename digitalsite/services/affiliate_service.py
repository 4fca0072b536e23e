"""Affiliate attribution: link lookup and commission credit."""

import logging
import uuid
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from digitalsite.models.affiliate_link import AffiliateLink
from digitalsite.models.user import User
from digitalsite.notifications.mailer import Mailer
from digitalsite.notifications.templates import render
from digitalsite.schemas.webhook import AffiliateLinkReference
from digitalsite.services.side_effects import best_effort

logger = logging.getLogger(__name__)


async def find_affiliate_link(
    db: AsyncSession, reference: AffiliateLinkReference | None
) -> AffiliateLink | None:
    """Resolve the affiliate link an event points at, if it exists."""
    if reference is None:
        return None
    result = await db.execute(select(AffiliateLink).where(AffiliateLink.token == reference.token))
    link = result.scalar_one_or_none()
    if link is None:
        logger.info("Affiliate link with token %r not found, skipping attribution", reference.token)
    return link


async def credit_affiliate_commission(
    db: AsyncSession,
    link_id: uuid.UUID,
    amount: Decimal,
    *,
    currency: str,
    mailer: Mailer,
) -> None:
    """Add ``amount`` to the link's running total and congratulate its owner.

    The increment runs as a single UPDATE so concurrent credits never lose
    each other. The amount is the one carried by the payment event.
    """
    await db.execute(
        update(AffiliateLink)
        .where(AffiliateLink.id == link_id)
        .values(total_commission=AffiliateLink.total_commission + amount)
    )
    await db.commit()
    logger.info("Credited %s %s commission to affiliate link %s", amount, currency, link_id)

    result = await db.execute(
        select(User.email, User.first_name).join(AffiliateLink, AffiliateLink.user_id == User.id).where(
            AffiliateLink.id == link_id
        )
    )
    owner = result.one_or_none()
    if owner is None:
        logger.warning("Affiliate link %s has no owner to notify", link_id)
        return

    content = render(
        "affiliate_congratulations",
        first_name=owner.first_name,
        commission=f"{amount:.2f}",
        currency=currency,
    )
    await best_effort(f"affiliate congratulations email to {owner.email}", mailer.send(owner.email, content))
