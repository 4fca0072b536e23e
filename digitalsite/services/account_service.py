"""Account service: provision users from payments and verify their email."""

import logging
import uuid
from datetime import timedelta

from jose import JWTError
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from digitalsite.auth.jwt import VERIFICATION_TOKEN_TYPE, create_verification_token, decode_token
from digitalsite.auth.passwords import hash_password
from digitalsite.billing.credentials import generate_readable_password, generate_unique_username
from digitalsite.billing.intervals import parse_created_date, resolve_end_date, utcnow
from digitalsite.billing.plans import calculate_final_limits
from digitalsite.config import Settings
from digitalsite.errors import BusinessRuleViolation, ValidationError
from digitalsite.models.user import User
from digitalsite.schemas.webhook import PaymentEvent

logger = logging.getLogger(__name__)


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Look up a user by email, ignoring case."""
    result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
    return result.scalar_one_or_none()


async def build_account(
    db: AsyncSession,
    event: PaymentEvent,
    *,
    affiliate_link_id: uuid.UUID | None,
    settings: Settings,
) -> tuple[User, str]:
    """Build (but do not save) the account for a first plan purchase.

    Returns:
        The unsaved ``User`` and its plaintext temporary password, which is
        only ever used for the welcome email.

    Raises:
        BusinessRuleViolation: If a user with the buyer's email already exists.
    """
    details = event.details
    email = str(details.email).lower()

    if await get_user_by_email(db, email) is not None:
        raise BusinessRuleViolation(f"User with email {email} already exists", details={"email": email})

    username = await generate_unique_username(db, details.first_name, details.last_name, email)
    temporary_password = generate_readable_password()
    hashed_password = hash_password(temporary_password)

    limits = calculate_final_limits(
        details.plan_type,
        maximum_funnels=details.funnels,
        maximum_custom_domains=details.custom_domains,
        maximum_subdomains=details.subdomains,
        maximum_admins=details.admins,
    )

    trial_start = parse_created_date(event.created_date)
    trial_end = resolve_end_date(trial_start, details.frequency, details.frequency_interval)

    issued_at = utcnow()
    verification_token = create_verification_token(email, hashed_password, issued_at, config=settings)

    user = User(
        email=email,
        username=username,
        hashed_password=hashed_password,
        first_name=details.first_name,
        last_name=details.last_name,
        plan=details.plan_type,
        verified=False,
        verification_token=verification_token,
        verification_token_expires_at=issued_at + timedelta(hours=settings.verification_token_expire_hours),
        maximum_funnels=limits.maximum_funnels,
        maximum_custom_domains=limits.maximum_custom_domains,
        maximum_subdomains=limits.maximum_subdomains,
        maximum_admins=limits.maximum_admins,
        trial_start_date=trial_start,
        trial_end_date=trial_end,
        affiliate_link_used_id=affiliate_link_id,
    )
    logger.info("Built account %s (%s) on plan %s", username, email, limits.name)
    return user, temporary_password


async def verify_account(
    db: AsyncSession,
    token: str,
    new_password: str | None = None,
    *,
    settings: Settings,
) -> User:
    """Consume a single-use verification token and mark the account verified.

    Raises:
        ValidationError: If the token is invalid, expired, or already used.
    """
    try:
        payload = decode_token(token, expected_type=VERIFICATION_TOKEN_TYPE, config=settings)
    except JWTError:
        raise ValidationError("Invalid or expired verification token", code="invalid_token") from None

    email = payload.get("sub")
    user = await get_user_by_email(db, email) if email else None
    if user is None or user.verification_token != token:
        raise ValidationError("Invalid or expired verification token", code="invalid_token")

    expires_at = user.verification_token_expires_at
    if expires_at is not None and expires_at < utcnow():
        raise ValidationError("Invalid or expired verification token", code="invalid_token")

    user.verified = True
    user.verification_token = None
    user.verification_token_expires_at = None
    if new_password is not None:
        user.hashed_password = hash_password(new_password)

    await db.commit()
    logger.info("Verified account %s", user.id)
    return user
