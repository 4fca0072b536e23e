"""Credential generation for accounts provisioned from a webhook."""

import logging
import re
import secrets
import string
import time

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from digitalsite.models.user import User

logger = logging.getLogger(__name__)

MAX_USERNAME_LENGTH = 30
MAX_PART_LENGTH = 15
MIN_CANDIDATE_LENGTH = 3
MAX_NUMERIC_SUFFIX = 10

ADJECTIVES = (
    "Bright", "Calm", "Clever", "Swift", "Brave", "Happy", "Lucky", "Sunny",
    "Golden", "Silver", "Gentle", "Bold", "Quiet", "Rapid", "Noble", "Vivid",
)
NOUNS = (
    "Falcon", "River", "Cedar", "Harbor", "Comet", "Meadow", "Tiger", "Maple",
    "Summit", "Canyon", "Breeze", "Pebble", "Lantern", "Orchid", "Willow", "Atlas",
)
SECURE_ALPHABET = string.ascii_letters + string.digits + "!@#$%^&*"


def _clean(value: str) -> str:
    """Lower-case, strip non-alphanumerics, and cap at 15 characters."""
    return re.sub(r"[^a-z0-9]", "", (value or "").lower())[:MAX_PART_LENGTH]


def build_username_candidates(first_name: str, last_name: str, email: str) -> list[str]:
    """Priority-ordered username candidates derived from name and email."""
    first = _clean(first_name)
    last = _clean(last_name)
    local = _clean(email.split("@", 1)[0])

    raw = [
        first + last,
        f"{first}_{last}" if first and last else "",
        first[:1] + last,
        first + last[:1],
        local,
        first,
        last + first,
    ]

    candidates: list[str] = []
    for candidate in raw:
        candidate = candidate[:MAX_USERNAME_LENGTH]
        if len(candidate) >= MIN_CANDIDATE_LENGTH and candidate not in candidates:
            candidates.append(candidate)
    return candidates


def _with_suffix(candidate: str, suffix: str) -> str:
    return candidate[: MAX_USERNAME_LENGTH - len(suffix)] + suffix


def _fallback_username() -> str:
    return f"user_{int(time.time())}_{secrets.token_hex(3)}"


async def _username_exists(db: AsyncSession, username: str) -> bool:
    result = await db.execute(select(User.id).where(User.username == username))
    return result.scalar_one_or_none() is not None


async def generate_unique_username(
    db: AsyncSession, first_name: str, last_name: str, email: str
) -> str:
    """Return a username not yet present in the users table.

    Tries every candidate bare and with suffixes 1..10 before falling back to
    a timestamp/random form, so it always returns.
    """
    for candidate in build_username_candidates(first_name, last_name, email):
        for suffix in ["", *(str(n) for n in range(1, MAX_NUMERIC_SUFFIX + 1))]:
            username = _with_suffix(candidate, suffix)
            if not await _username_exists(db, username):
                return username

    username = _fallback_username()
    while await _username_exists(db, username):
        username = _fallback_username()
    logger.info("Username candidates exhausted for %s, using %s", email, username)
    return username


def generate_readable_password() -> str:
    """Memorable temporary password, e.g. ``SwiftFalcon482``."""
    number = secrets.randbelow(900) + 100
    return f"{secrets.choice(ADJECTIVES)}{secrets.choice(NOUNS)}{number}"


def generate_secure_password(length: int = 16) -> str:
    """High-entropy random password over letters, digits, and symbols."""
    if length < 1:
        raise ValueError("Password length must be positive")
    return "".join(secrets.choice(SECURE_ALPHABET) for _ in range(length))
