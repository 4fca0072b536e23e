"""JWT creation and verification for access and email-verification tokens."""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from digitalsite.config import Settings, settings

ACCESS_TOKEN_TYPE = "access"
VERIFICATION_TOKEN_TYPE = "verification"


def create_access_token(
    data: dict, expires_delta: timedelta | None = None, config: Settings = settings
) -> str:
    """Create a short-lived access token.

    Args:
        data: Payload data. Must include ``sub`` (user UUID as string).
        expires_delta: Custom expiration duration. Defaults to
            ``jwt_access_token_expire_minutes`` minutes.

    Returns:
        Encoded JWT string.
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=config.jwt_access_token_expire_minutes))
    to_encode.update({"exp": expire, "iat": now, "type": ACCESS_TOKEN_TYPE})
    return jwt.encode(to_encode, config.jwt_secret_key, algorithm=config.jwt_algorithm)


def create_verification_token(
    email: str, hashed_password: str, issued_at: datetime, config: Settings = settings
) -> str:
    """Create the single-use email verification token for a new account.

    The token embeds the account email, its password hash, and the issue
    time, and expires after ``verification_token_expire_hours``.
    """
    issued_at = issued_at.replace(tzinfo=timezone.utc) if issued_at.tzinfo is None else issued_at
    payload = {
        "sub": email,
        "pwd": hashed_password,
        "iat": issued_at,
        "exp": issued_at + timedelta(hours=config.verification_token_expire_hours),
        "type": VERIFICATION_TOKEN_TYPE,
    }
    return jwt.encode(payload, config.jwt_secret_key, algorithm=config.jwt_algorithm)


def decode_token(token: str, expected_type: str | None = None, config: Settings = settings) -> dict:
    """Decode and verify a JWT token.

    Raises:
        jose.JWTError: If the token is invalid, expired, malformed, or of
            a different type than ``expected_type``.
    """
    payload = jwt.decode(token, config.jwt_secret_key, algorithms=[config.jwt_algorithm])
    if expected_type is not None and payload.get("type") != expected_type:
        raise JWTError(f"Expected a {expected_type} token")
    return payload
