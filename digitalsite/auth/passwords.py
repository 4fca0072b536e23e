"""bcrypt password hashing for provisioned and verified accounts.

Plaintext passwords are never persisted; only the output of
``hash_password`` reaches the users table.
"""

import bcrypt

DEFAULT_ROUNDS = 10


def hash_password(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Hash a plain-text password using bcrypt.

    Args:
        password: The plain-text password to hash.
        rounds: bcrypt cost factor.

    Returns:
        The bcrypt hash string.
    """
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")
