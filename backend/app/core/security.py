"""Password hashing utilities"""

from functools import lru_cache

import bcrypt

DEFAULT_ROUNDS = 12


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its hash

    Args:
        plain_password: Plain text password
        hashed_password: Hashed password

    Returns:
        bool: True if password matches
    """
    try:
        return bcrypt.checkpw(
            plain_password.encode('utf-8'),
            hashed_password.encode('utf-8')
        )
    except ValueError:
        # Malformed stored hash
        return False


def get_password_hash(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """
    Hash a password using bcrypt

    Args:
        password: Plain text password
        rounds: bcrypt cost factor

    Returns:
        str: Hashed password
    """
    return bcrypt.hashpw(
        password.encode('utf-8'),
        bcrypt.gensalt(rounds=rounds)
    ).decode('utf-8')


@lru_cache()
def _dummy_hash(rounds: int) -> str:
    return get_password_hash("not-a-real-password", rounds)


def burn_password_check(plain_password: str, rounds: int = DEFAULT_ROUNDS) -> bool:
    """
    Run a full bcrypt comparison against a throwaway hash.

    Used when no account matches so response time does not reveal
    whether an email is registered. Always returns False.
    """
    verify_password(plain_password, _dummy_hash(rounds))
    return False
