"""Password hashing utilities.

Uses bcrypt for password hashing. bcrypt handles salting itself and
produces hashes starting with "$2b$". Passwords are truncated to 72
bytes (bcrypt's limit).
"""

import bcrypt

from listkeeper.config import settings


def hash_password(password: str) -> str:
    """Hash a password with bcrypt at the configured work factor."""
    pw_bytes = password.encode("utf-8")[:72]
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash. Malformed hashes never match."""
    try:
        pw_bytes = password.encode("utf-8")[:72]
        hash_bytes = password_hash.encode("utf-8")
        return bcrypt.checkpw(pw_bytes, hash_bytes)
    except (ValueError, TypeError):
        return False
