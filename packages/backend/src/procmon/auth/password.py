"""bcrypt helpers for the user directory.

Learn: bcrypt salts every hash itself and only looks at the first 72
bytes of input, so longer passwords are cut there on both paths. The
work factor is PROCMON_BCRYPT_ROUNDS; the demo accounts are hashed at
startup, so tests turn it down to keep the suite fast.
"""

import bcrypt

from procmon.config import settings

BCRYPT_MAX_BYTES = 72


def _secret(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    digest = bcrypt.hashpw(_secret(password), bcrypt.gensalt(rounds=settings.bcrypt_rounds))
    return digest.decode("ascii")


def verify_password(password: str, password_hash: str) -> bool:
    """True when the password matches. A malformed hash never matches."""
    try:
        return bcrypt.checkpw(_secret(password), password_hash.encode("ascii"))
    except (ValueError, TypeError):
        return False
