"""Client secret hashing using Argon2.

Client secrets are hashed with Argon2id and verified with the library's
constant-time comparison. A fixed reference hash computed with the same
parameters lets callers spend the same amount of work when there is no real
hash to check against.
"""

import secrets

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

_hasher = PasswordHasher()

# Reference hash for unknown clients, same parameters as real secrets
DUMMY_SECRET_HASH = _hasher.hash(secrets.token_urlsafe(32))


def hash_secret(secret: str) -> str:
    """Hash a client secret using Argon2id.

    Args:
        secret: The plaintext client secret.

    Returns:
        The encoded Argon2id hash.
    """
    return _hasher.hash(secret)


def verify_secret(secret: str, hashed: str) -> bool:
    """Verify a client secret against a hash.

    Args:
        secret: The plaintext secret presented by the client.
        hashed: The stored hash.

    Returns:
        True if the secret matches, False otherwise, including when the stored
        hash is malformed.
    """
    try:
        return _hasher.verify(hashed, secret)
    except (VerificationError, InvalidHashError):
        return False


def burn_verification() -> None:
    """Run a verification against the reference hash and discard the result."""
    verify_secret(secrets.token_urlsafe(32), DUMMY_SECRET_HASH)


def needs_rehash(hashed: str) -> bool:
    return _hasher.check_needs_rehash(hashed)
