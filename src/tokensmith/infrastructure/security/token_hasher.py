"""Keyed hashing of authorization codes and refresh tokens.

Codes and refresh tokens are stored by HMAC-SHA256 digest only. A leaked
table therefore yields neither usable credentials nor digests that can be
matched without the server-side secret.
"""

import hashlib
import hmac

MIN_SECRET_LENGTH = 32


class TokenHasher:
    """HMAC-SHA256 hasher for opaque credentials."""

    def __init__(self, secret: str) -> None:
        """Initialize the hasher.

        Args:
            secret: HMAC key, at least 32 characters.

        Raises:
            ValueError: If the secret is too short.
        """
        if len(secret) < MIN_SECRET_LENGTH:
            raise ValueError(f"Token hash secret must be at least {MIN_SECRET_LENGTH} characters")
        self._key = secret.encode("utf-8")

    def hash(self, token: str) -> str:
        """Return the hex digest of a token."""
        return hmac.new(self._key, token.encode("utf-8"), hashlib.sha256).hexdigest()

    def verify(self, token: str, token_hash: str) -> bool:
        return hmac.compare_digest(self.hash(token), token_hash)
