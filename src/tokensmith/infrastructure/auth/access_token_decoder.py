"""Verification of access tokens issued by this server.

Used on revocation paths, where the token has to be trusted before its jti is
blacklisted. Keys are resolved by ``kid`` and may already be deactivated.
"""

from typing import Any

import jwt
from cryptography.hazmat.primitives import serialization

from tokensmith.domain.repositories import KeyRepository
from tokensmith.infrastructure.auth.signing_key_selector import JWTError

REQUIRED_CLAIMS = ["iss", "sub", "exp", "iat", "jti"]


class InvalidAccessTokenError(JWTError):
    """Raised when a token is malformed, unsigned by us, or expired."""

    pass


class AccessTokenDecoder:
    """Decodes and verifies access tokens against stored signing keys."""

    def __init__(self, key_repository: KeyRepository, issuer: str) -> None:
        self.key_repository = key_repository
        self.issuer = issuer

    async def decode(self, token: str, verify_exp: bool = True) -> dict[str, Any]:
        """Verify a token and return its claims.

        Args:
            token: Compact JWT.
            verify_exp: Whether an expired token is rejected.

        Returns:
            The verified claims.

        Raises:
            InvalidAccessTokenError: If the token cannot be verified.
        """
        try:
            header = jwt.get_unverified_header(token)
        except jwt.PyJWTError as e:
            raise InvalidAccessTokenError("Malformed token") from e

        kid = header.get("kid")
        if not isinstance(kid, str) or not kid:
            raise InvalidAccessTokenError("Token header has no kid")

        key = await self.key_repository.find_by_kid(kid)
        if key is None:
            raise InvalidAccessTokenError(f"Unknown signing key: {kid}")

        public_key = serialization.load_pem_public_key(key.public_key.encode("ascii"))
        try:
            return jwt.decode(
                token,
                public_key,
                algorithms=[key.algorithm.value],
                issuer=self.issuer,
                options={
                    "require": REQUIRED_CLAIMS,
                    "verify_aud": False,
                    "verify_exp": verify_exp,
                },
            )
        except jwt.ExpiredSignatureError as e:
            raise InvalidAccessTokenError("Token has expired") from e
        except jwt.PyJWTError as e:
            raise InvalidAccessTokenError(f"Invalid token: {e}") from e
