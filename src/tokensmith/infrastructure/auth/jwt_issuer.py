"""JWT access token issuance.

Access tokens follow the RFC 9068 profile: ``iss``, ``sub``, ``aud``,
``exp``, ``iat``, ``jti`` and ``scope``, plus optional ``nbf``, ``client_id``
and caller-supplied claims. Tokens are signed with the newest active key and
carry its ``kid`` in the header.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import jwt

from tokensmith.core.logging import get_logger
from tokensmith.infrastructure.auth.signing_key_selector import (
    JWTError,
    NoActiveKeyError,
    SigningKeyError,
    SigningKeySelector,
)

logger = get_logger(__name__)

REGISTERED_CLAIMS = frozenset({"iss", "sub", "aud", "exp", "iat", "jti", "scope", "nbf", "client_id"})

__all__ = [
    "IssuedAccessToken",
    "JWTError",
    "JwtIssuer",
    "JwtPayload",
    "NoActiveKeyError",
    "SigningKeyError",
]


@dataclass(frozen=True)
class JwtPayload:
    """Claims requested for a new access token.

    Attributes:
        subject: ``sub`` claim, the user id (or client id for client credentials).
        audience: ``aud`` claim, the client id.
        scope: Space-separated granted scopes.
        expires_in: Lifetime in seconds.
        client_id: Optional ``client_id`` claim.
        not_before: Optional ``nbf`` claim as a Unix timestamp.
        additional_claims: Extra claims. They may not override the claims above.

    Raises:
        ValueError: If a field is empty or out of range.
    """

    subject: str
    audience: str
    scope: str
    expires_in: int
    client_id: str | None = None
    not_before: int | None = None
    additional_claims: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.subject.strip():
            raise ValueError("Subject cannot be empty")
        if not self.audience.strip():
            raise ValueError("Audience cannot be empty")
        if not self.scope.strip():
            raise ValueError("Scope cannot be empty")
        if self.expires_in <= 0:
            raise ValueError("Expires in must be greater than 0")
        if self.not_before is not None and self.not_before < 0:
            raise ValueError("Not before must be a non-negative timestamp")
        shadowed = REGISTERED_CLAIMS.intersection(self.additional_claims)
        if shadowed:
            raise ValueError(
                f"Additional claims cannot override registered claims: {', '.join(sorted(shadowed))}"
            )

    def to_claims(self, issuer: str, now: int, jti: str) -> dict[str, Any]:
        claims: dict[str, Any] = {
            "iss": issuer,
            "sub": self.subject,
            "aud": self.audience,
            "exp": now + self.expires_in,
            "iat": now,
            "jti": jti,
            "scope": self.scope,
        }
        if self.not_before is not None:
            claims["nbf"] = self.not_before
        if self.client_id is not None:
            claims["client_id"] = self.client_id
        claims.update(self.additional_claims)
        return claims


@dataclass(frozen=True)
class IssuedAccessToken:
    """A signed access token and the metadata needed to audit or revoke it."""

    token: str
    jti: str
    kid: str
    algorithm: str
    expires_at: datetime


class JwtIssuer:
    """Builds and signs JWT access tokens."""

    def __init__(self, key_selector: SigningKeySelector, issuer: str) -> None:
        """Initialize the issuer.

        Args:
            key_selector: Source of the signing key.
            issuer: Value of the ``iss`` claim.
        """
        self.key_selector = key_selector
        self.issuer = issuer

    async def issue(self, payload: JwtPayload) -> IssuedAccessToken:
        """Sign a new access token.

        Raises:
            NoActiveKeyError: If no key can sign.
            SigningKeyError: If the key material is unusable.
            EncryptionError: If the private key cannot be decrypted.
        """
        key = await self.key_selector.select()
        private_key = self.key_selector.load_private_key(key)

        now = int(datetime.now(timezone.utc).timestamp())
        jti = str(uuid.uuid4())
        claims = payload.to_claims(self.issuer, now=now, jti=jti)

        try:
            token = jwt.encode(
                claims,
                private_key,
                algorithm=key.algorithm.value,
                headers={"kid": key.kid, "typ": "JWT"},
            )
        except (jwt.PyJWTError, ValueError, TypeError) as e:
            raise SigningKeyError(f"Failed to sign token with key {key.kid}: {e}") from e
        finally:
            del private_key

        logger.debug("Access token signed", kid=key.kid, algorithm=key.algorithm.value, jti=jti)
        return IssuedAccessToken(
            token=token,
            jti=jti,
            kid=key.kid,
            algorithm=key.algorithm.value,
            expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
        )

    async def generate(self, payload: JwtPayload) -> str:
        """Sign a new access token and return its compact serialization."""
        issued = await self.issue(payload)
        return issued.token
