"""Signing key entity and supported JWS algorithms."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
import uuid


class SigningAlgorithm(str, Enum):
    """JWS algorithms a signing key can be generated for."""

    RS256 = "RS256"
    RS384 = "RS384"
    RS512 = "RS512"
    ES256 = "ES256"
    ES384 = "ES384"
    ES512 = "ES512"

    @property
    def family(self) -> str:
        """Key family: ``rsa`` or ``ecdsa``."""
        return "rsa" if self.value.startswith("RS") else "ecdsa"

    @property
    def curve(self) -> str | None:
        """NIST curve bound to an ECDSA algorithm, None for RSA."""
        return _CURVES.get(self)

    @classmethod
    def for_curve(cls, curve: str) -> "SigningAlgorithm":
        """Return the ECDSA algorithm that uses a curve.

        Raises:
            ValueError: If the curve is not supported.
        """
        for algorithm, name in _CURVES.items():
            if name == curve:
                return algorithm
        raise ValueError(
            f"Unsupported ECDSA curve {curve!r}. Supported curves: {', '.join(_CURVES.values())}"
        )


_CURVES = {
    SigningAlgorithm.ES256: "P-256",
    SigningAlgorithm.ES384: "P-384",
    SigningAlgorithm.ES512: "P-521",
}


@dataclass
class SigningKey:
    """An asymmetric key pair used to sign access tokens.

    Several keys may coexist during rotation. Only active keys sign new tokens;
    inactive keys stay resolvable by ``kid`` until deleted so that tokens they
    already signed keep verifying.

    Attributes:
        kid: Key ID placed in the JWT header (unique).
        algorithm: JWS algorithm the key signs with.
        public_key: PEM-encoded public key.
        private_key_encrypted: AES-GCM encrypted PEM private key.
        expires_at: After this instant the key stops signing; once inactive
            and past it, the key can be deleted.
        is_active: Whether the key is eligible to sign new tokens.
        id: Internal identifier (UUID string).
        created_at: When the key was created.
    """

    kid: str
    algorithm: SigningAlgorithm
    public_key: str
    private_key_encrypted: str
    expires_at: datetime
    is_active: bool = False
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def is_expired(self) -> bool:
        return self.expires_at <= datetime.now(timezone.utc)

    def can_sign(self) -> bool:
        return self.is_active and not self.is_expired()
