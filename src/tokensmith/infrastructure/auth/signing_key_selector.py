"""Selection and just-in-time decryption of the signing key."""

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from tokensmith.domain.entities import SigningKey
from tokensmith.domain.repositories import KeyRepository
from tokensmith.infrastructure.security.private_key_encryption import PrivateKeyEncryptionService

_EC_CURVE_NAMES = {"P-256": "secp256r1", "P-384": "secp384r1", "P-521": "secp521r1"}


class JWTError(Exception):
    """Base exception for JWT-related errors."""

    pass


class NoActiveKeyError(JWTError):
    """Raised when no active, unexpired signing key exists.

    This is an operator fault; clients cannot correct it.
    """

    pass


class SigningKeyError(JWTError):
    """Raised when stored key material cannot be used with its algorithm."""

    pass


class SigningKeySelector:
    """Picks the key that signs new tokens.

    When several keys are active (during a rotation), the most recently
    created one wins.
    """

    def __init__(
        self,
        key_repository: KeyRepository,
        encryption: PrivateKeyEncryptionService,
    ) -> None:
        self.key_repository = key_repository
        self.encryption = encryption

    async def select(self) -> SigningKey:
        """Return the newest active key.

        Raises:
            NoActiveKeyError: If there is none.
        """
        keys = await self.key_repository.find_active_keys()
        if not keys:
            raise NoActiveKeyError("No active signing key found for JWT signing")
        return max(keys, key=lambda key: key.created_at)

    def load_private_key(
        self, key: SigningKey
    ) -> rsa.RSAPrivateKey | ec.EllipticCurvePrivateKey:
        """Decrypt and parse a key's private material.

        The result must not outlive the signing call it was loaded for.

        Raises:
            EncryptionError: If the stored ciphertext cannot be decrypted.
            SigningKeyError: If the material does not match the key's algorithm.
        """
        pem = self.encryption.decrypt(key.private_key_encrypted)
        try:
            private_key = serialization.load_pem_private_key(pem.encode("ascii"), password=None)
        except (ValueError, TypeError) as e:
            raise SigningKeyError(f"Key {key.kid} holds unreadable private key material") from e
        finally:
            del pem

        if key.algorithm.family == "rsa":
            if not isinstance(private_key, rsa.RSAPrivateKey):
                raise SigningKeyError(
                    f"Key type mismatch: {key.algorithm.value} requires an RSA key (kid={key.kid})"
                )
        elif not isinstance(private_key, ec.EllipticCurvePrivateKey):
            raise SigningKeyError(
                f"Key type mismatch: {key.algorithm.value} requires an EC key (kid={key.kid})"
            )
        elif private_key.curve.name != _EC_CURVE_NAMES[key.algorithm.curve]:
            raise SigningKeyError(
                f"Curve mismatch: {key.algorithm.value} requires {key.algorithm.curve} "
                f"(kid={key.kid})"
            )
        return private_key
