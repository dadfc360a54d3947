"""Signing key pair generation.

Generators are tried in order; the first one that supports the requested
algorithm produces the key pair.
"""

from dataclasses import dataclass
from typing import Protocol

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from tokensmith.domain.entities import SigningAlgorithm

_EC_CURVES: dict[str, type[ec.EllipticCurve]] = {
    "P-256": ec.SECP256R1,
    "P-384": ec.SECP384R1,
    "P-521": ec.SECP521R1,
}


class KeyGenerationError(Exception):
    """Raised when no generator can produce a key for an algorithm."""


@dataclass(frozen=True)
class KeyPair:
    """PEM-encoded key pair. The private key is PKCS#8, unencrypted."""

    public_key: str
    private_key: str


class KeyPairGenerator(Protocol):
    def supports(self, algorithm: SigningAlgorithm) -> bool: ...

    def generate_key_pair(self) -> KeyPair: ...


def _to_pem(private_key: rsa.RSAPrivateKey | ec.EllipticCurvePrivateKey) -> KeyPair:
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return KeyPair(public_key=public_pem.decode("ascii"), private_key=private_pem.decode("ascii"))


class RSAKeyGenerator:
    """RSA key pairs for RS256, RS384 and RS512."""

    def __init__(self, key_size: int = 4096) -> None:
        if key_size < 2048:
            raise ValueError("RSA key size must be at least 2048 bits")
        self.key_size = key_size

    def supports(self, algorithm: SigningAlgorithm) -> bool:
        return algorithm.family == "rsa"

    def generate_key_pair(self) -> KeyPair:
        private_key = rsa.generate_private_key(public_exponent=65537, key_size=self.key_size)
        return _to_pem(private_key)


class ECDSAKeyGenerator:
    """ECDSA key pairs on one NIST curve.

    Each curve is bound to one JWS algorithm (P-256/ES256, P-384/ES384,
    P-521/ES512), so a generator only supports that algorithm.
    """

    def __init__(self, curve: str = "P-256") -> None:
        if curve not in _EC_CURVES:
            raise ValueError(
                f"Unsupported ECDSA curve {curve!r}. Supported curves: {', '.join(_EC_CURVES)}"
            )
        self.curve = curve
        self.algorithm = SigningAlgorithm.for_curve(curve)

    def supports(self, algorithm: SigningAlgorithm) -> bool:
        return algorithm == self.algorithm

    def generate_key_pair(self) -> KeyPair:
        private_key = ec.generate_private_key(_EC_CURVES[self.curve]())
        return _to_pem(private_key)


class KeyGenerator:
    """Dispatches key generation to the first generator supporting an algorithm."""

    def __init__(self, handlers: list[KeyPairGenerator]) -> None:
        self.handlers = list(handlers)

    def supports(self, algorithm: SigningAlgorithm) -> bool:
        return any(handler.supports(algorithm) for handler in self.handlers)

    def generate(self, algorithm: SigningAlgorithm | str) -> KeyPair:
        """Generate a key pair for an algorithm.

        Raises:
            KeyGenerationError: If the algorithm is unknown or no generator supports it.
        """
        try:
            algorithm = SigningAlgorithm(algorithm)
        except ValueError as e:
            raise KeyGenerationError(f"Unknown signing algorithm: {algorithm}") from e

        for handler in self.handlers:
            if handler.supports(algorithm):
                return handler.generate_key_pair()
        raise KeyGenerationError(f"No key generator supports algorithm {algorithm.value}")


def default_key_generator(rsa_key_size: int = 4096) -> KeyGenerator:
    """RSA plus one ECDSA generator per supported curve."""
    return KeyGenerator(
        [
            RSAKeyGenerator(key_size=rsa_key_size),
            ECDSAKeyGenerator("P-256"),
            ECDSAKeyGenerator("P-384"),
            ECDSAKeyGenerator("P-521"),
        ]
    )
