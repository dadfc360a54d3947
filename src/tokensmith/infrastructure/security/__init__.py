"""Cryptographic primitives: key generation, key encryption and hashing."""

from tokensmith.infrastructure.security.key_generators import (
    ECDSAKeyGenerator,
    KeyGenerationError,
    KeyGenerator,
    KeyPair,
    RSAKeyGenerator,
    default_key_generator,
)
from tokensmith.infrastructure.security.private_key_encryption import (
    AuthenticationTagError,
    CiphertextTooShortError,
    EncryptionError,
    EncryptionKeyError,
    MalformedCiphertextError,
    PrivateKeyEncryptionService,
)
from tokensmith.infrastructure.security.secret_hasher import hash_secret, verify_secret
from tokensmith.infrastructure.security.token_hasher import TokenHasher

__all__ = [
    "AuthenticationTagError",
    "CiphertextTooShortError",
    "ECDSAKeyGenerator",
    "EncryptionError",
    "EncryptionKeyError",
    "KeyGenerationError",
    "KeyGenerator",
    "KeyPair",
    "MalformedCiphertextError",
    "PrivateKeyEncryptionService",
    "RSAKeyGenerator",
    "TokenHasher",
    "default_key_generator",
    "hash_secret",
    "verify_secret",
]
