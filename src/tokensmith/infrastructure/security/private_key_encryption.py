"""Authenticated encryption of signing-key private material at rest.

Private keys are encrypted with AES-256-GCM. The stored form is
``base64(nonce || ciphertext || tag)`` with a 12-byte nonce and a 16-byte tag.
Decryption never returns data whose tag did not verify.
"""

import base64
import binascii
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

NONCE_SIZE = 12
TAG_SIZE = 16
KEY_SIZE = 32


class EncryptionError(Exception):
    """Base class for private key encryption failures."""


class EncryptionKeyError(EncryptionError):
    """The master key is not valid base64 or not 32 bytes long."""


class MalformedCiphertextError(EncryptionError):
    """The stored ciphertext is not valid base64."""


class CiphertextTooShortError(EncryptionError):
    """The stored ciphertext cannot hold a nonce and a tag."""


class AuthenticationTagError(EncryptionError):
    """The ciphertext was tampered with or encrypted under another key."""


class PrivateKeyEncryptionService:
    """AES-256-GCM encryption service for PEM private keys."""

    def __init__(self, master_key: str):
        """Initialize the service with a base64-encoded 32-byte master key.

        Raises:
            EncryptionKeyError: If the key cannot be decoded or has the wrong length.
        """
        try:
            key = base64.b64decode(master_key, validate=True)
        except (binascii.Error, ValueError) as e:
            raise EncryptionKeyError("Master key must be valid base64") from e
        if len(key) != KEY_SIZE:
            raise EncryptionKeyError(
                f"Master key must decode to {KEY_SIZE} bytes, got {len(key)}"
            )
        self._aesgcm = AESGCM(key)

    @classmethod
    def from_settings(cls, settings) -> "PrivateKeyEncryptionService":
        """Build the service from the configured master key.

        Raises:
            EncryptionKeyError: If no master key is configured.
        """
        if not settings.private_key_encryption_key:
            raise EncryptionKeyError(
                "TOKENSMITH_PRIVATE_KEY_ENCRYPTION_KEY is not configured"
            )
        return cls(settings.private_key_encryption_key)

    @staticmethod
    def generate_master_key() -> str:
        """Return a fresh base64-encoded 32-byte master key."""
        return base64.b64encode(AESGCM.generate_key(bit_length=256)).decode("ascii")

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a string. Every call uses a fresh random nonce."""
        nonce = os.urandom(NONCE_SIZE)
        ciphertext = self._aesgcm.encrypt(nonce, plaintext.encode("utf-8"), None)
        return base64.b64encode(nonce + ciphertext).decode("ascii")

    def decrypt(self, encrypted: str) -> str:
        """Decrypt a value produced by :meth:`encrypt`.

        Raises:
            MalformedCiphertextError: If the value is not valid base64.
            CiphertextTooShortError: If the decoded value is shorter than nonce + tag.
            AuthenticationTagError: If the tag does not verify.
        """
        try:
            data = base64.b64decode(encrypted, validate=True)
        except (binascii.Error, ValueError) as e:
            raise MalformedCiphertextError("Encrypted private key is not valid base64") from e

        if len(data) < NONCE_SIZE + TAG_SIZE:
            raise CiphertextTooShortError(
                f"Encrypted private key is too short ({len(data)} bytes)"
            )

        nonce, ciphertext = data[:NONCE_SIZE], data[NONCE_SIZE:]
        try:
            plaintext = self._aesgcm.decrypt(nonce, ciphertext, None)
        except InvalidTag as e:
            raise AuthenticationTagError("Private key authentication failed") from e
        return plaintext.decode("utf-8")
