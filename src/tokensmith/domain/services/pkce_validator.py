"""PKCE (RFC 7636) challenge derivation and verification."""

import base64
import hashlib
import hmac

SUPPORTED_METHODS = ("S256", "plain")


class PkceValidator:
    """Derives and checks PKCE code challenges.

    ``generate_challenge`` raises on an unsupported method because the caller
    controls it. ``validate`` works on attacker-supplied input and only ever
    answers True or False.
    """

    def is_supported_method(self, method: str | None) -> bool:
        return method in SUPPORTED_METHODS

    def generate_challenge(self, verifier: str, method: str = "S256") -> str:
        """Derive the code challenge for a verifier.

        Args:
            verifier: The code verifier.
            method: ``S256`` or ``plain``.

        Returns:
            The challenge. For ``S256`` this is the unpadded base64url
            encoding of SHA-256(verifier).

        Raises:
            ValueError: If the method is not supported.
        """
        if method == "plain":
            return verifier
        if method == "S256":
            digest = hashlib.sha256(verifier.encode("utf-8")).digest()
            return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
        raise ValueError(f"Unsupported PKCE method: {method}")

    def validate(self, verifier: str, challenge: str, method: str) -> bool:
        """Check a verifier against a stored challenge in constant time."""
        if not self.is_supported_method(method):
            return False
        try:
            expected = self.generate_challenge(verifier, method).encode("utf-8")
            stored = challenge.encode("utf-8")
        except (ValueError, UnicodeEncodeError):
            # Lone surrogates cannot be encoded
            return False
        return hmac.compare_digest(expected, stored)


default_pkce_validator = PkceValidator()
