"""Client secret generation and strength validation.

Secrets are checked against:
- Minimum length (32 characters)
- Known weak patterns (repeats, single character class, weak prefixes,
  keyboard runs, monotonic sequences)
- Shannon entropy per character
"""

import base64
import math
import re
import secrets
from collections import Counter

from tokensmith.domain.exceptions import WeakClientSecretError

MIN_SECRET_BYTES = 32
MIN_SECRET_LENGTH = 32
MIN_ENTROPY_BITS_PER_CHAR = 3.5
SEQUENCE_RUN_LENGTH = 6
GENERATION_ATTEMPTS = 10

WEAK_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"(.)\1{3,}"), "repeated characters"),
    (re.compile(r"^[a-z]+$"), "only lowercase letters"),
    (re.compile(r"^[A-Z]+$"), "only uppercase letters"),
    (re.compile(r"^[0-9]+$"), "only digits"),
    (re.compile(r"^(password|secret|admin|test|demo|example)", re.IGNORECASE), "weak prefix"),
    (re.compile(r"(qwerty|asdfgh|12345|abc123)", re.IGNORECASE), "keyboard sequence"),
)


class SecretEntropyValidator:
    """Generates client secrets and rejects weak ones."""

    def __init__(
        self,
        min_length: int = MIN_SECRET_LENGTH,
        min_entropy: float = MIN_ENTROPY_BITS_PER_CHAR,
    ) -> None:
        self.min_length = min_length
        self.min_entropy = min_entropy

    def generate(self, length: int = MIN_SECRET_BYTES) -> str:
        """Generate a random secret.

        Args:
            length: Number of random bytes (at least 32).

        Returns:
            The bytes encoded as unpadded base64url. Draws that happen to
            trip a weak-pattern rule are discarded.

        Raises:
            ValueError: If fewer than 32 bytes are requested, or no draw
                passes validation.
        """
        if length < MIN_SECRET_BYTES:
            raise ValueError(f"Secret length must be at least {MIN_SECRET_BYTES} bytes")
        for _ in range(GENERATION_ATTEMPTS):
            raw = secrets.token_bytes(length)
            candidate = base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")
            if self.is_valid(candidate):
                return candidate
        raise ValueError("Could not generate a secret that passes validation")

    def errors(self, secret: str) -> list[str]:
        """Return every rule the secret violates. Empty if it is acceptable."""
        if len(secret) < self.min_length:
            # The remaining checks are meaningless on a short secret
            return [f"Secret is too short (minimum {self.min_length} characters)"]

        errors: list[str] = []
        for pattern, label in WEAK_PATTERNS:
            if pattern.search(secret):
                errors.append(f"Secret contains a weak pattern: {label}")
        if self._has_monotonic_run(secret):
            errors.append("Secret contains a weak pattern: sequential characters")

        entropy = self.calculate_entropy(secret)
        if entropy < self.min_entropy:
            errors.append(
                f"Secret entropy is too low ({entropy:.2f} bits/char, "
                f"minimum {self.min_entropy})"
            )
        return errors

    def validate(self, secret: str) -> None:
        """Validate a secret.

        Raises:
            WeakClientSecretError: If any rule is violated.
        """
        errors = self.errors(secret)
        if errors:
            raise WeakClientSecretError(errors)

    def is_valid(self, secret: str) -> bool:
        return not self.errors(secret)

    @staticmethod
    def calculate_entropy(value: str) -> float:
        """Shannon entropy of the character distribution, in bits per character."""
        if not value:
            return 0.0
        length = len(value)
        entropy = 0.0
        for count in Counter(value).values():
            probability = count / length
            entropy -= probability * math.log2(probability)
        return entropy

    @staticmethod
    def _has_monotonic_run(value: str) -> bool:
        ascending = descending = 1
        for previous, current in zip(value, value[1:]):
            step = ord(current) - ord(previous)
            ascending = ascending + 1 if step == 1 else 1
            descending = descending + 1 if step == -1 else 1
            if ascending >= SEQUENCE_RUN_LENGTH or descending >= SEQUENCE_RUN_LENGTH:
                return True
        return False


default_secret_validator = SecretEntropyValidator()
