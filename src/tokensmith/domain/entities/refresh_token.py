"""Refresh token entity.

Refresh tokens are opaque random strings. Each use of a refresh token revokes
it and creates a new row (rotation), so a row is never un-revoked.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
import secrets
import uuid


@dataclass
class RefreshToken:
    """Refresh token entity.

    Attributes:
        client_id: Public id of the client the token was issued to.
        user_id: The resource owner.
        scopes: Scopes granted with the token.
        expires_at: When the token expires.
        token: Plaintext token, or None when loaded without it.
        is_revoked: Whether the token has been revoked.
        id: Unique identifier (UUID string).
        created_at: When the token was created.
    """

    client_id: str
    user_id: str
    scopes: list[str]
    expires_at: datetime
    token: str | None = None
    is_revoked: bool = False
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def generate(
        cls,
        client_id: str,
        user_id: str,
        scopes: list[str],
        expires_in_seconds: int,
    ) -> "RefreshToken":
        """Create a refresh token with a fresh 256-bit random value."""
        return cls(
            token=secrets.token_urlsafe(32),
            client_id=client_id,
            user_id=user_id,
            scopes=list(scopes),
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=expires_in_seconds),
        )

    def revoke(self) -> None:
        """Mark the token as revoked. There is no way back."""
        self.is_revoked = True

    def is_expired(self) -> bool:
        return self.expires_at <= datetime.now(timezone.utc)

    def is_valid(self) -> bool:
        """A token is valid while it is neither revoked nor expired."""
        return not self.is_revoked and not self.is_expired()
