"""OAuth2 client entity."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
import uuid


@dataclass
class Client:
    """A registered OAuth2 client.

    Attributes:
        public_id: The ``client_id`` presented on the wire (unique).
        name: Human-readable client name.
        redirect_uri: The single registered redirect URI.
        grant_types: Grant types the client may use.
        scopes: Scopes the client may request.
        is_confidential: Whether the client holds a verifiable secret.
        secret_hash: Argon2id hash of the client secret, None for public clients.
        pkce_required: Whether authorization codes for this client must use PKCE.
        id: Internal identifier (UUID string).
        created_at: Registration time.
        updated_at: Last modification time.
    """

    public_id: str
    name: str
    redirect_uri: str
    grant_types: list[str]
    scopes: list[str]
    is_confidential: bool
    secret_hash: str | None = None
    pkce_required: bool = False
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.is_confidential and not self.secret_hash:
            raise ValueError("Confidential clients must have a secret hash")
        if not self.is_confidential and self.secret_hash:
            raise ValueError("Public clients must not have a secret hash")

    def allows_grant_type(self, grant_type: str) -> bool:
        """Check whether the client is registered for a grant type."""
        return grant_type in self.grant_types

    def allows_scopes(self, scopes: list[str]) -> bool:
        """Check whether every scope is within the client's allowed scopes."""
        return set(scopes).issubset(self.scopes)
