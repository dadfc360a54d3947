"""Token blacklist entry entity."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
import uuid


@dataclass
class TokenBlacklistEntry:
    """A revoked access token, keyed by its ``jti`` claim.

    ``expires_at`` mirrors the token's own ``exp`` claim. Once it has passed the
    token is rejected by its expiry alone, so the entry can be pruned.
    """

    jti: str
    expires_at: datetime
    reason: str | None = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    revoked_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def is_expired(self) -> bool:
        return self.expires_at <= datetime.now(timezone.utc)
