"""Authorization code entity.

Short-lived, single-use codes issued at the authorization step and exchanged
for tokens at the token endpoint.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
import secrets
import uuid


@dataclass
class AuthorizationCode:
    """Authorization code entity.

    Attributes:
        code: Plaintext code. Only its hash is persisted.
        client_id: Public id of the client the code was issued to.
        user_id: The resource owner who granted access.
        redirect_uri: Redirect URI used in the authorization request.
        scopes: Granted scopes.
        expires_at: When the code expires.
        code_challenge: PKCE code challenge, if any.
        code_challenge_method: PKCE method (``S256`` or ``plain``), if any.
        id: Unique identifier (UUID string).
        created_at: When the code was created.
    """

    code: str
    client_id: str
    user_id: str
    redirect_uri: str
    scopes: list[str]
    expires_at: datetime
    code_challenge: str | None = None
    code_challenge_method: str | None = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def generate(
        cls,
        client_id: str,
        user_id: str,
        redirect_uri: str,
        scopes: list[str],
        expires_in_seconds: int = 600,
        code_challenge: str | None = None,
        code_challenge_method: str | None = None,
    ) -> "AuthorizationCode":
        """Create a code with a fresh 256-bit random value."""
        return cls(
            code=secrets.token_urlsafe(32),
            client_id=client_id,
            user_id=user_id,
            redirect_uri=redirect_uri,
            scopes=list(scopes),
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=expires_in_seconds),
            code_challenge=code_challenge,
            code_challenge_method=code_challenge_method,
        )

    @property
    def uses_pkce(self) -> bool:
        return self.code_challenge is not None

    def is_expired(self) -> bool:
        """Check if the code has expired."""
        return self.expires_at < datetime.now(timezone.utc)
