"""Storage interfaces the engine depends on.

Implementations hash authorization codes and refresh tokens themselves.
Callers always pass plaintext values and never receive a hash back.
"""

from datetime import datetime
from typing import Protocol

from tokensmith.domain.entities import (
    AuditEvent,
    AuthorizationCode,
    Client,
    RefreshToken,
    SigningKey,
    TokenBlacklistEntry,
)


class ClientRepository(Protocol):
    async def create(self, client: Client) -> Client: ...

    async def find_by_public_id(self, public_id: str) -> Client | None: ...


class AuthorizationCodeRepository(Protocol):
    async def create(self, code: AuthorizationCode) -> AuthorizationCode: ...

    async def find_by_code(self, code: str) -> AuthorizationCode | None: ...

    async def consume(self, code: str) -> bool:
        """Delete the code. True only for the single caller that removed it."""
        ...

    async def delete_expired(self) -> int: ...


class RefreshTokenRepository(Protocol):
    async def create(self, token: RefreshToken) -> RefreshToken: ...

    async def find_by_token(self, token: str) -> RefreshToken | None: ...

    async def revoke(self, token: str) -> bool:
        """Revoke a still-active token. True only if this call revoked it."""
        ...

    async def find_active_by_user(self, user_id: str) -> list[RefreshToken]: ...

    async def revoke_all_for_user(self, user_id: str) -> int: ...

    async def delete_expired(self) -> int: ...


class TokenBlacklistRepository(Protocol):
    async def add(self, entry: TokenBlacklistEntry) -> TokenBlacklistEntry: ...

    async def is_blacklisted(self, jti: str) -> bool: ...

    async def delete_expired(self) -> int: ...


class KeyRepository(Protocol):
    async def create(self, key: SigningKey) -> SigningKey: ...

    async def find_active_keys(self) -> list[SigningKey]:
        """Active, unexpired keys, newest first."""
        ...

    async def find_by_kid(self, kid: str) -> SigningKey | None: ...

    async def find_all(self) -> list[SigningKey]: ...

    async def activate(self, kid: str) -> bool: ...

    async def deactivate(self, kid: str, retain_until: datetime | None = None) -> bool: ...

    async def delete_expired(self) -> int: ...


class AuditLogger(Protocol):
    def log(self, event: AuditEvent) -> None: ...

