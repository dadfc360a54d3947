"""SQLAlchemy implementations of the repository interfaces."""

from tokensmith.infrastructure.persistence.repositories.authorization_code_repository import (
    AuthorizationCodeRepository,
)
from tokensmith.infrastructure.persistence.repositories.client_repository import ClientRepository
from tokensmith.infrastructure.persistence.repositories.key_repository import KeyRepository
from tokensmith.infrastructure.persistence.repositories.refresh_token_repository import (
    RefreshTokenRepository,
)
from tokensmith.infrastructure.persistence.repositories.token_blacklist_repository import (
    TokenBlacklistRepository,
)

__all__ = [
    "AuthorizationCodeRepository",
    "ClientRepository",
    "KeyRepository",
    "RefreshTokenRepository",
    "TokenBlacklistRepository",
]
