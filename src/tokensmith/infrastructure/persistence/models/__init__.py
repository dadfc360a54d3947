"""SQLAlchemy models for the Tokensmith tables.

All models inherit from the Base class defined in database.py.
"""

from tokensmith.infrastructure.persistence.models.authorization_code import (
    AuthorizationCodeModel,
)
from tokensmith.infrastructure.persistence.models.client import ClientModel
from tokensmith.infrastructure.persistence.models.refresh_token import RefreshTokenModel
from tokensmith.infrastructure.persistence.models.signing_key import SigningKeyModel
from tokensmith.infrastructure.persistence.models.token_blacklist import TokenBlacklistModel

__all__ = [
    "AuthorizationCodeModel",
    "ClientModel",
    "RefreshTokenModel",
    "SigningKeyModel",
    "TokenBlacklistModel",
]
