"""Domain entities for Tokensmith.

Entities are plain Python dataclasses that represent core OAuth2 concepts.
They have no dependencies on infrastructure or external frameworks.
"""

from tokensmith.domain.entities.audit_event import AuditEvent, AuditEventType
from tokensmith.domain.entities.authorization_code import AuthorizationCode
from tokensmith.domain.entities.client import Client
from tokensmith.domain.entities.refresh_token import RefreshToken
from tokensmith.domain.entities.signing_key import SigningAlgorithm, SigningKey
from tokensmith.domain.entities.token_blacklist import TokenBlacklistEntry
from tokensmith.domain.entities.token_request import GrantType, TokenRequest, TokenResponse

__all__ = [
    "AuditEvent",
    "AuditEventType",
    "AuthorizationCode",
    "Client",
    "GrantType",
    "RefreshToken",
    "SigningAlgorithm",
    "SigningKey",
    "TokenBlacklistEntry",
    "TokenRequest",
    "TokenResponse",
]
