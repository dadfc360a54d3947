"""Domain services for Tokensmith.

Services hold the token lifecycle rules that do not belong to a single entity.
"""

from tokensmith.domain.services.authorization_code_service import AuthorizationCodeService
from tokensmith.domain.services.client_registration_service import (
    ClientRegistrationService,
    RegisteredClient,
)
from tokensmith.domain.services.pkce_validator import PkceValidator, default_pkce_validator
from tokensmith.domain.services.refresh_token_service import RefreshTokenService
from tokensmith.domain.services.secret_entropy_validator import (
    SecretEntropyValidator,
    default_secret_validator,
)

__all__ = [
    "AuthorizationCodeService",
    "ClientRegistrationService",
    "PkceValidator",
    "RefreshTokenService",
    "RegisteredClient",
    "SecretEntropyValidator",
    "default_pkce_validator",
    "default_secret_validator",
]
