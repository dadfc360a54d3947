"""Client authentication and JWT access token handling."""

from tokensmith.infrastructure.auth.access_token_decoder import (
    AccessTokenDecoder,
    InvalidAccessTokenError,
)
from tokensmith.infrastructure.auth.client_authenticator import ClientAuthenticator
from tokensmith.infrastructure.auth.jwt_issuer import (
    IssuedAccessToken,
    JwtIssuer,
    JwtPayload,
)
from tokensmith.infrastructure.auth.signing_key_selector import (
    JWTError,
    NoActiveKeyError,
    SigningKeyError,
    SigningKeySelector,
)

__all__ = [
    "AccessTokenDecoder",
    "ClientAuthenticator",
    "InvalidAccessTokenError",
    "IssuedAccessToken",
    "JWTError",
    "JwtIssuer",
    "JwtPayload",
    "NoActiveKeyError",
    "SigningKeyError",
    "SigningKeySelector",
]
