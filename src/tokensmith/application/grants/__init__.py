"""Grant type handlers and the dispatcher that selects between them."""

from tokensmith.application.grants.authorization_code import AuthorizationCodeGrantHandler
from tokensmith.application.grants.base import GrantHandler, parse_scope
from tokensmith.application.grants.client_credentials import ClientCredentialsGrantHandler
from tokensmith.application.grants.dispatcher import GrantHandlerDispatcher
from tokensmith.application.grants.refresh_token import RefreshTokenGrantHandler

__all__ = [
    "AuthorizationCodeGrantHandler",
    "ClientCredentialsGrantHandler",
    "GrantHandler",
    "GrantHandlerDispatcher",
    "RefreshTokenGrantHandler",
    "parse_scope",
]
