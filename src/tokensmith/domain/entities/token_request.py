"""Token endpoint request and response value objects."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


class GrantType(str, Enum):
    """Grant types handled by the token endpoint."""

    AUTHORIZATION_CODE = "authorization_code"
    REFRESH_TOKEN = "refresh_token"
    CLIENT_CREDENTIALS = "client_credentials"


@dataclass(frozen=True)
class TokenRequest:
    """A token request as handed over by the HTTP boundary.

    Attributes:
        parameters: Form parameters of the request body.
        headers: Request headers. Lookup through :meth:`header` is case-insensitive.
        ip_address: Client IP address, for audit events.
        user_agent: Client user agent, for audit events.
    """

    parameters: Mapping[str, str] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)
    ip_address: str | None = None
    user_agent: str | None = None

    def get(self, name: str) -> str | None:
        """Return a body parameter, treating blank values as absent."""
        value = self.parameters.get(name)
        if value is None or value == "":
            return None
        return value

    def header(self, name: str) -> str | None:
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None


@dataclass(frozen=True)
class TokenResponse:
    """Successful token response (RFC 6749 Section 5.1)."""

    access_token: str
    expires_in: int
    token_type: str = "Bearer"
    refresh_token: str | None = None
    scope: str | None = None
    additional_data: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON body returned by the token endpoint."""
        response: dict[str, Any] = {
            "access_token": self.access_token,
            "token_type": self.token_type,
            "expires_in": self.expires_in,
        }
        if self.refresh_token is not None:
            response["refresh_token"] = self.refresh_token
        if self.scope is not None:
            response["scope"] = self.scope
        response.update(self.additional_data)
        return response
