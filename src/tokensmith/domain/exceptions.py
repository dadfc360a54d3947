"""Exceptions raised by the token engine.

OAuth2 errors carry the RFC 6749 Section 5.2 error code and are meant to be
serialized to the client as-is. Everything else here is an internal fault the
HTTP boundary should report as a generic server error.
"""

from enum import Enum
from typing import Any


class OAuth2ErrorCode(str, Enum):
    """Machine-readable error codes (RFC 6749 Section 5.2)."""

    INVALID_REQUEST = "invalid_request"
    INVALID_CLIENT = "invalid_client"
    INVALID_GRANT = "invalid_grant"
    UNAUTHORIZED_CLIENT = "unauthorized_client"
    UNSUPPORTED_GRANT_TYPE = "unsupported_grant_type"
    INVALID_SCOPE = "invalid_scope"
    SERVER_ERROR = "server_error"


class OAuth2Error(Exception):
    """Base class for errors returned from the token endpoint.

    Attributes:
        error: RFC 6749 error code.
        description: Human-readable text safe to show to the client.
        reason: Internal detail for logs and audit events. Never sent to the client.
        error_uri: Optional documentation link.
        http_status: HTTP status the boundary should respond with.
    """

    error: OAuth2ErrorCode = OAuth2ErrorCode.SERVER_ERROR
    http_status: int = 400
    default_description: str = "The request could not be processed."

    def __init__(
        self,
        description: str | None = None,
        reason: str | None = None,
        error_uri: str | None = None,
    ):
        self.description = description or self.default_description
        self.reason = reason or self.description
        self.error_uri = error_uri
        super().__init__(self.description)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON error body (RFC 6749 Section 5.2)."""
        body: dict[str, Any] = {
            "error": self.error.value,
            "error_description": self.description,
        }
        if self.error_uri:
            body["error_uri"] = self.error_uri
        return body


class InvalidRequestError(OAuth2Error):
    """A required parameter is missing or malformed."""

    error = OAuth2ErrorCode.INVALID_REQUEST
    default_description = "The request is missing a required parameter or is malformed."


class InvalidClientError(OAuth2Error):
    """Client authentication failed.

    The public description is the same for every cause so that responses do not
    reveal whether the client exists. Pass the cause as ``reason``.
    """

    error = OAuth2ErrorCode.INVALID_CLIENT
    http_status = 401
    default_description = "Client authentication failed."

    def __init__(self, reason: str | None = None, error_uri: str | None = None):
        super().__init__(reason=reason, error_uri=error_uri)


class InvalidGrantError(OAuth2Error):
    """The grant is invalid, expired, revoked, or bound to another client."""

    error = OAuth2ErrorCode.INVALID_GRANT
    default_description = "The provided authorization grant is invalid, expired, or revoked."


class UnauthorizedClientError(OAuth2Error):
    """The client is not allowed to use the requested grant type."""

    error = OAuth2ErrorCode.UNAUTHORIZED_CLIENT
    default_description = "The client is not authorized to use this grant type."


class UnsupportedGrantTypeError(OAuth2Error):
    error = OAuth2ErrorCode.UNSUPPORTED_GRANT_TYPE
    default_description = "The authorization grant type is not supported."


class InvalidScopeError(OAuth2Error):
    error = OAuth2ErrorCode.INVALID_SCOPE
    default_description = "The requested scope is invalid, unknown, or exceeds the granted scope."


class ServerError(OAuth2Error):
    """An internal failure surfaced through the token endpoint."""

    error = OAuth2ErrorCode.SERVER_ERROR
    http_status = 500
    default_description = "The authorization server encountered an unexpected condition."


class RepositoryError(Exception):
    """Raised by repositories when the underlying store fails."""


class WeakClientSecretError(ValueError):
    """Raised when a client secret does not meet strength requirements.

    Attributes:
        errors: Every rule the secret violated.
    """

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("; ".join(errors))
