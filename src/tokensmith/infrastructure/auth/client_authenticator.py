"""Client authentication for the token endpoint.

Supports, in order of precedence:
1. HTTP Basic credentials in the Authorization header
2. ``client_id`` and ``client_secret`` in the request body
3. A bare ``client_id`` for public clients

Every failure raises :class:`InvalidClientError` with the same public
description, and every path that looks a client up performs one Argon2
verification, so unknown clients and wrong secrets cost the same time.
"""

import base64
import binascii
from urllib.parse import unquote_plus

from tokensmith.core.logging import get_logger
from tokensmith.domain.entities import AuditEvent, Client, TokenRequest
from tokensmith.domain.exceptions import InvalidClientError
from tokensmith.domain.repositories import AuditLogger, ClientRepository
from tokensmith.infrastructure.security import secret_hasher

logger = get_logger(__name__)


class ClientAuthenticator:
    """Resolves and authenticates the client making a token request."""

    def __init__(
        self,
        client_repository: ClientRepository,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        self.client_repository = client_repository
        self.audit_logger = audit_logger

    async def authenticate(self, request: TokenRequest) -> Client:
        """Authenticate the client of a token request.

        When an Authorization header is present it is the only method tried.

        Raises:
            InvalidClientError: If no method succeeds.
        """
        try:
            authorization = request.header("Authorization")
            if authorization is not None:
                return await self.authenticate_with_basic_auth(authorization)

            client_id = request.get("client_id")
            client_secret = request.get("client_secret")
            if client_id is None:
                raise InvalidClientError(reason="no client credentials presented")
            if client_secret is not None:
                return await self.authenticate_with_post_body(client_id, client_secret)
            return await self.authenticate_public_client(client_id)
        except InvalidClientError as e:
            logger.warning(
                "Client authentication failed",
                client_id=request.get("client_id"),
                reason=e.reason,
                ip_address=request.ip_address,
            )
            if self.audit_logger is not None:
                self.audit_logger.log(
                    AuditEvent.invalid_client_credentials(
                        client_id=request.get("client_id"),
                        reason=e.reason,
                        ip_address=request.ip_address,
                        user_agent=request.user_agent,
                    )
                )
            raise

    async def authenticate_with_basic_auth(self, authorization: str) -> Client:
        """Authenticate from an ``Authorization: Basic`` header value.

        Raises:
            InvalidClientError: If the header is malformed or the credentials
                are wrong. Malformed headers fail before any lookup.
        """
        client_id, client_secret = self.parse_basic_auth(authorization)
        return await self.authenticate_with_post_body(client_id, client_secret)

    @staticmethod
    def parse_basic_auth(authorization: str) -> tuple[str, str]:
        """Split a Basic header into client id and secret.

        Credentials are form-urlencoded before base64 (RFC 6749 Section 2.3.1),
        and the split happens on the first colon only.

        Raises:
            InvalidClientError: If the header is not valid Basic credentials.
        """
        scheme, _, encoded = authorization.strip().partition(" ")
        if scheme.lower() != "basic" or not encoded.strip():
            raise InvalidClientError(reason="authorization header is not Basic")
        try:
            decoded = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
        except (binascii.Error, ValueError) as e:
            raise InvalidClientError(reason="malformed Basic credentials") from e

        client_id, separator, client_secret = decoded.partition(":")
        if not separator:
            raise InvalidClientError(reason="Basic credentials missing colon separator")

        client_id = unquote_plus(client_id)
        client_secret = unquote_plus(client_secret)
        if not client_id or not client_secret:
            raise InvalidClientError(reason="Basic credentials missing client id or secret")
        return client_id, client_secret

    async def authenticate_with_post_body(self, client_id: str, client_secret: str) -> Client:
        """Authenticate a confidential client by id and secret.

        Raises:
            InvalidClientError: If the client is unknown, public, or the secret
                does not match.
        """
        client = await self.client_repository.find_by_public_id(client_id)
        if client is None:
            self.verify_client_secret(None, client_secret)
            raise InvalidClientError(reason="unknown client")
        if not client.is_confidential:
            self.verify_client_secret(None, client_secret)
            raise InvalidClientError(reason="public client presented a secret")
        if not self.verify_client_secret(client, client_secret):
            raise InvalidClientError(reason="invalid client secret")
        return client

    async def authenticate_public_client(self, client_id: str) -> Client:
        """Resolve a public client that presented only its id.

        Raises:
            InvalidClientError: If the client is unknown or confidential.
        """
        client = await self.client_repository.find_by_public_id(client_id)
        if client is None:
            self.verify_client_secret(None, "")
            raise InvalidClientError(reason="unknown client")
        if client.is_confidential:
            self.verify_client_secret(None, "")
            raise InvalidClientError(reason="confidential client cannot authenticate as public")
        return client

    def verify_client_secret(self, client: Client | None, client_secret: str) -> bool:
        """Verify a secret in constant time.

        Without a client or a stored hash, a verification against a reference
        hash is still performed and False is returned.
        """
        if client is None or not client.secret_hash:
            secret_hasher.burn_verification()
            return False
        return secret_hasher.verify_secret(client_secret, client.secret_hash)
