"""Authorization code lifecycle.

Codes are issued at the authorization step and redeemed exactly once at the
token endpoint. Redemption validates the code against the redeeming client
before the atomic consume, so a code presented by the wrong party is not
burned on their behalf.
"""

from tokensmith.core.logging import get_logger
from tokensmith.domain.entities import AuthorizationCode, Client, GrantType
from tokensmith.domain.exceptions import (
    InvalidGrantError,
    InvalidRequestError,
    InvalidScopeError,
    UnauthorizedClientError,
)
from tokensmith.domain.repositories import AuthorizationCodeRepository
from tokensmith.domain.services.pkce_validator import PkceValidator, default_pkce_validator

logger = get_logger(__name__)


class AuthorizationCodeService:
    """Issues, looks up, redeems and purges authorization codes."""

    def __init__(
        self,
        repository: AuthorizationCodeRepository,
        pkce_validator: PkceValidator = default_pkce_validator,
        code_ttl_seconds: int = 600,
        require_pkce_for_public_clients: bool = True,
    ) -> None:
        """Initialize the service.

        Args:
            repository: Authorization code storage.
            pkce_validator: PKCE challenge checker.
            code_ttl_seconds: Lifetime of newly issued codes.
            require_pkce_for_public_clients: Whether public clients must use PKCE
                even when their registration does not require it.
        """
        self.repository = repository
        self.pkce_validator = pkce_validator
        self.code_ttl_seconds = code_ttl_seconds
        self.require_pkce_for_public_clients = require_pkce_for_public_clients

    def pkce_required_for(self, client: Client) -> bool:
        if client.pkce_required:
            return True
        return not client.is_confidential and self.require_pkce_for_public_clients

    async def issue(
        self,
        client: Client,
        user_id: str,
        redirect_uri: str,
        scopes: list[str],
        code_challenge: str | None = None,
        code_challenge_method: str | None = None,
    ) -> AuthorizationCode:
        """Issue a code after the resource owner approved the request.

        Args:
            client: The client the code is issued to.
            user_id: The approving resource owner.
            redirect_uri: Redirect URI of the authorization request.
            scopes: Approved scopes.
            code_challenge: PKCE challenge, if the client sent one.
            code_challenge_method: PKCE method. Defaults to ``plain`` when a
                challenge is given without one (RFC 7636 Section 4.3).

        Returns:
            The stored code, carrying the plaintext value to hand to the client.

        Raises:
            UnauthorizedClientError: If the client may not use the code grant.
            InvalidRequestError: On redirect URI mismatch or bad PKCE parameters.
            InvalidScopeError: If no scope is given or a scope exceeds the
                client's registration.
        """
        if not client.allows_grant_type(GrantType.AUTHORIZATION_CODE.value):
            raise UnauthorizedClientError()
        if redirect_uri != client.redirect_uri:
            raise InvalidRequestError("redirect_uri does not match the registered value")
        if not scopes or not client.allows_scopes(scopes):
            raise InvalidScopeError()

        if code_challenge:
            code_challenge_method = code_challenge_method or "plain"
            if not self.pkce_validator.is_supported_method(code_challenge_method):
                raise InvalidRequestError("Unsupported code_challenge_method")
        elif self.pkce_required_for(client):
            raise InvalidRequestError("code_challenge is required for this client")
        else:
            code_challenge_method = None

        code = AuthorizationCode.generate(
            client_id=client.public_id,
            user_id=user_id,
            redirect_uri=redirect_uri,
            scopes=scopes,
            expires_in_seconds=self.code_ttl_seconds,
            code_challenge=code_challenge,
            code_challenge_method=code_challenge_method,
        )
        stored = await self.repository.create(code)
        logger.info(
            "Authorization code issued",
            client_id=client.public_id,
            user_id=user_id,
            pkce=stored.uses_pkce,
        )
        return stored

    async def find(self, code: str) -> AuthorizationCode | None:
        return await self.repository.find_by_code(code)

    async def consume(self, code: str) -> bool:
        return await self.repository.consume(code)

    def verify_pkce(self, code: AuthorizationCode, code_verifier: str | None) -> bool:
        """Check the verifier for a code. Codes without PKCE always pass."""
        if not code.uses_pkce:
            return True
        if not code_verifier:
            return False
        return self.pkce_validator.validate(
            code_verifier, code.code_challenge, code.code_challenge_method or "plain"
        )

    async def redeem(
        self,
        code: str,
        client: Client,
        redirect_uri: str,
        code_verifier: str | None = None,
    ) -> AuthorizationCode:
        """Validate a code for a client and consume it.

        Returns:
            The consumed code.

        Raises:
            InvalidGrantError: If the code is unknown, expired, bound to another
                client or redirect URI, fails PKCE, or was consumed concurrently.
        """
        auth_code = await self.repository.find_by_code(code)
        if auth_code is None:
            raise InvalidGrantError(reason="authorization code not found")
        if auth_code.is_expired():
            raise InvalidGrantError(reason="authorization code expired")
        if auth_code.client_id != client.public_id:
            raise InvalidGrantError(reason="authorization code was issued to another client")
        if auth_code.redirect_uri != redirect_uri:
            raise InvalidGrantError(reason="redirect_uri mismatch")
        if self.pkce_required_for(client) and not auth_code.uses_pkce:
            raise InvalidGrantError(reason="client requires PKCE but the code has no challenge")
        if not self.verify_pkce(auth_code, code_verifier):
            raise InvalidGrantError(reason="PKCE verification failed")

        if not await self.repository.consume(code):
            raise InvalidGrantError(reason="authorization code already used")
        return auth_code

    async def delete_expired(self) -> int:
        return await self.repository.delete_expired()
