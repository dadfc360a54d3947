"""authorization_code grant (RFC 6749 Section 4.1.3, RFC 7636)."""

from sqlalchemy.ext.asyncio import AsyncSession

from tokensmith.application.grants.base import GrantHandler
from tokensmith.domain.entities import AuditEvent, GrantType, TokenRequest, TokenResponse
from tokensmith.domain.exceptions import (
    InvalidClientError,
    InvalidGrantError,
    InvalidRequestError,
)
from tokensmith.domain.repositories import AuditLogger
from tokensmith.domain.services.authorization_code_service import AuthorizationCodeService
from tokensmith.domain.services.refresh_token_service import RefreshTokenService
from tokensmith.infrastructure.auth.client_authenticator import ClientAuthenticator
from tokensmith.infrastructure.auth.jwt_issuer import JwtIssuer


class AuthorizationCodeGrantHandler(GrantHandler):
    """Exchanges an authorization code for an access and a refresh token.

    The code is validated against the authenticated client, redirect URI and
    PKCE verifier, then consumed. The consume, the new refresh token and the
    commit happen in one transaction, so a failed issuance leaves the code
    unused.
    """

    grant_type = GrantType.AUTHORIZATION_CODE

    def __init__(
        self,
        session: AsyncSession,
        authenticator: ClientAuthenticator,
        issuer: JwtIssuer,
        authorization_codes: AuthorizationCodeService,
        refresh_tokens: RefreshTokenService,
        access_token_ttl_seconds: int,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        super().__init__(session, authenticator, issuer, access_token_ttl_seconds, audit_logger)
        self.authorization_codes = authorization_codes
        self.refresh_tokens = refresh_tokens

    async def _handle(self, request: TokenRequest) -> TokenResponse:
        code = self.require(request, "code")
        redirect_uri = self.require(request, "redirect_uri")
        client_id = request.get("client_id")
        if client_id is None and request.header("Authorization") is None:
            raise InvalidRequestError("Missing required parameter: client_id")

        client = await self.authenticator.authenticate(request)
        if client_id is not None and client_id != client.public_id:
            raise InvalidClientError("client_id does not match the authenticated client")
        self.ensure_grant_allowed(client)

        try:
            auth_code = await self.authorization_codes.redeem(
                code,
                client,
                redirect_uri,
                code_verifier=request.get("code_verifier"),
            )
        except InvalidGrantError as e:
            self.audit(
                AuditEvent.invalid_grant(
                    f"Authorization code rejected: {e.reason}",
                    client_id=client.public_id,
                    grant_type=self.grant_type.value,
                    ip_address=request.ip_address,
                )
            )
            raise

        issued = await self.issue_access_token(auth_code.user_id, client, auth_code.scopes)
        refresh_token = await self.refresh_tokens.issue(
            client.public_id, auth_code.user_id, auth_code.scopes
        )
        await self.commit()

        self.audit_access_token(issued, auth_code.user_id, client, auth_code.scopes, request)
        self.audit(
            AuditEvent.refresh_token_issued(
                user_id=auth_code.user_id,
                client_id=client.public_id,
                token_id=refresh_token.id,
                scopes=refresh_token.scopes,
                ip_address=request.ip_address,
            )
        )
        return TokenResponse(
            access_token=issued.token,
            expires_in=self.access_token_ttl_seconds,
            refresh_token=refresh_token.token,
            scope=" ".join(auth_code.scopes),
        )
