"""client_credentials grant (RFC 6749 Section 4.4)."""

from tokensmith.application.grants.base import GrantHandler
from tokensmith.domain.entities import GrantType, TokenRequest, TokenResponse
from tokensmith.domain.exceptions import UnauthorizedClientError


class ClientCredentialsGrantHandler(GrantHandler):
    """Issues an access token to a confidential client acting for itself.

    ``sub`` and ``aud`` are both the client id. No refresh token is issued.
    """

    grant_type = GrantType.CLIENT_CREDENTIALS

    async def _handle(self, request: TokenRequest) -> TokenResponse:
        client = await self.authenticator.authenticate(request)
        if not client.is_confidential:
            raise UnauthorizedClientError(reason="public clients cannot use client_credentials")
        self.ensure_grant_allowed(client)

        scopes = self.narrow_scopes(request.get("scope"), client.scopes)
        issued = await self.issue_access_token(client.public_id, client, scopes)
        self.audit_access_token(issued, client.public_id, client, scopes, request)

        return TokenResponse(
            access_token=issued.token,
            expires_in=self.access_token_ttl_seconds,
            scope=" ".join(scopes),
        )
