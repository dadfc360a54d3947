"""refresh_token grant (RFC 6749 Section 6) with rotation."""

from sqlalchemy.ext.asyncio import AsyncSession

from tokensmith.application.grants.base import GrantHandler
from tokensmith.core.logging import get_logger
from tokensmith.domain.entities import (
    AuditEvent,
    AuditEventType,
    GrantType,
    TokenRequest,
    TokenResponse,
)
from tokensmith.domain.exceptions import InvalidGrantError
from tokensmith.domain.repositories import AuditLogger
from tokensmith.domain.services.refresh_token_service import RefreshTokenService
from tokensmith.infrastructure.auth.client_authenticator import ClientAuthenticator
from tokensmith.infrastructure.auth.jwt_issuer import JwtIssuer

logger = get_logger(__name__)


class RefreshTokenGrantHandler(GrantHandler):
    """Exchanges a refresh token for a new access token and a new refresh token.

    A narrower ``scope`` may be requested; it applies to the access token only.
    The replacement refresh token keeps the scopes originally granted.
    """

    grant_type = GrantType.REFRESH_TOKEN

    def __init__(
        self,
        session: AsyncSession,
        authenticator: ClientAuthenticator,
        issuer: JwtIssuer,
        refresh_tokens: RefreshTokenService,
        access_token_ttl_seconds: int,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        super().__init__(session, authenticator, issuer, access_token_ttl_seconds, audit_logger)
        self.refresh_tokens = refresh_tokens

    async def _handle(self, request: TokenRequest) -> TokenResponse:
        token = self.require(request, "refresh_token")
        client = await self.authenticator.authenticate(request)
        self.ensure_grant_allowed(client)

        stored = await self.refresh_tokens.find(token)
        if stored is None:
            raise self._rejection(request, client.public_id, "refresh token not found")

        try:
            self.refresh_tokens.check_usable(stored, client)
        except InvalidGrantError as e:
            suspicious = stored.is_revoked
            if suspicious:
                logger.warning(
                    "Revoked refresh token presented again",
                    token_id=stored.id,
                    user_id=stored.user_id,
                    client_id=client.public_id,
                )
            raise self._rejection(request, client.public_id, e.reason, suspicious) from e

        scopes = self.narrow_scopes(request.get("scope"), stored.scopes)

        try:
            replacement = await self.refresh_tokens.rotate(stored)
        except InvalidGrantError as e:
            raise self._rejection(request, client.public_id, e.reason, suspicious=True) from e
        issued = await self.issue_access_token(stored.user_id, client, scopes)
        await self.commit()

        self.audit(
            AuditEvent.token_revoked(
                AuditEventType.REFRESH_TOKEN_REVOKED,
                token_identifier=stored.id,
                reason="rotated",
                user_id=stored.user_id,
                client_id=client.public_id,
            )
        )
        self.audit(
            AuditEvent.refresh_token_issued(
                user_id=stored.user_id,
                client_id=client.public_id,
                token_id=replacement.id,
                scopes=replacement.scopes,
                ip_address=request.ip_address,
            )
        )
        self.audit_access_token(issued, stored.user_id, client, scopes, request)
        return TokenResponse(
            access_token=issued.token,
            expires_in=self.access_token_ttl_seconds,
            refresh_token=replacement.token,
            scope=" ".join(scopes),
        )

    def _rejection(
        self, request: TokenRequest, client_id: str, reason: str, suspicious: bool = False
    ) -> InvalidGrantError:
        self.audit(
            AuditEvent.invalid_grant(
                f"Refresh token rejected: {reason}",
                client_id=client_id,
                suspicious=suspicious,
                grant_type=self.grant_type.value,
                ip_address=request.ip_address,
            )
        )
        return InvalidGrantError(reason=reason)
