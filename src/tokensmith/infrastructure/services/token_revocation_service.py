"""Revocation of access and refresh tokens, and user logout."""

from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tokensmith.core.logging import get_logger
from tokensmith.domain.entities import AuditEvent, AuditEventType, Client, TokenBlacklistEntry
from tokensmith.domain.exceptions import RepositoryError
from tokensmith.domain.repositories import AuditLogger, TokenBlacklistRepository
from tokensmith.domain.services.refresh_token_service import RefreshTokenService
from tokensmith.infrastructure.auth.access_token_decoder import AccessTokenDecoder

logger = get_logger(__name__)


class TokenRevocationService:
    """Writes the blacklist and revokes refresh tokens.

    Access tokens are not stored, so revoking one means recording its ``jti``
    until the token's own ``exp``.
    """

    def __init__(
        self,
        session: AsyncSession,
        decoder: AccessTokenDecoder,
        blacklist_repository: TokenBlacklistRepository,
        refresh_tokens: RefreshTokenService,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        self.session = session
        self.decoder = decoder
        self.blacklist_repository = blacklist_repository
        self.refresh_tokens = refresh_tokens
        self.audit_logger = audit_logger

    async def revoke_access_token(self, token: str, reason: str | None = None) -> bool:
        """Blacklist an access token.

        Returns:
            True if the token was blacklisted by this call. False if it has
            already expired or was already blacklisted.

        Raises:
            InvalidAccessTokenError: If the token was not issued by this server.
            RepositoryError: If storage fails.
        """
        claims = await self.decoder.decode(token, verify_exp=False)
        expires_at = datetime.fromtimestamp(claims["exp"], tz=timezone.utc)
        if expires_at <= datetime.now(timezone.utc):
            return False

        jti = claims["jti"]
        if await self.blacklist_repository.is_blacklisted(jti):
            return False

        try:
            await self.blacklist_repository.add(
                TokenBlacklistEntry(jti=jti, expires_at=expires_at, reason=reason)
            )
            await self.commit()
        except RepositoryError:
            # A concurrent revocation may have inserted the same jti first
            await self.session.rollback()
            if await self.blacklist_repository.is_blacklisted(jti):
                logger.info("Access token already revoked", jti=jti)
                return False
            raise

        logger.info("Access token revoked", jti=jti, reason=reason)
        if self.audit_logger is not None:
            self.audit_logger.log(
                AuditEvent.token_revoked(
                    AuditEventType.ACCESS_TOKEN_REVOKED,
                    token_identifier=jti,
                    reason=reason or "revoked",
                    user_id=claims.get("sub"),
                    client_id=claims.get("client_id") or claims.get("aud"),
                )
            )
        return True

    async def commit(self) -> None:
        """Commit the session, rolling back and raising RepositoryError on failure."""
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise RepositoryError(f"commit failed: {e}") from e

    async def is_access_token_revoked(self, jti: str) -> bool:
        return await self.blacklist_repository.is_blacklisted(jti)

    async def revoke_refresh_token(self, token: str, client: Client) -> bool:
        """Revoke a refresh token on behalf of the client it was issued to.

        Tokens that are unknown or belong to another client are left alone
        and False is returned (RFC 7009 Section 2.2).
        """
        refresh_token = await self.refresh_tokens.find(token)
        if refresh_token is None or refresh_token.client_id != client.public_id:
            return False
        if not await self.refresh_tokens.revoke(token):
            return False
        await self.commit()

        logger.info("Refresh token revoked", token_id=refresh_token.id, client_id=client.public_id)
        if self.audit_logger is not None:
            self.audit_logger.log(
                AuditEvent.token_revoked(
                    AuditEventType.REFRESH_TOKEN_REVOKED,
                    token_identifier=refresh_token.id,
                    reason="client revocation",
                    user_id=refresh_token.user_id,
                    client_id=client.public_id,
                )
            )
        return True

    async def logout(self, user_id: str, access_token: str | None = None) -> int:
        """Revoke every refresh token of a user, and optionally their access token.

        Returns:
            Number of refresh tokens revoked.
        """
        revoked = await self.refresh_tokens.revoke_all_for_user(user_id)
        await self.commit()
        logger.info("User logged out", user_id=user_id, refresh_tokens_revoked=revoked)

        if self.audit_logger is not None and revoked:
            self.audit_logger.log(
                AuditEvent.token_revoked(
                    AuditEventType.REFRESH_TOKEN_REVOKED,
                    token_identifier=user_id,
                    reason="logout",
                    user_id=user_id,
                )
            )
        if access_token is not None:
            await self.revoke_access_token(access_token, reason="logout")
        return revoked
