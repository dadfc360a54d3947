"""Refresh token lifecycle: issuance, validation, rotation and revocation."""

from tokensmith.core.logging import get_logger
from tokensmith.domain.entities import Client, RefreshToken
from tokensmith.domain.exceptions import InvalidGrantError
from tokensmith.domain.repositories import RefreshTokenRepository

logger = get_logger(__name__)


class RefreshTokenService:
    """Service for refresh token business logic.

    Rotation never updates a row in place: the presented token is revoked with
    a conditional update and a new row is inserted. Both writes go through the
    caller's session and must be committed together.
    """

    def __init__(self, repository: RefreshTokenRepository, token_ttl_seconds: int) -> None:
        self.repository = repository
        self.token_ttl_seconds = token_ttl_seconds

    async def issue(self, client_id: str, user_id: str, scopes: list[str]) -> RefreshToken:
        """Create and store a new refresh token.

        Returns:
            The stored token, carrying its plaintext value.
        """
        token = RefreshToken.generate(
            client_id=client_id,
            user_id=user_id,
            scopes=scopes,
            expires_in_seconds=self.token_ttl_seconds,
        )
        return await self.repository.create(token)

    async def find(self, token: str) -> RefreshToken | None:
        return await self.repository.find_by_token(token)

    def check_usable(self, token: RefreshToken, client: Client) -> None:
        """Ensure a loaded token can be exchanged by a client.

        Raises:
            InvalidGrantError: If the token is revoked, expired, or bound to
                another client.
        """
        if token.is_revoked:
            raise InvalidGrantError(reason="refresh token revoked")
        if token.is_expired():
            raise InvalidGrantError(reason="refresh token expired")
        if token.client_id != client.public_id:
            raise InvalidGrantError(reason="refresh token was issued to another client")

    async def rotate(self, token: RefreshToken) -> RefreshToken:
        """Revoke a token and issue its replacement with the same scopes.

        Args:
            token: The presented token, carrying its plaintext value.

        Returns:
            The replacement token.

        Raises:
            InvalidGrantError: If the token was revoked by a concurrent request.
        """
        if token.token is None or not await self.repository.revoke(token.token):
            raise InvalidGrantError(reason="refresh token already rotated")
        token.revoke()
        replacement = await self.issue(token.client_id, token.user_id, token.scopes)
        logger.info(
            "Refresh token rotated",
            client_id=token.client_id,
            user_id=token.user_id,
            previous_id=token.id,
            token_id=replacement.id,
        )
        return replacement

    async def revoke(self, token: str) -> bool:
        return await self.repository.revoke(token)

    async def revoke_all_for_user(self, user_id: str) -> int:
        return await self.repository.revoke_all_for_user(user_id)

    async def find_active_by_user(self, user_id: str) -> list[RefreshToken]:
        return await self.repository.find_active_by_user(user_id)

    async def delete_expired(self) -> int:
        return await self.repository.delete_expired()
