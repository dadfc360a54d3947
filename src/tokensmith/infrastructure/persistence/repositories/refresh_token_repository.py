"""Repository for refresh tokens.

Tokens are stored and looked up by their HMAC only.
"""

from datetime import datetime, timezone

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tokensmith.domain.entities import RefreshToken
from tokensmith.infrastructure.persistence.models import RefreshTokenModel
from tokensmith.infrastructure.persistence.repositories.base import as_utc, wrap_storage_errors
from tokensmith.infrastructure.security.token_hasher import TokenHasher


class RefreshTokenRepository:
    """Repository for refresh token database operations."""

    def __init__(self, session: AsyncSession, hasher: TokenHasher) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
            hasher: Keyed hasher applied to every token before it hits the database.
        """
        self._session = session
        self._hasher = hasher

    def _to_model(self, entity: RefreshToken) -> RefreshTokenModel:
        if entity.token is None:
            raise ValueError("Cannot store a refresh token without its plaintext value")
        return RefreshTokenModel(
            id=entity.id,
            token_hash=self._hasher.hash(entity.token),
            client_id=entity.client_id,
            user_id=entity.user_id,
            scopes=list(entity.scopes),
            expires_at=entity.expires_at,
            is_revoked=entity.is_revoked,
            created_at=entity.created_at,
        )

    def _to_entity(self, model: RefreshTokenModel, token: str | None = None) -> RefreshToken:
        return RefreshToken(
            id=model.id,
            token=token,
            client_id=model.client_id,
            user_id=model.user_id,
            scopes=list(model.scopes or []),
            expires_at=as_utc(model.expires_at),
            is_revoked=model.is_revoked,
            created_at=as_utc(model.created_at),
        )

    @wrap_storage_errors
    async def create(self, token: RefreshToken) -> RefreshToken:
        """Store a new refresh token.

        Args:
            token: The entity carrying the plaintext token.

        Returns:
            The stored entity, still carrying the plaintext token.
        """
        model = self._to_model(token)
        self._session.add(model)
        await self._session.flush()
        return self._to_entity(model, token.token)

    @wrap_storage_errors
    async def find_by_token(self, token: str) -> RefreshToken | None:
        """Look up a refresh token by its plaintext value, revoked or not."""
        stmt = select(RefreshTokenModel).where(
            RefreshTokenModel.token_hash == self._hasher.hash(token)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model, token) if model else None

    @wrap_storage_errors
    async def revoke(self, token: str) -> bool:
        """Revoke a token that is not revoked yet.

        Returns:
            True if this call revoked the token, False if it was unknown or
            already revoked.
        """
        stmt = (
            update(RefreshTokenModel)
            .where(
                RefreshTokenModel.token_hash == self._hasher.hash(token),
                RefreshTokenModel.is_revoked == False,  # noqa: E712
            )
            .values(is_revoked=True)
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    @wrap_storage_errors
    async def find_active_by_user(self, user_id: str) -> list[RefreshToken]:
        """Non-revoked, unexpired tokens of a user, newest first.

        The returned entities do not carry plaintext tokens.
        """
        now = datetime.now(timezone.utc)
        stmt = (
            select(RefreshTokenModel)
            .where(
                RefreshTokenModel.user_id == user_id,
                RefreshTokenModel.is_revoked == False,  # noqa: E712
                RefreshTokenModel.expires_at > now,
            )
            .order_by(RefreshTokenModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars().all()]

    @wrap_storage_errors
    async def revoke_all_for_user(self, user_id: str) -> int:
        """Revoke every active refresh token of a user.

        Returns:
            Number of tokens revoked.
        """
        stmt = (
            update(RefreshTokenModel)
            .where(
                RefreshTokenModel.user_id == user_id,
                RefreshTokenModel.is_revoked == False,  # noqa: E712
            )
            .values(is_revoked=True)
        )
        result = await self._session.execute(stmt)
        return result.rowcount

    @wrap_storage_errors
    async def delete_expired(self) -> int:
        """Delete all expired tokens, revoked or not.

        Returns:
            Number of tokens deleted.
        """
        now = datetime.now(timezone.utc)
        stmt = delete(RefreshTokenModel).where(RefreshTokenModel.expires_at < now)
        result = await self._session.execute(stmt)
        return result.rowcount
