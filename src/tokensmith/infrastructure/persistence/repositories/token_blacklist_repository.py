"""Repository for revoked access token identifiers."""

from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from tokensmith.domain.entities import TokenBlacklistEntry
from tokensmith.infrastructure.persistence.models import TokenBlacklistModel
from tokensmith.infrastructure.persistence.repositories.base import as_utc, wrap_storage_errors


class TokenBlacklistRepository:
    """Repository for token blacklist database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @wrap_storage_errors
    async def add(self, entry: TokenBlacklistEntry) -> TokenBlacklistEntry:
        """Blacklist a token id.

        Raises:
            RepositoryError: If the jti is already blacklisted.
        """
        model = TokenBlacklistModel(
            id=entry.id,
            jti=entry.jti,
            expires_at=entry.expires_at,
            revoked_at=entry.revoked_at,
            reason=entry.reason,
        )
        self._session.add(model)
        await self._session.flush()
        return entry

    @wrap_storage_errors
    async def is_blacklisted(self, jti: str) -> bool:
        stmt = select(TokenBlacklistModel.id).where(TokenBlacklistModel.jti == jti)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @wrap_storage_errors
    async def find_by_jti(self, jti: str) -> TokenBlacklistEntry | None:
        stmt = select(TokenBlacklistModel).where(TokenBlacklistModel.jti == jti)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        if model is None:
            return None
        return TokenBlacklistEntry(
            id=model.id,
            jti=model.jti,
            expires_at=as_utc(model.expires_at),
            revoked_at=as_utc(model.revoked_at),
            reason=model.reason,
        )

    @wrap_storage_errors
    async def delete_expired(self) -> int:
        """Delete entries whose token has expired on its own.

        Returns:
            Number of entries deleted.
        """
        now = datetime.now(timezone.utc)
        stmt = delete(TokenBlacklistModel).where(TokenBlacklistModel.expires_at < now)
        result = await self._session.execute(stmt)
        return result.rowcount
