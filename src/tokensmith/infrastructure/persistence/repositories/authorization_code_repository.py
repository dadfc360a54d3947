"""Repository for authorization codes.

Codes are stored and looked up by their HMAC only. Consumption is a single
DELETE whose row count tells the caller whether it won the race.
"""

from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from tokensmith.domain.entities import AuthorizationCode
from tokensmith.infrastructure.persistence.models import AuthorizationCodeModel
from tokensmith.infrastructure.persistence.repositories.base import as_utc, wrap_storage_errors
from tokensmith.infrastructure.security.token_hasher import TokenHasher


class AuthorizationCodeRepository:
    """Repository for authorization code database operations."""

    def __init__(self, session: AsyncSession, hasher: TokenHasher) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
            hasher: Keyed hasher applied to every code before it hits the database.
        """
        self._session = session
        self._hasher = hasher

    def _to_model(self, entity: AuthorizationCode) -> AuthorizationCodeModel:
        return AuthorizationCodeModel(
            id=entity.id,
            code_hash=self._hasher.hash(entity.code),
            client_id=entity.client_id,
            user_id=entity.user_id,
            redirect_uri=entity.redirect_uri,
            scopes=list(entity.scopes),
            code_challenge=entity.code_challenge,
            code_challenge_method=entity.code_challenge_method,
            expires_at=entity.expires_at,
            created_at=entity.created_at,
        )

    def _to_entity(self, model: AuthorizationCodeModel, code: str) -> AuthorizationCode:
        return AuthorizationCode(
            id=model.id,
            code=code,
            client_id=model.client_id,
            user_id=model.user_id,
            redirect_uri=model.redirect_uri,
            scopes=list(model.scopes or []),
            code_challenge=model.code_challenge,
            code_challenge_method=model.code_challenge_method,
            expires_at=as_utc(model.expires_at),
            created_at=as_utc(model.created_at),
        )

    @wrap_storage_errors
    async def create(self, code: AuthorizationCode) -> AuthorizationCode:
        """Store a new authorization code.

        Args:
            code: The entity carrying the plaintext code.

        Returns:
            The stored entity, still carrying the plaintext code.
        """
        model = self._to_model(code)
        self._session.add(model)
        await self._session.flush()
        return self._to_entity(model, code.code)

    @wrap_storage_errors
    async def find_by_code(self, code: str) -> AuthorizationCode | None:
        """Look up an authorization code by its plaintext value."""
        stmt = select(AuthorizationCodeModel).where(
            AuthorizationCodeModel.code_hash == self._hasher.hash(code)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model, code) if model else None

    @wrap_storage_errors
    async def consume(self, code: str) -> bool:
        """Delete a code so it can never be exchanged again.

        Returns:
            True if this call removed the row, False if it was already gone.
        """
        stmt = delete(AuthorizationCodeModel).where(
            AuthorizationCodeModel.code_hash == self._hasher.hash(code)
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    @wrap_storage_errors
    async def delete_expired(self) -> int:
        """Delete all expired codes.

        Returns:
            Number of codes deleted.
        """
        now = datetime.now(timezone.utc)
        stmt = delete(AuthorizationCodeModel).where(AuthorizationCodeModel.expires_at < now)
        result = await self._session.execute(stmt)
        return result.rowcount
