"""Repository for signing keys."""

from datetime import datetime, timezone

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tokensmith.domain.entities import SigningAlgorithm, SigningKey
from tokensmith.infrastructure.persistence.models import SigningKeyModel
from tokensmith.infrastructure.persistence.repositories.base import as_utc, wrap_storage_errors


class KeyRepository:
    """Repository for signing key database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self._session = session

    def _to_model(self, entity: SigningKey) -> SigningKeyModel:
        return SigningKeyModel(
            id=entity.id,
            kid=entity.kid,
            algorithm=entity.algorithm.value,
            public_key=entity.public_key,
            private_key_encrypted=entity.private_key_encrypted,
            is_active=entity.is_active,
            created_at=entity.created_at,
            expires_at=entity.expires_at,
        )

    def _to_entity(self, model: SigningKeyModel) -> SigningKey:
        return SigningKey(
            id=model.id,
            kid=model.kid,
            algorithm=SigningAlgorithm(model.algorithm),
            public_key=model.public_key,
            private_key_encrypted=model.private_key_encrypted,
            is_active=model.is_active,
            created_at=as_utc(model.created_at),
            expires_at=as_utc(model.expires_at),
        )

    @wrap_storage_errors
    async def create(self, key: SigningKey) -> SigningKey:
        model = self._to_model(key)
        self._session.add(model)
        await self._session.flush()
        return self._to_entity(model)

    @wrap_storage_errors
    async def find_active_keys(self) -> list[SigningKey]:
        """Active keys that have not expired, newest first."""
        now = datetime.now(timezone.utc)
        stmt = (
            select(SigningKeyModel)
            .where(
                SigningKeyModel.is_active == True,  # noqa: E712
                SigningKeyModel.expires_at > now,
            )
            .order_by(SigningKeyModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars().all()]

    @wrap_storage_errors
    async def find_by_kid(self, kid: str) -> SigningKey | None:
        """Look up a key by kid, active or not."""
        stmt = select(SigningKeyModel).where(SigningKeyModel.kid == kid)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    @wrap_storage_errors
    async def find_all(self) -> list[SigningKey]:
        stmt = select(SigningKeyModel).order_by(SigningKeyModel.created_at.desc())
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars().all()]

    @wrap_storage_errors
    async def activate(self, kid: str) -> bool:
        stmt = update(SigningKeyModel).where(SigningKeyModel.kid == kid).values(is_active=True)
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    @wrap_storage_errors
    async def deactivate(self, kid: str, retain_until: datetime | None = None) -> bool:
        """Stop a key from signing new tokens.

        Args:
            kid: Key to deactivate.
            retain_until: New ``expires_at``; the key stays resolvable by kid
                until then. Left unchanged when None.

        Returns:
            True if the key exists.
        """
        values: dict[str, object] = {"is_active": False}
        if retain_until is not None:
            values["expires_at"] = retain_until
        stmt = update(SigningKeyModel).where(SigningKeyModel.kid == kid).values(**values)
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    @wrap_storage_errors
    async def delete_expired(self) -> int:
        """Delete inactive keys past their expiry.

        Active keys are never deleted, even once expired.

        Returns:
            Number of keys deleted.
        """
        now = datetime.now(timezone.utc)
        stmt = delete(SigningKeyModel).where(
            SigningKeyModel.is_active == False,  # noqa: E712
            SigningKeyModel.expires_at < now,
        )
        result = await self._session.execute(stmt)
        return result.rowcount
