"""Repository for OAuth2 client records."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tokensmith.domain.entities import Client
from tokensmith.infrastructure.persistence.models import ClientModel
from tokensmith.infrastructure.persistence.repositories.base import as_utc, wrap_storage_errors


class ClientRepository:
    """Repository for client database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self._session = session

    def _to_model(self, entity: Client) -> ClientModel:
        return ClientModel(
            id=entity.id,
            public_id=entity.public_id,
            secret_hash=entity.secret_hash,
            name=entity.name,
            redirect_uri=entity.redirect_uri,
            grant_types=list(entity.grant_types),
            scopes=list(entity.scopes),
            is_confidential=entity.is_confidential,
            pkce_required=entity.pkce_required,
            created_at=entity.created_at,
        )

    def _to_entity(self, model: ClientModel) -> Client:
        return Client(
            id=model.id,
            public_id=model.public_id,
            secret_hash=model.secret_hash,
            name=model.name,
            redirect_uri=model.redirect_uri,
            grant_types=list(model.grant_types or []),
            scopes=list(model.scopes or []),
            is_confidential=model.is_confidential,
            pkce_required=model.pkce_required,
            created_at=as_utc(model.created_at),
            updated_at=as_utc(model.updated_at) if model.updated_at else None,
        )

    @wrap_storage_errors
    async def create(self, client: Client) -> Client:
        """Store a new client.

        Raises:
            RepositoryError: If the insert fails (e.g. duplicate public id).
        """
        model = self._to_model(client)
        self._session.add(model)
        await self._session.flush()
        return self._to_entity(model)

    @wrap_storage_errors
    async def find_by_public_id(self, public_id: str) -> Client | None:
        stmt = select(ClientModel).where(ClientModel.public_id == public_id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None
