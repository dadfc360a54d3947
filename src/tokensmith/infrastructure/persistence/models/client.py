"""SQLAlchemy model for registered OAuth2 clients."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from tokensmith.infrastructure.persistence.database import Base


class ClientModel(Base):
    """OAuth2 client model.

    Attributes:
        id: Primary key (UUID string).
        public_id: The client_id presented on the wire.
        secret_hash: Argon2id hash of the secret, NULL for public clients.
        name: Human-readable client name.
        redirect_uri: Registered redirect URI.
        grant_types: JSON list of allowed grant types.
        scopes: JSON list of allowed scopes.
        is_confidential: Whether the client holds a secret.
        pkce_required: Whether codes for this client must use PKCE.
    """

    __tablename__ = "oauth_clients"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    public_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
    )
    secret_hash: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    redirect_uri: Mapped[str] = mapped_column(Text, nullable=False)
    grant_types: Mapped[list[str]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=list,
    )
    scopes: Mapped[list[str]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=list,
    )
    is_confidential: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    pkce_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        onupdate=func.now(),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"ClientModel(public_id={self.public_id!r}, is_confidential={self.is_confidential!r})"
