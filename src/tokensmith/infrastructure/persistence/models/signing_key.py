"""SQLAlchemy model for JWT signing keys."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from tokensmith.infrastructure.persistence.database import Base


class SigningKeyModel(Base):
    """Signing key model.

    The private key is stored encrypted (AES-256-GCM). Inactive rows are kept
    until ``expires_at`` so that tokens they signed can still be verified.
    """

    __tablename__ = "oauth_keys"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    kid: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
        index=True,
    )
    algorithm: Mapped[str] = mapped_column(String(10), nullable=False)
    public_key: Mapped[str] = mapped_column(Text, nullable=False)
    private_key_encrypted: Mapped[str] = mapped_column(Text, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_oauth_keys_active_created", "is_active", "created_at"),
    )

    def __repr__(self) -> str:
        return f"SigningKeyModel(kid={self.kid!r}, algorithm={self.algorithm!r}, is_active={self.is_active!r})"
