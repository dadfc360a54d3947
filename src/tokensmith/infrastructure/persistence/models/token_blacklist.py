"""SQLAlchemy model for revoked access tokens."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from tokensmith.infrastructure.persistence.database import Base


class TokenBlacklistModel(Base):
    """SQLAlchemy model for the oauth_token_blacklist table.

    Attributes:
        id: Primary key (UUID string).
        jti: The revoked token's jti claim.
        expires_at: The revoked token's exp claim; the row can be pruned after it.
        revoked_at: When the token was revoked.
        reason: Optional reason for revocation.
    """

    __tablename__ = "oauth_token_blacklist"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    jti: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
        comment="JWT ID of the revoked token",
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )
    revoked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    reason: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Optional reason for revocation",
    )

    def __repr__(self) -> str:
        return f"<TokenBlacklist(jti={self.jti})>"
