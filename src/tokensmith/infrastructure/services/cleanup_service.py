"""Expiry sweep for codes, refresh tokens, blacklist entries and retired keys."""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from tokensmith.core.logging import get_logger
from tokensmith.domain.repositories import (
    AuthorizationCodeRepository,
    KeyRepository,
    RefreshTokenRepository,
    TokenBlacklistRepository,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class CleanupResult:
    authorization_codes: int
    refresh_tokens: int
    blacklist_entries: int
    signing_keys: int

    @property
    def total(self) -> int:
        return (
            self.authorization_codes
            + self.refresh_tokens
            + self.blacklist_entries
            + self.signing_keys
        )


class CleanupService:
    """Deletes rows that can no longer affect any token decision."""

    def __init__(
        self,
        session: AsyncSession,
        authorization_codes: AuthorizationCodeRepository,
        refresh_tokens: RefreshTokenRepository,
        blacklist: TokenBlacklistRepository,
        keys: KeyRepository,
    ) -> None:
        self.session = session
        self.authorization_codes = authorization_codes
        self.refresh_tokens = refresh_tokens
        self.blacklist = blacklist
        self.keys = keys

    async def run(self) -> CleanupResult:
        """Run every sweep in one transaction.

        Returns:
            How many rows each sweep deleted.
        """
        result = CleanupResult(
            authorization_codes=await self.authorization_codes.delete_expired(),
            refresh_tokens=await self.refresh_tokens.delete_expired(),
            blacklist_entries=await self.blacklist.delete_expired(),
            signing_keys=await self.keys.delete_expired(),
        )
        await self.session.commit()
        logger.info(
            "Expired records deleted",
            authorization_codes=result.authorization_codes,
            refresh_tokens=result.refresh_tokens,
            blacklist_entries=result.blacklist_entries,
            signing_keys=result.signing_keys,
        )
        return result
