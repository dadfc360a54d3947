"""Helpers shared by the SQLAlchemy repositories."""

import functools
from datetime import datetime, timezone
from typing import Awaitable, Callable, ParamSpec, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from tokensmith.domain.exceptions import RepositoryError

P = ParamSpec("P")
T = TypeVar("T")


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from SQLite."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def wrap_storage_errors(
    func: Callable[P, Awaitable[T]],
) -> Callable[P, Awaitable[T]]:
    """Re-raise SQLAlchemy failures as :class:`RepositoryError`."""

    @functools.wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        try:
            return await func(*args, **kwargs)
        except SQLAlchemyError as e:
            raise RepositoryError(f"{func.__qualname__} failed: {e}") from e

    return wrapper
