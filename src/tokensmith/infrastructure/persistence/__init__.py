"""Persistence layer: engine management, ORM models and repositories."""

from tokensmith.infrastructure.persistence.database import (
    Base,
    DatabaseManager,
    close_database,
    get_db_manager,
    init_database,
)

__all__ = [
    "Base",
    "DatabaseManager",
    "close_database",
    "get_db_manager",
    "init_database",
]
