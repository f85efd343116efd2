"""Storage layer: hosted PostgreSQL (asyncpg)."""

from polytimes.storage.database import Database, init_database, is_valid_dsn

__all__ = [
    "Database",
    "init_database",
    "is_valid_dsn",
]
