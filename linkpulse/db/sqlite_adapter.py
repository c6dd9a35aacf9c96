"""
SQLite Database Adapter

This module implements the DatabaseAdapter interface for SQLite.
All SQLite-specific configuration and behavior is encapsulated here.

SQLite is a file-based database that's perfect for:
- Local development
- Testing
- Single-instance deployments
- Low to medium traffic applications

Key characteristics:
- File-based (single .db file)
- No server required
- Single writer at a time (file locking)
- Foreign keys are only enforced after PRAGMA foreign_keys=ON,
  which has to be issued on every new connection
"""

from typing import Any
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from linkpulse.db.interface import DatabaseAdapter


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite database adapter implementation.

    This adapter handles all SQLite-specific configuration and operations.
    SQLite uses file-based storage and has different characteristics than
    server-based databases like PostgreSQL.
    """

    def create_engine(self, database_url: str, **kwargs) -> AsyncEngine:
        """
        Create SQLite async engine with appropriate configuration.

        SQLite-specific configuration:
        - NullPool: Single connection (file-based, no pooling needed)
        - check_same_thread=False: Required for async SQLite operations
        - Foreign keys switched on for every connection

        Args:
            database_url: SQLite connection string (sqlite+aiosqlite:///...)
            **kwargs: Additional engine options (merged with SQLite defaults)

        Returns:
            Configured AsyncEngine for SQLite
        """
        connect_args = self.get_connect_args()

        engine_kwargs = self.get_engine_kwargs()
        engine_kwargs.update(kwargs)

        engine = create_async_engine(
            database_url,
            poolclass=self.get_pool_class(),
            connect_args=connect_args,
            **engine_kwargs
        )
        self.enforce_foreign_keys(engine)
        return engine

    def get_pool_class(self) -> type[NullPool]:
        """
        Get the connection pool class for SQLite.

        SQLite uses NullPool because a file-based database doesn't benefit
        from connection pooling and handles one writer at a time.

        Returns:
            NullPool class
        """
        return NullPool

    def get_connect_args(self) -> dict[str, Any]:
        return {
            "check_same_thread": False
        }

    def get_engine_kwargs(self) -> dict[str, Any]:
        return {
            "echo": False  # Set to True only for SQL debugging in development
        }

    def enforce_foreign_keys(self, engine: AsyncEngine) -> None:
        """
        Register a connect hook issuing PRAGMA foreign_keys=ON.

        The hook goes on the sync engine, which is where SQLAlchemy fires
        pool events for async engines.
        """
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    def get_dialect_name(self) -> str:
        return "sqlite"


class DefaultAdapter(DatabaseAdapter):
    """
    Adapter for server databases such as PostgreSQL.

    Uses SQLAlchemy's default queue pool, and foreign keys are always
    enforced by the server.
    """

    def get_pool_class(self):
        return None

    def get_connect_args(self) -> dict[str, Any]:
        return {}

    def get_engine_kwargs(self) -> dict[str, Any]:
        return {
            "echo": False,
            "pool_pre_ping": True,
        }

    def create_engine(self, database_url: str, **kwargs) -> AsyncEngine:
        engine_kwargs = self.get_engine_kwargs()
        engine_kwargs.update(kwargs)
        return create_async_engine(database_url, **engine_kwargs)

    def enforce_foreign_keys(self, engine: AsyncEngine) -> None:
        return None

    def get_dialect_name(self) -> str:
        return "postgresql"


def get_database_adapter(database_url: str = "sqlite") -> DatabaseAdapter:
    """
    Factory function to get the database adapter.

    Returns SQLiteAdapter for sqlite URLs and DefaultAdapter otherwise.

    Args:
        database_url: The configured connection string

    Returns:
        DatabaseAdapter instance
    """
    if database_url.startswith("sqlite"):
        return SQLiteAdapter()
    return DefaultAdapter()
