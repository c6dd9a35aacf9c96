"""
Database module with abstraction layer.

This module provides:
- DatabaseAdapter interface: Abstract base class for database implementations
- SQLiteAdapter: SQLite-specific implementation (default)
- Session management: Database session creation and management

To add a new database backend:
1. Create a new adapter class inheriting from DatabaseAdapter
2. Implement all abstract methods
3. Update get_database_adapter() in sqlite_adapter.py to return the new adapter
"""

from linkpulse.db.interface import DatabaseAdapter
from linkpulse.db.session import get_session, async_session_maker, engine, create_tables

__all__ = [
    "DatabaseAdapter",
    "get_session",
    "async_session_maker",
    "engine",
    "create_tables",
]
