"""
Database module with abstraction layer.

This module provides:
- DatabaseAdapter interface: engine construction per backend
- SQLiteAdapter: SQLite-specific implementation (default)
- StorageGateway: the only component that talks to the tables

To add a new database backend:
1. Create a new adapter class inheriting from DatabaseAdapter
2. Implement all abstract methods
3. Update get_database_adapter() in sqlite_adapter.py to return the new adapter
"""

from shortlink.db.gateway import StorageGateway
from shortlink.db.interface import DatabaseAdapter
from shortlink.db.session import build_engine, build_session_maker

__all__ = [
    "DatabaseAdapter",
    "StorageGateway",
    "build_engine",
    "build_session_maker",
]
