"""Database layer for bookkeeper application."""

from bookkeeper.database.base import Database
from bookkeeper.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
