"""Database factory functions for creating database instances."""

import logging
import os
from pathlib import Path
from typing import Optional

from bookkeeper.database.sqlalchemy_db import SQLAlchemyDatabase

logger = logging.getLogger(__name__)


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, checks BOOKKEEPER_DB_PATH
            environment variable, then defaults to ~/.bookkeeper/bookkeeper.db

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        database_path = os.environ.get("BOOKKEEPER_DB_PATH")

    if database_path is None:
        db_dir = Path.home() / ".bookkeeper"
        db_dir.mkdir(exist_ok=True)
        database_path = str(db_dir / "bookkeeper.db")

    logger.debug("Opening SQLite database at %s", database_path)
    return SQLAlchemyDatabase(f"sqlite:///{database_path}")
