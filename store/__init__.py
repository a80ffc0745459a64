"""Record storage for the RCA knowledge base.

SQLite (FTS5) for development and tests, PostgreSQL (tsvector) for production.
"""

from .base import TextIndexUnavailable
from .sqlite_adapter import SQLiteRecordStore
from .postgres_adapter import PostgresRecordStore, PostgresConfig

__all__ = [
    'TextIndexUnavailable',
    'SQLiteRecordStore',
    'PostgresRecordStore',
    'PostgresConfig'
]
