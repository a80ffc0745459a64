"""Database configuration for the RCA service.

Selects between the SQLite (development) and PostgreSQL (production)
record stores. The store is built once by the application lifespan and
passed to the services that need it.
"""

import os
import logging
from typing import Union
from enum import Enum
from pydantic import BaseModel, Field

from store.postgres_adapter import PostgresRecordStore, PostgresConfig
from store.sqlite_adapter import SQLiteRecordStore

logger = logging.getLogger(__name__)

RecordStore = Union[SQLiteRecordStore, PostgresRecordStore]


class DatabaseType(str, Enum):
    """Supported database types."""
    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"


class DatabaseConfig(BaseModel):
    """Database configuration."""
    type: DatabaseType = Field(default=DatabaseType.SQLITE, description="Database type")

    # SQLite configuration
    sqlite_path: str = Field(default="rca.db", description="SQLite database path")

    # PostgreSQL configuration
    postgres: PostgresConfig = Field(default_factory=PostgresConfig, description="PostgreSQL configuration")

    @classmethod
    def from_env(cls) -> 'DatabaseConfig':
        """Create configuration from environment variables."""
        db_type = os.getenv('RCA_DB_TYPE', 'sqlite').lower()

        if db_type == 'postgresql':
            postgres_config = PostgresConfig(
                host=os.getenv('POSTGRES_HOST', 'localhost'),
                port=int(os.getenv('POSTGRES_PORT', '5432')),
                database=os.getenv('POSTGRES_DB', 'rca'),
                user=os.getenv('POSTGRES_USER', 'rca'),
                password=os.getenv('POSTGRES_PASSWORD', ''),
                min_connections=int(os.getenv('POSTGRES_MIN_CONNECTIONS', '2')),
                max_connections=int(os.getenv('POSTGRES_MAX_CONNECTIONS', '10')),
                command_timeout=int(os.getenv('POSTGRES_COMMAND_TIMEOUT', '60'))
            )
            return cls(type=DatabaseType.POSTGRESQL, postgres=postgres_config)

        return cls(
            type=DatabaseType.SQLITE,
            sqlite_path=os.getenv('SQLITE_PATH', 'rca.db')
        )


async def open_record_store(config: DatabaseConfig) -> RecordStore:
    """Build and initialize the record store selected by ``config``."""
    if config.type == DatabaseType.POSTGRESQL:
        logger.info("Initializing PostgreSQL record store")
        store = PostgresRecordStore(config.postgres)
    else:
        logger.info("Initializing SQLite record store")
        store = SQLiteRecordStore(config.sqlite_path)

    await store.initialize()
    logger.info(f"Record store initialized: {config.type.value}")
    return store
