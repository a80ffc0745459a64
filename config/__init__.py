"""Configuration module for the RCA knowledge base.

Provides settings for the HTTP service, the LLM provider and the record store.
"""

from .database import (
    DatabaseConfig,
    DatabaseType,
    RecordStore,
    open_record_store
)
from .settings import AppSettings, LLMConfig

__all__ = [
    'AppSettings',
    'LLMConfig',
    'DatabaseConfig',
    'DatabaseType',
    'RecordStore',
    'open_record_store'
]
