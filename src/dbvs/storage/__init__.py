"""Vulnerability storage backends"""

from ..config.settings import DBVSConfig
from .base import VulnerabilityStore
from .memory import MemoryStore
from .postgres import PostgresStore

__all__ = ['VulnerabilityStore', 'MemoryStore', 'PostgresStore', 'create_store']


def create_store(config: DBVSConfig) -> VulnerabilityStore:
    """Store selected by the configured DSN"""
    if config.uses_memory_store:
        return MemoryStore()
    return PostgresStore(config.database_dsn)
