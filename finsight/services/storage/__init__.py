"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Currently implements local JSON files as the backend, but designed to be swappable.
"""

from finsight.services.storage.interface import (
    AuditStorageInterface,
    KeyValueStorageInterface,
    StorageCorruptError,
    StorageError,
)
from finsight.services.storage.local import (
    InMemoryStorage,
    JsonFileStorage,
    JsonLinesAuditStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "KeyValueStorageInterface",
    # Exceptions
    "StorageCorruptError",
    "StorageError",
    # Local implementations
    "InMemoryStorage",
    "JsonFileStorage",
    "JsonLinesAuditStorage",
]
