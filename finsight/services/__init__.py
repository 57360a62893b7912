"""Services package."""

from finsight.services.export import CSV_HEADER, export_transactions_csv
from finsight.services.storage import (
    AuditStorageInterface,
    InMemoryStorage,
    JsonFileStorage,
    JsonLinesAuditStorage,
    KeyValueStorageInterface,
    StorageCorruptError,
    StorageError,
)

__all__ = [
    # Export
    "CSV_HEADER",
    "export_transactions_csv",
    # Storage services
    "AuditStorageInterface",
    "InMemoryStorage",
    "JsonFileStorage",
    "JsonLinesAuditStorage",
    "KeyValueStorageInterface",
    "StorageCorruptError",
    "StorageError",
]
