"""
Abstract Storage Interface

DESIGN DECISION: Persistence is a plain key/value store holding JSON text,
the same shape as browser local storage. This allows us to:
1. Use in-memory storage for testing
2. Keep a JSON-file backend for the desktop app
3. Keep business logic decoupled from where the bytes live

Reads and writes are synchronous. A write happens after every accepted
mutation, so state is never lost between a write and a reload.
"""

from abc import ABC, abstractmethod
from typing import Optional

from finsight.models.audit import AuditEvent


class KeyValueStorageInterface(ABC):
    """
    Abstract interface for the durable key/value store.

    Values are JSON strings. A missing key means "uninitialized".
    """

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """
        Read the raw value stored under a key.

        Returns:
            The stored string, or None if the key was never written
        """
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """
        Write a value under a key, replacing any previous value.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Delete a key. Removing a missing key is not an error."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_recent_events(self, limit: int = 100) -> list[dict]:
        """
        Get the most recent audit events as log dicts.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageCorruptError(StorageError):
    """A persisted record exists but cannot be parsed into the data model."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Stored record {key!r} is corrupt: {reason}")
