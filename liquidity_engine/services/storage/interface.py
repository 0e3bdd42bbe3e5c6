"""
Abstract Storage Interface

DESIGN DECISION: The engine persists through a tiny key-value contract.
This allows us to:
1. Keep state in a local JSON file today and swap in a database later
2. Use in-memory storage for testing
3. Write every related change in one atomic step

Values are JSON-compatible data (dicts, lists, strings, numbers). Mapping
them to and from models is the state repository's job, not the store's.
"""

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional

from liquidity_engine.models.audit import AuditEvent


JSONValue = Any


class KeyValueStore(ABC):
    """
    Abstract interface for engine state storage.

    Any storage implementation (JSON file, SQLite, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[JSONValue]:
        """
        Read the value stored under key.

        Args:
            key: Storage key, e.g. 'transactions'

        Returns:
            The stored value, or None if the key was never written
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: JSONValue) -> None:
        """
        Store value under key, replacing any previous value.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def set_many(self, values: Mapping[str, JSONValue]) -> None:
        """
        Store several keys in one step.

        Either every key is written or none is. The engine relies on this
        to keep a ledger entry, the obligation it settled and the cycle key
        consistent with each other.

        Raises:
            StorageError: If the write fails (nothing was written)
        """
        pass

    async def refresh(self) -> None:
        """Drop anything cached so the next read sees changes made by other processes."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Args:
            event: The audit event to log

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity.

        Args:
            entity_type: Type of entity (e.g., 'expense', 'transaction')
            entity_id: The entity's ID

        Returns:
            List of events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Args:
            limit: Maximum number of events to return

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass

