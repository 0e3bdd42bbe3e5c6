"""
Storage Services Package

Provides the abstract key-value interface and its implementations.
Engine state lives in a local JSON document by default, but the backend
is swappable.
"""

from liquidity_engine.services.storage.interface import (
    AuditStorageInterface,
    KeyValueStore,
    StorageError,
)
from liquidity_engine.services.storage.memory import InMemoryStore
from liquidity_engine.services.storage.json_file import JsonFileStore
from liquidity_engine.services.storage.state import (
    AUDIT_LOG_KEY,
    STATE_KEYS,
    EngineState,
    StateRepository,
)
from liquidity_engine.services.storage.audit_log import KeyValueAuditStorage

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "KeyValueStore",
    # Exceptions
    "StorageError",
    # Implementations
    "InMemoryStore",
    "JsonFileStore",
    "KeyValueAuditStorage",
    # Engine state
    "AUDIT_LOG_KEY",
    "STATE_KEYS",
    "EngineState",
    "StateRepository",
]
