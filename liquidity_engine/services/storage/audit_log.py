"""Audit storage on top of the engine's key-value store."""

from pydantic import TypeAdapter

from liquidity_engine.models.audit import AuditEvent
from liquidity_engine.services.storage.interface import AuditStorageInterface, KeyValueStore
from liquidity_engine.services.storage.state import AUDIT_LOG_KEY


_events = TypeAdapter(list[AuditEvent])


class KeyValueAuditStorage(AuditStorageInterface):
    """
    Keeps the audit log as a list under the 'audit_log' key.

    Audit events are append-only. max_events bounds the list; the oldest
    events drop off first.
    """

    def __init__(self, store: KeyValueStore, max_events: int = 1000):
        self._store = store
        self._max_events = max_events

    async def _events(self) -> list[AuditEvent]:
        raw = await self._store.get(AUDIT_LOG_KEY)
        return _events.validate_python(raw or [])

    async def append_event(self, event: AuditEvent) -> bool:
        raw = await self._store.get(AUDIT_LOG_KEY) or []
        raw = list(raw) + [event.to_storage_dict()]
        await self._store.set(AUDIT_LOG_KEY, raw[-self._max_events:])
        return True

    async def get_events_by_entity(self, entity_type: str, entity_id: str) -> list[AuditEvent]:
        return [
            e for e in await self._events()
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        events = await self._events()
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
