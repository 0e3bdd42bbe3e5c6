"""
JSON File Storage Implementation

DESIGN DECISION: All keys live in one JSON document on local disk because:
1. A personal ledger is small enough to rewrite in full on every change
2. One document means one atomic write per mutation
3. Users can read and back up the file with ordinary tools

Writes go to a temporary file in the same directory which then replaces
the document with os.replace, so a crash mid-write leaves either the old
or the new document, never half of one.

A document that cannot be parsed is moved aside and the store starts
empty (fail closed). The engine then reports every key as a fallback.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Mapping, Optional

import structlog
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from liquidity_engine.config import get_settings
from liquidity_engine.services.storage.interface import (
    JSONValue,
    KeyValueStore,
    StorageError,
)


class JsonFileStore(KeyValueStore):
    """
    Key-value store backed by a single JSON file.

    Args:
        path: Document location. Defaults to STORAGE_STATE_PATH.
        max_write_attempts: Attempts per write. Defaults to STORAGE_MAX_WRITE_ATTEMPTS.
        retry_wait_min: Minimum back-off between attempts, in seconds
    """

    def __init__(
        self,
        path: Optional[str] = None,
        max_write_attempts: Optional[int] = None,
        retry_wait_min: float = 2,
    ):
        settings = get_settings().storage
        self._path = Path(path or settings.state_path)
        self._data: Optional[dict[str, JSONValue]] = None
        self._logger = structlog.get_logger(__name__)
        self.load_error: Optional[str] = None
        self._max_write_attempts = max_write_attempts or settings.max_write_attempts
        self._retry_wait_min = retry_wait_min

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, JSONValue]:
        if self._data is not None:
            return self._data

        if not self._path.exists():
            self._data = {}
            return self._data

        try:
            with open(self._path, "r", encoding="utf-8") as f:
                document = json.load(f)
            if not isinstance(document, dict):
                raise ValueError(f"expected a JSON object, got {type(document).__name__}")
        except (json.JSONDecodeError, UnicodeDecodeError, ValueError) as e:
            self.load_error = str(e)
            quarantine = self._path.with_name(self._path.name + ".corrupt")
            try:
                os.replace(self._path, quarantine)
            except OSError as move_error:
                raise StorageError(
                    f"Failed to move unreadable {self._path} aside: {move_error}"
                ) from move_error
            self._logger.warning(
                "state_document_unreadable",
                path=str(self._path),
                moved_to=str(quarantine),
                error=str(e),
            )
            document = {}
        except OSError as e:
            raise StorageError(f"Failed to read {self._path}: {e}")

        self._data = document
        return self._data

    def _write_document_once(self, document: dict[str, JSONValue]) -> None:
        directory = self._path.parent
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=directory, prefix=f".{self._path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2, sort_keys=True)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self._path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    async def _write_document(self, document: dict[str, JSONValue]) -> None:
        """Write the document, retrying on OSError."""
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._max_write_attempts),
            wait=wait_exponential(
                multiplier=self._retry_wait_min, min=self._retry_wait_min, max=10
            ),
            retry=retry_if_exception_type(OSError),
            reraise=True,
        ):
            with attempt:
                self._write_document_once(document)

    async def refresh(self) -> None:
        self._data = None

    async def get(self, key: str) -> Optional[JSONValue]:
        return self._load().get(key)

    async def set(self, key: str, value: JSONValue) -> None:
        await self.set_many({key: value})

    async def set_many(self, values: Mapping[str, JSONValue]) -> None:
        """Write all values in one replacement of the document."""
        document = dict(self._load())
        document.update(values)
        try:
            await self._write_document(document)
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Failed to write {self._path}: {e}")
        self._data = document
