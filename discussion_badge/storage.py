"""Key/value persistence for the unread state."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict

from .errors import StorageError
from .models import STATE_KEY, UnreadState

logger = logging.getLogger(__name__)


class StateRepository(ABC):
    """Asynchronous key/value store; each call is atomic on its own."""

    @abstractmethod
    async def get_data(self, key: str) -> Any | None:
        """Return the value stored under ``key`` or ``None``."""

    @abstractmethod
    async def store_data(self, key: str, value: Any) -> None:
        """Replace the value stored under ``key``."""

    @abstractmethod
    async def clear_data(self, key: str) -> None:
        """Remove ``key`` if present."""


class MemoryStateStore(StateRepository):
    """In-process store; values are JSON round-tripped to mimic persistence."""

    def __init__(self, initial: Dict[str, Any] | None = None) -> None:
        self._data: Dict[str, str] = {
            key: json.dumps(value) for key, value in (initial or {}).items()
        }

    async def get_data(self, key: str) -> Any | None:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    async def store_data(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    async def clear_data(self, key: str) -> None:
        self._data.pop(key, None)


class JsonStateStore(StateRepository):
    """Single JSON document on disk holding every key."""

    def __init__(self, state_file: Path):
        self.state_file = state_file
        self.state_file.parent.mkdir(parents=True, exist_ok=True)

    def _read(self) -> Dict[str, Any]:
        if not self.state_file.exists():
            return {}
        try:
            text = self.state_file.read_text(encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"Cannot read state file {self.state_file}: {exc}") from exc
        if not text.strip():
            return {}
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise StorageError(f"State file {self.state_file} is not valid JSON") from exc
        if not isinstance(payload, dict):
            raise StorageError(f"State file {self.state_file} must hold a JSON object")
        return payload

    def _write(self, payload: Dict[str, Any]) -> None:
        tmp_path = self.state_file.with_name(self.state_file.name + ".tmp")
        try:
            with tmp_path.open("w", encoding="utf-8") as handle:
                json.dump(payload, handle, ensure_ascii=False, indent=2)
                handle.flush()
                os.fsync(handle.fileno())
            tmp_path.replace(self.state_file)
        except OSError as exc:
            raise StorageError(f"Cannot write state file {self.state_file}: {exc}") from exc

    def _store(self, key: str, value: Any) -> None:
        payload = self._read()
        payload[key] = value
        self._write(payload)

    def _clear(self, key: str) -> None:
        payload = self._read()
        if payload.pop(key, None) is not None:
            self._write(payload)

    # File access runs in a worker thread so the event loop is never blocked.
    async def get_data(self, key: str) -> Any | None:
        payload = await asyncio.to_thread(self._read)
        return payload.get(key)

    async def store_data(self, key: str, value: Any) -> None:
        await asyncio.to_thread(self._store, key, value)

    async def clear_data(self, key: str) -> None:
        await asyncio.to_thread(self._clear, key)


async def load_unread_state(repo: StateRepository) -> UnreadState | None:
    """Load the persisted unread state; a corrupt entry reads as absent."""

    raw = await repo.get_data(STATE_KEY)
    if raw is None:
        return None
    if not isinstance(raw, dict):
        logger.warning("Ignoring malformed unread state of type %s", type(raw).__name__)
        return None
    try:
        return UnreadState.from_dict(raw)
    except (KeyError, ValueError, TypeError) as exc:
        logger.warning("Ignoring malformed unread state: %s", exc)
        return None


async def save_unread_state(repo: StateRepository, state: UnreadState) -> None:
    await repo.store_data(STATE_KEY, state.to_dict())
