from __future__ import annotations

import json
import threading
from datetime import datetime, timezone

import pytest

from discussion_badge.errors import StorageError
from discussion_badge.models import STATE_KEY, UnreadState
from discussion_badge.storage import (
    JsonStateStore,
    MemoryStateStore,
    load_unread_state,
    save_unread_state,
)


@pytest.mark.asyncio
async def test_json_state_store_roundtrip(tmp_path):
    state_file = tmp_path / "state" / "badge_state.json"
    store = JsonStateStore(state_file)

    state = UnreadState(
        unread_ids=("D_1", "D_2"),
        last_checked_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
    )
    await save_unread_state(store, state)

    restored = await load_unread_state(JsonStateStore(state_file))
    assert restored == state
    assert restored.last_checked_at.tzinfo is not None
    assert json.loads(state_file.read_text(encoding="utf-8")) == {
        STATE_KEY: {"unreadIds": ["D_1", "D_2"], "lastCheckedAt": "2025-01-01T00:00:00Z"}
    }


@pytest.mark.asyncio
async def test_json_state_store_keeps_other_keys(tmp_path):
    store = JsonStateStore(tmp_path / "badge_state.json")
    await store.store_data("other", {"keep": True})
    await store.store_data(STATE_KEY, {"unreadIds": [], "lastCheckedAt": "2025-01-01T00:00:00Z"})

    await store.clear_data(STATE_KEY)

    assert await store.get_data(STATE_KEY) is None
    assert await store.get_data("other") == {"keep": True}
    assert not (tmp_path / "badge_state.json.tmp").exists()


@pytest.mark.asyncio
async def test_missing_state_file_reads_as_empty(tmp_path):
    store = JsonStateStore(tmp_path / "nested" / "badge_state.json")

    assert await load_unread_state(store) is None


@pytest.mark.asyncio
async def test_corrupt_state_file_raises_storage_error(tmp_path):
    state_file = tmp_path / "badge_state.json"
    state_file.write_text("{not json", encoding="utf-8")
    store = JsonStateStore(state_file)

    with pytest.raises(StorageError):
        await store.get_data(STATE_KEY)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        ["D_1"],
        {"unreadIds": "D_1", "lastCheckedAt": "2025-01-01T00:00:00Z"},
        {"unreadIds": ["D_1"]},
        {"unreadIds": ["D_1"], "lastCheckedAt": "yesterday"},
    ],
)
async def test_malformed_state_reads_as_first_run(payload):
    store = MemoryStateStore({STATE_KEY: payload})

    assert await load_unread_state(store) is None


@pytest.mark.asyncio
async def test_loaded_ids_are_deduplicated_in_order():
    store = MemoryStateStore(
        {STATE_KEY: {"unreadIds": ["a", "b", "a"], "lastCheckedAt": "2025-01-01T00:00:00Z"}}
    )

    state = await load_unread_state(store)

    assert state.unread_ids == ("a", "b")


@pytest.mark.asyncio
async def test_memory_store_returns_independent_copies():
    store = MemoryStateStore()
    value = {"unreadIds": ["a"]}
    await store.store_data("k", value)
    value["unreadIds"].append("b")

    assert await store.get_data("k") == {"unreadIds": ["a"]}


@pytest.mark.asyncio
async def test_json_state_store_reads_and_writes_off_the_event_loop(tmp_path, monkeypatch):
    store = JsonStateStore(tmp_path / "badge_state.json")
    threads: list[int] = []
    original_read = JsonStateStore._read

    def recording_read(self):
        threads.append(threading.get_ident())
        return original_read(self)

    monkeypatch.setattr(JsonStateStore, "_read", recording_read)

    await store.store_data("k", [1])
    assert await store.get_data("k") == [1]

    assert len(threads) == 2
    assert threading.get_ident() not in threads
