from __future__ import annotations

import asyncio

import pytest

from discussion_badge.scheduler import AutoRefresh


@pytest.mark.asyncio
async def test_runs_immediately_and_repeats():
    calls: list[int] = []

    async def tick():
        calls.append(len(calls))

    refresher = AutoRefresh(tick, 0.01, minimum_interval=0.01)
    refresher.start()
    await asyncio.sleep(0.05)
    await refresher.stop()

    assert len(calls) >= 2
    assert not refresher.is_running


@pytest.mark.asyncio
async def test_callback_errors_do_not_stop_the_loop():
    calls = {"count": 0}

    async def tick():
        calls["count"] += 1
        raise RuntimeError("poll failed")

    refresher = AutoRefresh(tick, 0.01, minimum_interval=0.01)
    refresher.start()
    await asyncio.sleep(0.05)
    await refresher.stop()

    assert calls["count"] >= 2


@pytest.mark.asyncio
async def test_start_is_idempotent_and_stop_without_start_is_safe():
    async def tick():
        return None

    refresher = AutoRefresh(tick, 60)
    await refresher.stop()

    refresher.start()
    task = refresher._task
    refresher.start()

    assert refresher._task is task
    assert refresher.is_running
    await refresher.stop()


def test_interval_respects_minimum():
    async def tick():
        return None

    refresher = AutoRefresh(tick, 5)
    assert refresher.interval == 30

    refresher.set_interval(120)
    assert refresher.interval == 120

    refresher.set_interval(1)
    assert refresher.interval == 30


@pytest.mark.asyncio
async def test_set_interval_cuts_a_long_wait_short():
    calls: list[int] = []

    async def tick():
        calls.append(len(calls))

    refresher = AutoRefresh(tick, 60, minimum_interval=0.01)
    refresher.start()
    await asyncio.sleep(0.02)
    assert calls == [0]

    refresher.set_interval(0.01)
    await asyncio.sleep(0.1)
    await refresher.stop()

    assert len(calls) >= 2
