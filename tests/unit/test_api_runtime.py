"""Tests for API runtime helpers (tick manager and shared state)."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import pytest
from sqlalchemy.exc import OperationalError

from myrefell.api.runtime import ApiState, TickManager
from myrefell.config import Settings


class RecordingTick:
    """Stand-in world tick that records when it ran."""

    def __init__(self) -> None:
        self.calls: list[datetime | None] = []

    def __call__(self, session, now=None):
        self.calls.append(now)
        return {"ran_at": now.isoformat(), "tick": len(self.calls)}


def failing_tick(session, now=None):
    raise OperationalError("SELECT 1", {}, Exception("database is locked"))


@pytest.mark.asyncio
async def test_tick_manager_advances_world(session_factory):
    tick = RecordingTick()
    manager = TickManager(session_factory, base_interval_seconds=1.0, tick=tick)
    moment = datetime(1325, 3, 1, 6, 0, tzinfo=UTC)

    summary = await manager.advance_now(3, now=moment)

    assert summary == {"ran_at": moment.isoformat(), "tick": 3}
    assert tick.calls == [moment, moment, moment]
    assert manager.last_summary == summary


@pytest.mark.asyncio
async def test_tick_manager_ignores_non_positive_ticks(session_factory):
    tick = RecordingTick()
    manager = TickManager(session_factory, base_interval_seconds=1.0, tick=tick)

    assert await manager.advance_now(0) is None
    assert tick.calls == []


@pytest.mark.asyncio
async def test_tick_manager_schedule_toggle(session_factory):
    manager = TickManager(session_factory, base_interval_seconds=2.0, tick=RecordingTick())

    await manager.set_enabled(True)
    assert manager.enabled

    manager.set_base_interval(10.0)
    manager.set_debug_multiplier(0.5)
    assert manager.base_interval_seconds == 10.0
    assert manager.debug_multiplier == 0.5
    assert manager.interval_seconds == pytest.approx(5.0)

    await manager.set_enabled(False)
    assert not manager.enabled


def test_tick_manager_interval_has_a_floor(session_factory):
    manager = TickManager(session_factory, base_interval_seconds=0.0, debug_multiplier=0.0)

    assert manager.base_interval_seconds == TickManager.MIN_INTERVAL_SECONDS
    assert manager.debug_multiplier == 0.01
    assert manager.interval_seconds == TickManager.MIN_INTERVAL_SECONDS


@pytest.mark.asyncio
async def test_autotick_runs_on_the_interval(session_factory):
    tick = RecordingTick()
    manager = TickManager(session_factory, base_interval_seconds=0.1, tick=tick)

    await manager.set_enabled(True)
    await asyncio.sleep(0.45)
    await manager.set_enabled(False)

    assert len(tick.calls) >= 1
    assert manager.last_summary is not None


@pytest.mark.asyncio
async def test_database_failure_disables_autotick(session_factory):
    manager = TickManager(session_factory, base_interval_seconds=60.0, tick=failing_tick)
    await manager.set_enabled(True)

    summary = await manager.advance_now(1)

    assert summary is None
    assert manager.enabled is False
    await manager.stop()


@pytest.mark.asyncio
async def test_api_state_uses_settings(session_factory):
    settings = Settings(tick_interval_seconds=120.0, debug_tick_speed_multiplier=0.5)

    state = ApiState(settings=settings, session_factory=session_factory)

    assert state.session_factory is session_factory
    assert state.ticks.base_interval_seconds == 120.0
    assert state.ticks.interval_seconds == pytest.approx(60.0)
    await state.shutdown()
