"""Runtime primitives backing the Myrefell HTTP API."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from myrefell.config import Settings, get_settings
from myrefell.database import get_session_factory
from myrefell.models import utc_now
from myrefell.services.tick_service import run_world_tick

logger = logging.getLogger(__name__)

TickFunction = Callable[[Session, datetime | None], dict[str, Any]]


class TickManager:
    """Background scheduler that runs the world tick on an interval."""

    MIN_INTERVAL_SECONDS = 0.1

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        *,
        base_interval_seconds: float,
        debug_multiplier: float = 1.0,
        tick: TickFunction = run_world_tick,
    ) -> None:
        self._session_factory = session_factory
        self._tick = tick
        self._base_interval = max(base_interval_seconds, self.MIN_INTERVAL_SECONDS)
        self._debug_multiplier = max(debug_multiplier, 0.01)
        self._enabled = False
        self._task: asyncio.Task[None] | None = None
        self._stop_event = asyncio.Event()
        self._advance_lock = asyncio.Lock()
        self.last_summary: dict[str, Any] | None = None

    @property
    def interval_seconds(self) -> float:
        return max(self.MIN_INTERVAL_SECONDS, self._base_interval * self._debug_multiplier)

    @property
    def base_interval_seconds(self) -> float:
        return self._base_interval

    @property
    def debug_multiplier(self) -> float:
        return self._debug_multiplier

    @property
    def enabled(self) -> bool:
        return self._enabled

    def set_base_interval(self, seconds: float) -> None:
        self._base_interval = max(seconds, self.MIN_INTERVAL_SECONDS)

    def set_debug_multiplier(self, multiplier: float) -> None:
        self._debug_multiplier = max(multiplier, 0.01)

    async def set_enabled(self, enabled: bool) -> None:
        self._enabled = enabled
        if enabled:
            self._ensure_running()
        else:
            await self.stop()

    def _ensure_running(self) -> None:
        if self._task is None or self._task.done():
            self._stop_event = asyncio.Event()
            loop = asyncio.get_running_loop()
            self._task = loop.create_task(self._run_loop(), name="myrefell-tick-loop")

    async def stop(self) -> None:
        task = self._task
        if task is None:
            return
        self._stop_event.set()
        await task
        self._task = None

    async def advance_now(
        self, ticks: int = 1, now: datetime | None = None
    ) -> dict[str, Any] | None:
        """Run ``ticks`` world ticks immediately and return the last summary."""
        if ticks <= 0:
            return None
        async with self._advance_lock:
            summary = await asyncio.to_thread(self._advance_sync, ticks, now)
        if summary is None:
            self._enabled = False
        return summary

    async def _run_loop(self) -> None:
        try:
            while not self._stop_event.is_set():
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_seconds)
                    break
                except TimeoutError:
                    pass
                await self._run_cycle()
        finally:
            self._task = None

    async def _run_cycle(self) -> None:
        if not self._enabled:
            return
        async with self._advance_lock:
            summary = await asyncio.to_thread(self._advance_sync, 1, None)
        if summary is None:
            self._enabled = False
            self._stop_event.set()

    def _advance_sync(self, ticks: int, now: datetime | None) -> dict[str, Any] | None:
        summary: dict[str, Any] | None = None
        session = self._session_factory()
        try:
            for _ in range(ticks):
                summary = self._tick(session, now or utc_now())
        except SQLAlchemyError:
            logger.warning(
                "world tick failed against the database; disabling autotick", exc_info=True
            )
            return None
        finally:
            session.close()
        self.last_summary = summary
        return summary


class ApiState:
    """Aggregated runtime objects shared by the FastAPI layer."""

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        session_factory: sessionmaker[Session] | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.session_factory = session_factory or get_session_factory()
        self.ticks = TickManager(
            self.session_factory,
            base_interval_seconds=self.settings.tick_interval_seconds,
            debug_multiplier=self.settings.debug_tick_speed_multiplier,
        )

    async def shutdown(self) -> None:
        await self.ticks.stop()


def build_state() -> ApiState:
    """Factory used by the API to initialize state."""

    return ApiState()
