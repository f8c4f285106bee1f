"""Background jobs (started once per Application)."""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable

from telegram.ext import Application

from .state import get_state

logger = logging.getLogger(__name__)

_TASK_ALERT_CHECK = "alert_check"


class RecurringTask:
    """Run ``callback`` now and then every ``interval_s`` seconds.

    The interval is measured from the start of the previous run. ``clock``
    and ``sleep`` are injectable so tests can drive ticks without waiting.
    """

    def __init__(
        self,
        name: str,
        interval_s: float,
        callback: Callable[[], Awaitable[object]],
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.name = name
        self.interval_s = interval_s
        self.callback = callback
        self._clock = clock
        self._sleep = sleep
        self.runs = 0

    async def run_once(self) -> None:
        try:
            await self.callback()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("%s run failed", self.name)
        finally:
            self.runs += 1

    async def run_forever(self, max_runs: int | None = None) -> None:
        logger.info("Starting %s loop (interval=%ss)", self.name, self.interval_s)
        while max_runs is None or self.runs < max_runs:
            start = self._clock()
            await self.run_once()
            if max_runs is not None and self.runs >= max_runs:
                break
            elapsed = self._clock() - start
            await self._sleep(max(0.0, self.interval_s - elapsed))


def ensure_started(app: Application) -> None:
    state = get_state(app)
    task = state.tasks.get(_TASK_ALERT_CHECK)
    if isinstance(task, asyncio.Task) and not task.done():
        return
    state.attach_bot(app.bot)
    checker = RecurringTask(
        "alert check",
        state.check_interval_s,
        state.evaluator.run_tick,
    )
    state.tasks[_TASK_ALERT_CHECK] = asyncio.create_task(checker.run_forever())


async def stop(app: Application) -> None:
    state = get_state(app)
    for name, task in list(state.tasks.items()):
        if isinstance(task, asyncio.Task) and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        state.tasks.pop(name, None)
    await state.aclose()
