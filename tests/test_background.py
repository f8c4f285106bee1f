import asyncio

import pytest

from rate_radar import background
from rate_radar.state import BOT_STATE_KEY

from conftest import DummyApplication


class FakeSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.mark.asyncio
async def test_recurring_task_runs_immediately_then_on_interval(clock):
    sleep = FakeSleep()
    ticks: list[float] = []

    async def tick():
        ticks.append(clock())
        clock.advance(10)

    task = background.RecurringTask("test", 60, tick, clock=clock, sleep=sleep)
    await task.run_forever(max_runs=3)

    assert task.runs == 3
    assert len(ticks) == 3
    assert sleep.delays == [50, 50]


@pytest.mark.asyncio
async def test_recurring_task_survives_failing_run(clock):
    sleep = FakeSleep()
    calls = 0

    async def flaky():
        nonlocal calls
        calls += 1
        if calls == 1:
            raise RuntimeError("boom")

    task = background.RecurringTask("flaky", 60, flaky, clock=clock, sleep=sleep)
    await task.run_forever(max_runs=2)

    assert calls == 2
    assert sleep.delays == [60]


@pytest.mark.asyncio
async def test_overrunning_tick_does_not_sleep(clock):
    sleep = FakeSleep()

    async def slow():
        clock.advance(90)

    task = background.RecurringTask("slow", 60, slow, clock=clock, sleep=sleep)
    await task.run_forever(max_runs=2)

    assert sleep.delays == [0.0]


@pytest.mark.asyncio
async def test_ensure_started_is_idempotent_and_stop_cancels(radar_state, sink):
    app = DummyApplication()
    app.bot_data[BOT_STATE_KEY] = radar_state

    background.ensure_started(app)
    first = radar_state.tasks["alert_check"]
    background.ensure_started(app)

    assert radar_state.tasks["alert_check"] is first
    assert radar_state.evaluator.sink is radar_state.sink
    assert radar_state.sink is not sink

    await asyncio.sleep(0)
    await background.stop(app)

    assert first.cancelled() or first.done()
    assert radar_state.tasks == {}
