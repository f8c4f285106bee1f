import httpx
import pytest

from rate_radar import config
from rate_radar import state as state_module
from rate_radar.handlers import alerts
from rate_radar.state import BOT_STATE_KEY, get_state
from rate_radar.store import AlertStore

from conftest import DummyApplication, DummyContext, DummyUpdate


class CountingClient(httpx.AsyncClient):
    created = 0

    def __init__(self, *args, **kwargs) -> None:
        type(self).created += 1
        super().__init__(*args, **kwargs)


@pytest.fixture
def counters(monkeypatch):
    loads = []

    def fake_store():
        loads.append(1)
        return AlertStore()

    CountingClient.created = 0
    monkeypatch.setattr(state_module.httpx, "AsyncClient", CountingClient)
    monkeypatch.setattr(state_module, "_default_store", fake_store)
    return loads


@pytest.mark.asyncio
async def test_get_state_builds_once(counters):
    app = DummyApplication()

    first = get_state(app)
    for _ in range(4):
        assert get_state(app) is first

    assert app.bot_data[BOT_STATE_KEY] is first
    assert CountingClient.created == 1
    assert len(counters) == 1
    await first.aclose()


@pytest.mark.asyncio
async def test_commands_reuse_existing_state(counters, monkeypatch):
    monkeypatch.setattr(config, "ALLOWED", {1})
    context = DummyContext()
    for _ in range(5):
        await alerts.cmd_alerts(DummyUpdate(1), context)

    assert CountingClient.created == 1
    assert len(counters) == 1
    await get_state(context.application).aclose()
