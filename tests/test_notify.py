import pytest

from rate_radar.models.alerts import Alert, Condition
from rate_radar.notify import LogNotificationSink, TelegramNotificationSink

from conftest import DummyBot


def _alert(**overrides) -> Alert:
    data = dict(
        id="alert_1",
        from_symbol="USD",
        to_symbol="EUR",
        target_rate=0.9,
        condition=Condition.BELOW,
        created_at=0.0,
    )
    data.update(overrides)
    return Alert(**data)


@pytest.mark.asyncio
async def test_unowned_alert_goes_to_every_allowed_chat():
    bot = DummyBot()
    sink = TelegramNotificationSink(bot, [20, 10])

    await sink.emit(_alert(description="rent <due>"), "USD/EUR rate has dropped below 0.9", 0.88)

    assert [chat for chat, _ in bot.sent] == [10, 20]
    text = bot.sent[0][1]
    assert text.startswith("🔔 <b>RateRadar Alert</b>\n")
    assert "<i>rent &lt;due&gt;</i>" in text


@pytest.mark.asyncio
async def test_owned_alert_goes_to_its_chat_only():
    bot = DummyBot()
    sink = TelegramNotificationSink(bot, [10, 20])

    await sink.emit(_alert(chat_id=30), "msg", 0.88)

    assert [chat for chat, _ in bot.sent] == [30]


@pytest.mark.asyncio
async def test_failed_chat_does_not_stop_others():
    bot = DummyBot(fail_for={10})
    sink = TelegramNotificationSink(bot, [10, 20])

    await sink.emit(_alert(), "msg", 0.88)

    assert [chat for chat, _ in bot.sent] == [20]


@pytest.mark.asyncio
async def test_log_sink_logs(caplog):
    caplog.set_level("INFO")
    await LogNotificationSink().emit(_alert(), "USD/EUR hit", 0.88)
    assert "USD/EUR hit" in caplog.text
