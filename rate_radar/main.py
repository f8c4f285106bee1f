"""Entrypoint for running the RateRadar bot from the package.

Builds the Telegram Application, registers the commands, starts the alert
loop once the bot is initialized and then polls for updates.
"""

from __future__ import annotations

import logging

from telegram import BotCommand
from telegram.ext import Application, CommandHandler

from . import background, config
from .commands import COMMANDS
from .handlers import dispatch
from .logger import setup_logging
from .runtime import STARTUP_TIME, VERSION
from .state import get_state

logger = logging.getLogger(__name__)


def build_application() -> Application:
    if not config.TOKEN:
        raise RuntimeError("BOT_TOKEN is required to start RateRadar")

    app = Application.builder().token(config.TOKEN).build()
    get_state(app)

    for spec in COMMANDS:
        app.add_handler(
            CommandHandler([spec.name, *spec.aliases], getattr(dispatch, spec.handler))
        )
    return app


async def register_bot_commands(app: Application) -> None:
    """Publish the command list so Telegram clients can autocomplete it."""
    commands = [BotCommand(spec.name, spec.description) for spec in COMMANDS]
    try:
        await app.bot.set_my_commands(commands)
    except Exception as e:
        logger.warning("Could not publish bot commands: %s", e)
        return
    logger.info("Published %d bot commands", len(commands))


async def _announce(app: Application, text: str) -> None:
    for chat_id in sorted(config.ALLOWED):
        try:
            await app.bot.send_message(chat_id=chat_id, text=text)
        except Exception as e:
            logger.warning("Startup notice to chat_id=%s failed: %s", chat_id, e)


async def on_startup(app: Application) -> None:
    """post_init hook: start the alert loop (first tick runs now) and say hello."""
    try:
        background.ensure_started(app)
    except Exception:
        logger.exception("Alert loop did not start")

    await register_bot_commands(app)

    if not config.ALLOWED:
        logger.warning("ALLOWED_CHAT_IDS is empty; no startup notice sent")
        return
    count = len(get_state(app).store.list())
    await _announce(
        app,
        f"📡 RateRadar v{VERSION} up since {STARTUP_TIME:%Y-%m-%d %H:%M:%S}, "
        f"watching {count} alert(s)",
    )


def run() -> None:
    setup_logging()
    logger.info("Starting RateRadar v%s", VERSION)
    app = build_application()
    app.post_init = on_startup
    app.post_shutdown = background.stop

    # Container stop signals are handled by the runtime, not PTB
    app.run_polling(stop_signals=None)


if __name__ == "__main__":
    run()
