"""Interactive conversion command."""

from __future__ import annotations

import html
import logging

from telegram.constants import ParseMode

from ..alerting import format_rate
from ..assets import display_symbol, is_known_symbol
from ..errors import RateResolutionFailed
from ..state import get_state
from .common import guard

logger = logging.getLogger(__name__)

_USAGE = "Usage: /rate <from> <to> [amount]"


async def cmd_rate(update, context) -> None:
    if not await guard(update, context):
        return
    args = [a.strip() for a in (context.args or []) if a.strip()]
    if len(args) < 2:
        await update.message.reply_text(_USAGE)
        return

    from_symbol, to_symbol = args[0], args[1]
    amount = 1.0
    if len(args) > 2:
        try:
            amount = float(args[2].replace(",", ""))
        except ValueError:
            await update.message.reply_text(_USAGE)
            return

    unknown = [s for s in (from_symbol, to_symbol) if not is_known_symbol(s)]
    if unknown:
        await update.message.reply_text(
            f"Unknown currency or crypto: {html.escape(', '.join(unknown))}"
        )
        return

    state = get_state(context.application)
    try:
        rate = await state.resolver.resolve(from_symbol, to_symbol)
    except RateResolutionFailed as exc:
        logger.warning("/rate %s %s failed: %s", from_symbol, to_symbol, exc)
        await update.message.reply_text(
            "❌ Rate unavailable right now, all sources failed. Try again later."
        )
        return

    base = html.escape(display_symbol(from_symbol))
    quote = html.escape(display_symbol(to_symbol))
    lines = [f"<b>1 {base}</b> = <code>{format_rate(rate)}</code> {quote}"]
    if amount != 1.0:
        lines.append(
            f"{amount:g} {base} = <code>{format_rate(amount * rate)}</code> {quote}"
        )
    await update.message.reply_text("\n".join(lines), parse_mode=ParseMode.HTML)
