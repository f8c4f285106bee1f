from __future__ import annotations

import html

from telegram.constants import ParseMode

from ..assets import AssetKind
from ..commands import COMMANDS, GROUP_ORDER
from ..runtime import STARTUP_TIME, VERSION
from ..state import get_state
from .common import guard


def _help_text() -> str:
    lines = [f"<b>RateRadar</b> v{html.escape(VERSION)}"]
    for group in GROUP_ORDER:
        specs = [s for s in COMMANDS if s.group == group]
        if not specs:
            continue
        lines.append(f"\n<b>{group}</b>")
        for spec in specs:
            lines.append(
                f"{html.escape(spec.usage)} - {html.escape(spec.description)}"
            )
    return "\n".join(lines)


async def cmd_help(update, context) -> None:
    if not await guard(update, context):
        return
    await update.message.reply_text(_help_text(), parse_mode=ParseMode.HTML)


async def cmd_status(update, context) -> None:
    if not await guard(update, context):
        return
    state = get_state(context.application)
    stats = state.cache.stats
    lines = [
        f"<b>Running since:</b> {STARTUP_TIME.strftime('%Y-%m-%d %H:%M:%S')}",
        f"<b>Check interval:</b> {state.check_interval_s / 60:g} min",
        f"<b>Cached rates:</b> {len(state.cache)} "
        f"(ttl {state.cache_ttl_s:g}s, {stats.hits} hits, {stats.misses} misses, "
        f"{stats.failures} failed fetches)",
    ]
    for kind in AssetKind:
        names = [s.name for s in state.fetcher.sources_for(kind)]
        chain = " → ".join(html.escape(n) for n in names) or "none enabled"
        lines.append(f"<b>{kind.value.capitalize()} sources:</b> {chain}")
    await update.message.reply_text("\n".join(lines), parse_mode=ParseMode.HTML)
