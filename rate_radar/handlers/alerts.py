from __future__ import annotations

import html
import logging

from telegram.constants import ParseMode

from ..alerting import OUTCOME_FAILED, OUTCOME_SKIPPED, format_rate
from ..assets import display_symbol
from ..errors import AlertNotFound, AlertPersistFailed, InvalidAlert
from ..models.alerts import Alert
from ..state import get_state
from .common import guard

logger = logging.getLogger(__name__)

_ADD_USAGE = "/alerts add &lt;from&gt; &lt;to&gt; &lt;above|below&gt; &lt;target&gt; [max] [note]"
_EDIT_USAGE = "/alerts edit &lt;id&gt; &lt;above|below&gt; &lt;target&gt;"


def _alert_line(alert: Alert) -> str:
    pair = f"{display_symbol(alert.from_symbol)}/{display_symbol(alert.to_symbol)}"
    status = "on" if alert.is_active else "off"
    if alert.triggered:
        status += f", triggered {alert.notification_count}/{alert.max_notifications}"
    line = (
        f"<code>{html.escape(alert.id)}</code> {html.escape(pair)} "
        f"{alert.condition.value} {alert.target_rate:g} ({status})"
    )
    if alert.description:
        line += f" <i>{html.escape(alert.description)}</i>"
    return line


def _render_alert(idx: int, alert: Alert) -> str:
    return f"{idx}. {_alert_line(alert)}"


def render_alerts_overview(alerts: list[Alert]) -> str:
    lines = ["<b>Rate alerts</b>"]
    if alerts:
        lines.extend(_render_alert(i, a) for i, a in enumerate(alerts, start=1))
    else:
        lines.append("No alerts configured.")
    lines.append(f"<i>Usage:</i> {_ADD_USAGE}")
    lines.append(f"<i>Manage:</i> /alerts remove|toggle|check &lt;id&gt;, {_EDIT_USAGE}, /alerts stats")
    return "\n".join(lines)


async def _reply(update, text: str) -> None:
    await update.message.reply_text(text, parse_mode=ParseMode.HTML)


async def _add(update, state, chat_id: int, args: list[str]) -> None:
    if len(args) < 5:
        await _reply(update, f"<i>Usage:</i> {_ADD_USAGE}")
        return
    from_symbol, to_symbol, condition, target = args[1:5]
    rest = args[5:]
    max_notifications = None
    if rest and rest[0].isdigit():
        max_notifications = int(rest[0])
        rest = rest[1:]
    try:
        alert = state.store.add(
            from_symbol,
            to_symbol,
            target,
            condition,
            max_notifications=max_notifications,
            description=" ".join(rest),
            chat_id=chat_id,
        )
    except InvalidAlert as exc:
        await _reply(update, f"❌ {html.escape(str(exc))}")
        return
    except AlertPersistFailed:
        logger.exception("Failed to persist new alert")
        await _reply(update, "⚠️ Alert added but could not be saved to disk.")
        return
    await _reply(update, f"✅ Added {_alert_line(alert)}")


def _owned_alert(state, chat_id: int, alert_id: str) -> Alert:
    """Fetch an alert this chat may act on; other chats' alerts look missing."""
    alert = state.store.get(alert_id)
    if alert.chat_id not in (None, chat_id):
        raise AlertNotFound(f"No alert {alert_id!r}")
    return alert


async def _edit(update, state, chat_id: int, args: list[str]) -> None:
    if len(args) < 4:
        await _reply(update, f"<i>Usage:</i> {_EDIT_USAGE}")
        return
    alert_id, condition, target = args[1:4]
    try:
        _owned_alert(state, chat_id, alert_id)
        # New threshold: start over as if freshly created
        alert = state.store.update(
            alert_id,
            condition=condition,
            target_rate=target,
            triggered=False,
            notification_count=0,
        )
    except AlertNotFound:
        await _reply(update, f"No alert <code>{html.escape(alert_id)}</code>")
        return
    except InvalidAlert as exc:
        await _reply(update, f"❌ {html.escape(str(exc))}")
        return
    except AlertPersistFailed:
        logger.exception("Failed to persist edit of alert %s", alert_id)
        await _reply(update, "⚠️ Change applied but could not be saved to disk.")
        return
    await _reply(update, f"✏️ Updated {_alert_line(alert)}")


async def cmd_alerts(update, context) -> None:
    if not await guard(update, context):
        return
    chat_id = update.effective_chat.id if update.effective_chat else None
    if chat_id is None:
        return
    state = get_state(context.application)

    args = [a.strip() for a in (context.args or []) if a.strip()]
    action = args[0].lower() if args else "list"

    if action in {"list", "status"}:
        await _reply(update, render_alerts_overview(state.store.for_chat(chat_id)))
        return

    if action == "add":
        await _add(update, state, chat_id, args)
        return

    if action == "stats":
        stats = state.store.stats()
        await _reply(
            update,
            f"<b>Alerts:</b> {stats.total} total, {stats.active} active, "
            f"{stats.triggered} triggered\n"
            f"<b>Pairs:</b> {stats.fiat} fiat, {stats.crypto} crypto",
        )
        return

    if action == "edit":
        await _edit(update, state, chat_id, args)
        return

    if action not in {"remove", "toggle", "check"}:
        await _reply(update, render_alerts_overview(state.store.for_chat(chat_id)))
        return
    if len(args) < 2:
        await _reply(update, f"<i>Usage:</i> /alerts {action} &lt;id&gt;")
        return

    alert_id = args[1]
    try:
        _owned_alert(state, chat_id, alert_id)
        if action == "remove":
            state.store.remove(alert_id)
            await _reply(update, f"🗑 Removed <code>{html.escape(alert_id)}</code>")
        elif action == "toggle":
            alert = state.store.toggle(alert_id)
            status = "enabled" if alert.is_active else "disabled"
            await _reply(update, f"Alert <code>{html.escape(alert_id)}</code> {status}")
        else:
            evaluation = await state.evaluator.check_alert(alert_id)
            if evaluation.outcome == OUTCOME_SKIPPED:
                msg = "Checked too recently; try again shortly."
            elif evaluation.outcome == OUTCOME_FAILED or evaluation.rate is None:
                msg = f"Could not check: {html.escape(evaluation.outcome)}"
            else:
                msg = (
                    f"Current rate <code>{format_rate(evaluation.rate)}</code>: "
                    f"{html.escape(evaluation.outcome)}"
                )
            await _reply(update, msg)
    except AlertNotFound:
        await _reply(update, f"No alert <code>{html.escape(alert_id)}</code>")
    except AlertPersistFailed:
        logger.exception("Failed to persist alert change for %s", alert_id)
        await _reply(update, "⚠️ Change applied but could not be saved to disk.")
