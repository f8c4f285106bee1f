"""Command registry (single source of truth for help + wiring)."""

from __future__ import annotations

from .models.command_spec import CommandSpec, Group


COMMANDS: tuple[CommandSpec, ...] = (
    CommandSpec("start", "Info", "/start", "show help", "cmd_start"),
    CommandSpec("help", "Info", "/help", "this menu", "cmd_help"),
    CommandSpec("status", "Info", "/status", "scheduler and cache status", "cmd_status"),
    CommandSpec(
        "rate",
        "Rates",
        "/rate <from> <to> [amount]",
        "current fiat or crypto rate",
        "cmd_rate",
        aliases=("convert",),
    ),
    CommandSpec(
        "alerts",
        "Alerts",
        "/alerts [add|edit|remove|toggle|check|stats]",
        "manage rate alerts",
        "cmd_alerts",
    ),
)

GROUP_ORDER: tuple[Group, ...] = ("Rates", "Alerts", "Info")
