"""Dispatch layer: applies rate limiting then calls the real handlers."""

from __future__ import annotations

from .common import rate_limit
from . import alerts, meta, rates


# Info
cmd_start = rate_limit(meta.cmd_help, name="start")
cmd_help = rate_limit(meta.cmd_help, name="help")
cmd_status = rate_limit(meta.cmd_status, name="status")

# Rates
cmd_rate = rate_limit(rates.cmd_rate, name="rate")

# Alerts
cmd_alerts = rate_limit(alerts.cmd_alerts, name="alerts")
