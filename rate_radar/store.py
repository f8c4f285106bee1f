"""Alert persistence.

``AlertStore`` keeps alerts in memory; ``JsonAlertStore`` additionally
writes them to a JSON file after every change.
"""

from __future__ import annotations

import json
import logging
import math
import secrets
import time
from dataclasses import fields, replace
from pathlib import Path
from typing import Callable

from .assets import AssetKind, classify, is_known_symbol, normalize_symbol
from .errors import AlertNotFound, AlertPersistFailed, InvalidAlert
from .models.alerts import Alert, AlertStats, Condition

logger = logging.getLogger(__name__)

_ALERT_FIELDS = {f.name for f in fields(Alert)}
_IMMUTABLE_FIELDS = {"id", "created_at"}


def parse_condition(raw: str | Condition) -> Condition:
    if isinstance(raw, Condition):
        return raw
    text = (raw or "").strip().lower()
    aliases = {">": "above", ">=": "above", "<": "below", "<=": "below"}
    try:
        return Condition(aliases.get(text, text))
    except ValueError:
        raise InvalidAlert(f"Unknown condition {raw!r} (use above or below)") from None


def _validate_target(value: object) -> float:
    try:
        target = float(value)
    except (TypeError, ValueError):
        raise InvalidAlert(f"Target rate {value!r} is not a number") from None
    if not math.isfinite(target) or target <= 0:
        raise InvalidAlert("Target rate must be a positive number")
    return target


def _validate_cap(value: object) -> int:
    try:
        cap = int(value)
    except (TypeError, ValueError):
        raise InvalidAlert(f"max_notifications {value!r} is not a whole number") from None
    if cap < 1:
        raise InvalidAlert("max_notifications must be at least 1")
    return cap


class AlertStore:
    """In-memory alert collection."""

    def __init__(
        self,
        default_max_notifications: int = 1,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.default_max_notifications = default_max_notifications
        self._clock = clock
        self._alerts: dict[str, Alert] = {}

    def list(self) -> list[Alert]:
        return [replace(alert) for alert in self._alerts.values()]

    def list_active(self) -> list[Alert]:
        return [alert for alert in self.list() if alert.is_active]

    def for_chat(self, chat_id: int) -> list[Alert]:
        return [a for a in self.list() if a.chat_id in (None, chat_id)]

    def get(self, alert_id: str) -> Alert:
        alert = self._alerts.get(alert_id)
        if alert is None:
            raise AlertNotFound(f"No alert {alert_id!r}")
        return replace(alert)

    def _new_id(self) -> str:
        while True:
            alert_id = f"alert_{secrets.token_hex(4)}"
            if alert_id not in self._alerts:
                return alert_id

    def add(
        self,
        from_symbol: str,
        to_symbol: str,
        target_rate: object,
        condition: str | Condition,
        max_notifications: int | None = None,
        description: str = "",
        chat_id: int | None = None,
    ) -> Alert:
        for symbol in (from_symbol, to_symbol):
            if not is_known_symbol(symbol):
                raise InvalidAlert(f"Unknown currency or crypto {symbol!r}")
        base = normalize_symbol(from_symbol)
        quote = normalize_symbol(to_symbol)
        if base == quote:
            raise InvalidAlert("From and to must differ")
        cap = _validate_cap(
            self.default_max_notifications if max_notifications is None else max_notifications
        )

        alert = Alert(
            id=self._new_id(),
            from_symbol=base,
            to_symbol=quote,
            target_rate=_validate_target(target_rate),
            condition=parse_condition(condition),
            created_at=self._clock(),
            max_notifications=cap,
            description=(description or "").strip(),
            chat_id=chat_id,
        )
        self._alerts[alert.id] = alert
        self._save()
        logger.info("Added alert %s (%s %s %s)", alert.id, alert.pair, alert.condition.value, alert.target_rate)
        return replace(alert)

    def update(self, alert_id: str, **changes: object) -> Alert:
        """Apply ``changes`` to one alert and persist.

        The in-memory change stays applied when persisting fails.

        Raises:
            AlertNotFound: unknown id.
            InvalidAlert: unknown or immutable field, or invalid value.
            AlertPersistFailed: the backing file could not be written.
        """
        alert = self._alerts.get(alert_id)
        if alert is None:
            raise AlertNotFound(f"No alert {alert_id!r}")
        unknown = set(changes) - _ALERT_FIELDS
        if unknown:
            raise InvalidAlert(f"Unknown alert fields: {', '.join(sorted(unknown))}")
        frozen = set(changes) & _IMMUTABLE_FIELDS
        if frozen:
            raise InvalidAlert(f"Immutable alert fields: {', '.join(sorted(frozen))}")

        if "target_rate" in changes:
            changes["target_rate"] = _validate_target(changes["target_rate"])
        if "condition" in changes:
            changes["condition"] = parse_condition(changes["condition"])
        for name in ("from_symbol", "to_symbol"):
            if name in changes:
                changes[name] = normalize_symbol(str(changes[name]))
        if "max_notifications" in changes:
            changes["max_notifications"] = _validate_cap(changes["max_notifications"])

        for name, value in changes.items():
            setattr(alert, name, value)
        alert.notification_count = min(alert.notification_count, alert.max_notifications)
        self._save()
        return replace(alert)

    def toggle(self, alert_id: str) -> Alert:
        alert = self.get(alert_id)
        return self.update(alert_id, is_active=not alert.is_active)

    def remove(self, alert_id: str) -> None:
        if self._alerts.pop(alert_id, None) is None:
            raise AlertNotFound(f"No alert {alert_id!r}")
        self._save()
        logger.info("Removed alert %s", alert_id)

    def stats(self) -> AlertStats:
        out = AlertStats()
        for alert in self._alerts.values():
            out.total += 1
            out.active += int(alert.is_active)
            out.triggered += int(alert.triggered)
            is_crypto = AssetKind.CRYPTO in (
                classify(alert.from_symbol),
                classify(alert.to_symbol),
            )
            if is_crypto:
                out.crypto += 1
            else:
                out.fiat += 1
        return out

    def _save(self) -> None:
        """Persist hook; in-memory stores keep nothing."""


class JsonAlertStore(AlertStore):
    """Alert store persisted to a JSON file."""

    def __init__(
        self,
        path: str | Path,
        default_max_notifications: int = 1,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(default_max_notifications=default_max_notifications, clock=clock)
        self._state_file = Path(path)

    def load(self) -> None:
        """Load persisted alerts from disk; a missing file means no alerts."""
        try:
            if not self._state_file.exists():
                return
            data = json.loads(self._state_file.read_text())
        except (OSError, ValueError):
            logger.exception("Failed to load alerts from %s", self._state_file)
            return

        loaded: dict[str, Alert] = {}
        for raw in data.get("alerts", []):
            try:
                alert = Alert.from_dict(raw)
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed alert entry %r: %s", raw, exc)
                continue
            loaded[alert.id] = alert
        self._alerts = loaded
        logger.info("Loaded %d alert(s) from %s", len(loaded), self._state_file)

    def _save(self) -> None:
        payload = {"alerts": [a.to_dict() for a in self._alerts.values()]}
        tmp = self._state_file.with_suffix(self._state_file.suffix + ".tmp")
        try:
            self._state_file.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(payload, indent=2))
            tmp.replace(self._state_file)
        except OSError as exc:
            raise AlertPersistFailed(
                f"Failed to write alerts to {self._state_file}: {exc}"
            ) from exc
