"""Alert evaluation: the per-alert trigger/reset state machine."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from .assets import display_symbol
from .errors import AlertNotFound, AlertPersistFailed, RateResolutionFailed
from .models.alerts import Alert, Condition, TickResult
from .notify import NotificationSink
from .resolver import RateResolver
from .store import AlertStore

logger = logging.getLogger(__name__)

DEFAULT_MIN_RECHECK_S = 60.0

OUTCOME_INACTIVE = "inactive"
OUTCOME_SKIPPED = "skipped"  # checked too recently
OUTCOME_FAILED = "failed"  # no rate
OUTCOME_ERROR = "error"
OUTCOME_FIRED = "fired"
OUTCOME_REPEATED = "repeated"
OUTCOME_RESET = "reset"
OUTCOME_UNCHANGED = "unchanged"


@dataclass
class Transition:
    outcome: str
    changes: dict[str, object] = field(default_factory=dict)
    notify: bool = False


@dataclass
class Evaluation:
    alert_id: str
    outcome: str
    rate: float | None = None


def format_rate(rate: float) -> str:
    if rate >= 1:
        return f"{rate:,.4f}"
    return f"{rate:.6g}"


def build_alert_message(alert: Alert, rate: float) -> str:
    condition_text = "reached" if alert.condition is Condition.ABOVE else "dropped below"
    pair = f"{display_symbol(alert.from_symbol)}/{display_symbol(alert.to_symbol)}"
    target = f"{alert.target_rate:g}"
    return f"{pair} rate has {condition_text} {target} (current: {format_rate(rate)})"


def next_transition(alert: Alert, rate: float) -> Transition:
    """Decide what one evaluation at ``rate`` does to ``alert``.

    untriggered + holds   -> fire (count 1)
    triggered + released  -> re-arm (count back to 0)
    triggered + holds     -> repeat until the cap, then nothing
    """
    holds = alert.condition.holds(rate, alert.target_rate)
    cap = max(1, alert.max_notifications)

    if not alert.triggered:
        if not holds:
            return Transition(OUTCOME_UNCHANGED)
        count = alert.notification_count + 1
        return Transition(
            OUTCOME_FIRED,
            {"triggered": True, "notification_count": min(count, cap)},
            notify=count <= cap,
        )

    if not holds:
        return Transition(OUTCOME_RESET, {"triggered": False, "notification_count": 0})
    if alert.notification_count < cap:
        return Transition(
            OUTCOME_REPEATED,
            {"notification_count": alert.notification_count + 1},
            notify=True,
        )
    return Transition(OUTCOME_UNCHANGED)


class AlertEvaluator:
    """Evaluates alerts from ``store`` and emits notifications through ``sink``.

    An evaluation only counts as executed once a rate was obtained: when
    resolution fails the alert, ``last_checked_at`` included, is left as it
    was so the next tick retries straight away.
    """

    def __init__(
        self,
        store: AlertStore,
        resolver: RateResolver,
        sink: NotificationSink,
        min_recheck_s: float = DEFAULT_MIN_RECHECK_S,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.resolver = resolver
        self.sink = sink
        self.min_recheck_s = min_recheck_s
        self._clock = clock

    def _checked_recently(self, alert: Alert, now: float) -> bool:
        if not alert.last_checked_at:
            return False
        return (now - alert.last_checked_at) < self.min_recheck_s

    async def evaluate(self, alert: Alert) -> Evaluation:
        if not alert.is_active:
            return Evaluation(alert.id, OUTCOME_INACTIVE)
        now = self._clock()
        if self._checked_recently(alert, now):
            return Evaluation(alert.id, OUTCOME_SKIPPED)

        try:
            rate = await self.resolver.resolve(alert.from_symbol, alert.to_symbol)
        except RateResolutionFailed as exc:
            logger.warning("Skipping alert %s (%s): %s", alert.id, alert.pair, exc)
            return Evaluation(alert.id, OUTCOME_FAILED)

        transition = next_transition(alert, rate)
        changes = dict(transition.changes, last_checked_at=now)
        for name, value in changes.items():
            setattr(alert, name, value)

        try:
            self.store.update(alert.id, **changes)
        except AlertNotFound:
            logger.info("Alert %s was removed during evaluation", alert.id)
            return Evaluation(alert.id, OUTCOME_UNCHANGED, rate)
        except AlertPersistFailed:
            # Keep going: a repeated notification beats a lost trigger
            logger.exception("Failed to persist state for alert %s", alert.id)

        if transition.outcome != OUTCOME_UNCHANGED:
            logger.info(
                "Alert %s %s at %s (target %s %s)",
                alert.id,
                transition.outcome,
                format_rate(rate),
                alert.condition.value,
                alert.target_rate,
            )
        if transition.notify:
            await self._emit(alert, rate)
        return Evaluation(alert.id, transition.outcome, rate)

    async def _emit(self, alert: Alert, rate: float) -> None:
        message = build_alert_message(alert, rate)
        try:
            await self.sink.emit(alert, message, rate)
        except Exception:
            logger.exception("Notification sink failed for alert %s", alert.id)

    async def _evaluate_safely(self, alert: Alert) -> Evaluation:
        try:
            return await self.evaluate(alert)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Unexpected error evaluating alert %s", alert.id)
            return Evaluation(alert.id, OUTCOME_ERROR)

    async def check_alert(self, alert_id: str) -> Evaluation:
        """Evaluate a single alert on demand, under the same rules as a tick."""
        return await self._evaluate_safely(self.store.get(alert_id))

    async def run_tick(self) -> TickResult:
        """Evaluate every active alert once; one alert's failure never stops the rest."""
        result = TickResult()
        try:
            alerts = self.store.list_active()
        except Exception as exc:
            logger.exception("Failed to list alerts")
            result.errors.append(str(exc))
            return result

        evaluations = await asyncio.gather(*(self._evaluate_safely(a) for a in alerts))
        for evaluation in evaluations:
            outcome = evaluation.outcome
            if outcome == OUTCOME_SKIPPED:
                result.skipped += 1
                continue
            if outcome in {OUTCOME_FAILED, OUTCOME_ERROR}:
                result.failed += 1
                result.errors.append(evaluation.alert_id)
                continue
            result.checked += 1
            if outcome in {OUTCOME_FIRED, OUTCOME_REPEATED}:
                result.fired += 1
            elif outcome == OUTCOME_RESET:
                result.reset += 1

        logger.info(
            "Alert tick: %d checked, %d fired, %d reset, %d skipped, %d failed",
            result.checked,
            result.fired,
            result.reset,
            result.skipped,
            result.failed,
        )
        return result
