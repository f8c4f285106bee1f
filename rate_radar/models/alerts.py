"""Alert definition and evaluation-state dataclasses."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum


class Condition(str, Enum):
    ABOVE = "above"
    BELOW = "below"

    def holds(self, rate: float, target: float) -> bool:
        # Both boundaries are inclusive
        if self is Condition.ABOVE:
            return rate >= target
        return rate <= target


@dataclass
class Alert:
    id: str
    from_symbol: str
    to_symbol: str
    target_rate: float
    condition: Condition
    created_at: float
    is_active: bool = True
    triggered: bool = False
    notification_count: int = 0
    max_notifications: int = 1
    last_checked_at: float = 0.0
    description: str = ""
    chat_id: int | None = None

    @property
    def pair(self) -> str:
        return f"{self.from_symbol}/{self.to_symbol}"

    def to_dict(self) -> dict[str, object]:
        data = asdict(self)
        data["condition"] = self.condition.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "Alert":
        return cls(
            id=str(data["id"]),
            from_symbol=str(data["from_symbol"]),
            to_symbol=str(data["to_symbol"]),
            target_rate=float(data["target_rate"]),
            condition=Condition(str(data["condition"]).lower()),
            created_at=float(data.get("created_at") or 0.0),
            is_active=bool(data.get("is_active", True)),
            triggered=bool(data.get("triggered", False)),
            notification_count=int(data.get("notification_count") or 0),
            max_notifications=int(data.get("max_notifications") or 1),
            last_checked_at=float(data.get("last_checked_at") or 0.0),
            description=str(data.get("description") or ""),
            chat_id=data.get("chat_id"),
        )


@dataclass
class AlertStats:
    total: int = 0
    active: int = 0
    triggered: int = 0
    fiat: int = 0
    crypto: int = 0


@dataclass
class TickResult:
    """Outcome counters for one scheduler tick."""

    checked: int = 0
    fired: int = 0
    reset: int = 0
    skipped: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)
