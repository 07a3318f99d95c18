"""Bounded alert history with snapshot/restore for external persistence.

Alerts are kept most-recent-first; once the capacity is exceeded the
oldest insertion is evicted, regardless of its kind.
"""
import json
import logging
from collections import deque

from .models import Alert, HistorySnapshotError

logger = logging.getLogger(__name__)


class HistoryStore:
    """Append-only, capacity-bounded log of alerts."""

    def __init__(self, capacity: int = 50):
        """Initialize the history store.

        Args:
            capacity: Maximum number of alerts kept.
        """
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._alerts: deque[Alert] = deque()
        self._stats = {
            "total_appended": 0,
            "total_evicted": 0,
            "alerts_by_kind": {},
        }

    def __len__(self) -> int:
        return len(self._alerts)

    def append(self, alert: Alert) -> None:
        """Insert an alert at the front, evicting from the back past capacity."""
        self._alerts.appendleft(alert)
        self._stats["total_appended"] += 1
        kind = alert.kind.value
        self._stats["alerts_by_kind"][kind] = self._stats["alerts_by_kind"].get(kind, 0) + 1

        while len(self._alerts) > self.capacity:
            self._alerts.pop()
            self._stats["total_evicted"] += 1

    def all(self) -> list[Alert]:
        """All alerts, most recent first."""
        return list(self._alerts)

    def recent(self, count: int) -> list[Alert]:
        """Get up to `count` most recent alerts, newest first."""
        return list(self._alerts)[:max(count, 0)]

    def clear(self) -> None:
        self._alerts.clear()

    def get_stats(self) -> dict:
        return {
            **self._stats,
            "size": len(self._alerts),
            "capacity": self.capacity,
        }

    def snapshot(self) -> str:
        """Serialize the content as a JSON array, most recent first."""
        return json.dumps([alert.to_dict() for alert in self._alerts], ensure_ascii=False)

    def restore(self, serialized: str) -> None:
        """Replace the content with a snapshot produced by `snapshot()`.

        Raises:
            HistorySnapshotError: If the snapshot is not a list of alert records.
                The current content is left untouched in that case.
        """
        try:
            records = json.loads(serialized)
        except (TypeError, ValueError, RecursionError) as e:
            raise HistorySnapshotError(f"History snapshot is not valid JSON: {e}") from e

        if not isinstance(records, list):
            raise HistorySnapshotError(
                f"History snapshot must be a list, got {type(records).__name__}"
            )

        alerts = [_record_to_alert(record) for record in records]
        self._alerts = deque(alerts[:self.capacity])

        by_kind: dict = {}
        for alert in self._alerts:
            by_kind[alert.kind.value] = by_kind.get(alert.kind.value, 0) + 1
        self._stats = {
            "total_appended": len(self._alerts),
            "total_evicted": 0,
            "alerts_by_kind": by_kind,
        }
        logger.info(f"[HISTORY] Restored {len(self._alerts)} alerts")


def _record_to_alert(record) -> Alert:
    if not isinstance(record, dict):
        raise HistorySnapshotError(f"History record must be an object, got {record!r}")
    return Alert.from_dict(record)
