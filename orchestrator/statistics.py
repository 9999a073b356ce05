"""
Statistics collection and reporting for the orchestrator.
"""

import threading
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .constants import StatsKeys
from .models import Intent


@dataclass(frozen=True)
class StatsSnapshot:
    """Point-in-time copy of the counters."""
    total: int
    per_intent: Dict[Intent, int]
    avg_duration: Dict[Intent, float] = field(default_factory=dict)
    started_at: float = 0.0
    taken_at: float = 0.0

    @property
    def runtime_seconds(self) -> float:
        return self.taken_at - self.started_at

    def count(self, intent: Intent) -> int:
        return self.per_intent.get(intent, 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            StatsKeys.TOTAL: self.total,
            StatsKeys.PER_INTENT: {intent.value: count for intent, count in self.per_intent.items()},
            StatsKeys.AVG_DURATION: {intent.value: avg for intent, avg in self.avg_duration.items()},
            StatsKeys.STARTED_AT: self.started_at,
            StatsKeys.RUNTIME: self.runtime_seconds,
        }


class StatisticsRecorder:
    """
    Process-wide counters of completed queries, keyed by intent.

    Counters only ever grow. Every update and every snapshot holds the same
    lock, so concurrent completions are never lost and a snapshot always
    satisfies total == sum(per_intent).
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._total = 0
        self._counts: Dict[Intent, int] = defaultdict(int)
        self._durations: Dict[Intent, float] = defaultdict(float)
        self._started_at = time.time()

    def record(self, intent: Intent, duration: float = 0.0) -> None:
        """
        Record one completed query.

        Args:
            intent: Intent decided at classification
            duration: Seconds from receipt to completion
        """
        if not isinstance(intent, Intent):
            raise TypeError(f"intent must be an Intent, got {type(intent).__name__}")

        with self._lock:
            self._total += 1
            self._counts[intent] += 1
            self._durations[intent] += max(duration, 0.0)

    def snapshot(self) -> StatsSnapshot:
        """Consistent copy of the current counters; every intent is present."""
        with self._lock:
            per_intent = {intent: self._counts[intent] for intent in Intent}
            avg_duration = {
                intent: (self._durations[intent] / self._counts[intent]) if self._counts[intent] else 0.0
                for intent in Intent
            }
            total = self._total

        return StatsSnapshot(
            total=total,
            per_intent=per_intent,
            avg_duration=avg_duration,
            started_at=self._started_at,
            taken_at=time.time()
        )

    def generate_report(self, snapshot: Optional[StatsSnapshot] = None) -> str:
        """Generate a human-readable statistics report."""
        snapshot = snapshot or self.snapshot()

        report_lines = [
            "📊 QUERY STATISTICS",
            "=" * 50,
            f"⏱️  Total runtime: {snapshot.runtime_seconds:.2f}s",
            f"📈 Total queries: {snapshot.total}",
        ]

        if snapshot.total > 0:
            report_lines.append("")
            report_lines.append("🧭 Queries by intent:")
            for intent in Intent:
                count = snapshot.count(intent)
                percentage = (count / snapshot.total) * 100
                report_lines.append(
                    f"  {intent.value.upper()}: {count} ({percentage:.1f}%), "
                    f"avg {snapshot.avg_duration.get(intent, 0.0):.2f}s"
                )

        return "\n".join(report_lines)
