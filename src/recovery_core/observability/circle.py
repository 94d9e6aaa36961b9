from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from threading import Lock
from typing import Dict


@dataclass
class CircleSnapshot:
    mutations: Dict[str, Dict[str, int]]
    conflicts: int
    store_failures: int
    skipped_records: Dict[str, int]

    def as_dict(self) -> Dict[str, object]:
        return {
            "mutations": {key: dict(value) for key, value in self.mutations.items()},
            "conflicts": self.conflicts,
            "store_failures": self.store_failures,
            "skipped_records": dict(self.skipped_records),
        }


class CircleObservabilityStore:
    """Collect roster telemetry for dashboards and alerting."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._mutations: Dict[str, Dict[str, int]] = defaultdict(lambda: defaultdict(int))
        self._conflicts = 0
        self._store_failures = 0
        self._skipped: Dict[str, int] = defaultdict(int)

    def record_mutation(self, kind: str, status: str) -> None:
        with self._lock:
            self._mutations[kind][status] += 1
            if status == "conflict":
                self._conflicts += 1
            elif status == "unavailable":
                self._store_failures += 1

    def record_skipped_record(self, reason: str) -> None:
        with self._lock:
            self._skipped[reason or "unknown"] += 1

    def snapshot(self) -> CircleSnapshot:
        with self._lock:
            mutations = {kind: dict(statuses) for kind, statuses in self._mutations.items()}
            return CircleSnapshot(
                mutations=mutations,
                conflicts=self._conflicts,
                store_failures=self._store_failures,
                skipped_records=dict(self._skipped),
            )

    def reset(self) -> None:
        with self._lock:
            self._mutations.clear()
            self._conflicts = 0
            self._store_failures = 0
            self._skipped.clear()


_STORE = CircleObservabilityStore()


def get_circle_store() -> CircleObservabilityStore:
    return _STORE


__all__ = ["get_circle_store", "CircleObservabilityStore", "CircleSnapshot"]
