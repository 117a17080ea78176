from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from threading import Lock
from typing import Dict


@dataclass
class RewardsSnapshot:
    redemptions: Dict[str, int]
    rejections: Dict[str, int]
    transitions: Dict[str, int]
    refunds: Dict[str, int]

    def as_dict(self) -> Dict[str, object]:
        return {
            "redemptions": dict(self.redemptions),
            "rejections": dict(self.rejections),
            "transitions": dict(self.transitions),
            "refunds": dict(self.refunds),
        }


class RewardsObservabilityStore:
    """Collect redemption pipeline telemetry for dashboards and alerting."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._redemptions: Dict[str, int] = defaultdict(int)
        self._rejections: Dict[str, int] = defaultdict(int)
        self._transitions: Dict[str, int] = defaultdict(int)
        self._refunds: Dict[str, int] = defaultdict(int)

    def record_redemption(self, quantity: int, coins: int) -> None:
        with self._lock:
            self._redemptions["committed"] += 1
            self._redemptions["units"] += quantity
            self._redemptions["coins"] += coins

    def record_rejection(self, code: str) -> None:
        """Count a redemption attempt that failed with a typed error code."""
        with self._lock:
            self._rejections[code or "unknown"] += 1

    def record_transition(self, from_status: str, to_status: str) -> None:
        with self._lock:
            self._transitions[f"{from_status}->{to_status}"] += 1

    def record_refund(self, coins: int) -> None:
        with self._lock:
            self._refunds["count"] += 1
            self._refunds["coins"] += coins

    def snapshot(self) -> RewardsSnapshot:
        with self._lock:
            return RewardsSnapshot(
                redemptions=dict(self._redemptions),
                rejections=dict(self._rejections),
                transitions=dict(self._transitions),
                refunds=dict(self._refunds),
            )

    def reset(self) -> None:
        with self._lock:
            self._redemptions.clear()
            self._rejections.clear()
            self._transitions.clear()
            self._refunds.clear()


_STORE = RewardsObservabilityStore()


def get_rewards_store() -> RewardsObservabilityStore:
    return _STORE


__all__ = ["get_rewards_store", "RewardsObservabilityStore", "RewardsSnapshot"]
