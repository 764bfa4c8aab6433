"""
Per-edge occupancy counters used as the congestion signal for routing.
"""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from .state import VehicleDiscreteState

logger = logging.getLogger(__name__)


class CongestionTracker:
    """
    Counts vehicles currently assigned to each edge.

    Counters are adjusted incrementally on placement, transition and
    arrival, and rebuilt from the vehicle assignments by ``reconcile``
    once per step.
    """

    def __init__(self, edge_count: int):
        self.counts = np.zeros(edge_count, dtype=np.int64)

    def occupancy(self, edge_uid: int) -> int:
        """Number of vehicles on an edge."""
        return int(self.counts[edge_uid])

    def increment(self, edge_uid: int) -> None:
        self.counts[edge_uid] += 1

    def decrement(self, edge_uid: int) -> None:
        self.counts[edge_uid] -= 1

    def reset(self) -> None:
        self.counts[:] = 0

    def reconcile(
        self,
        states: Sequence[VehicleDiscreteState],
        finished: Sequence[bool],
    ) -> None:
        """Recompute every counter from the unfinished vehicles' edges."""
        expected = np.zeros_like(self.counts)
        for state, done in zip(states, finished):
            if not done:
                expected[state.edge_uid] += 1

        if not np.array_equal(expected, self.counts):
            drift = int(np.abs(expected - self.counts).sum())
            logger.debug(f"Occupancy drift of {drift} corrected")

        self.counts = expected

    def total(self) -> int:
        """Sum of all counters."""
        return int(self.counts.sum())

    def as_dict(self) -> dict[int, int]:
        """Non-zero counters keyed by edge uid."""
        return {int(uid): int(c) for uid, c in enumerate(self.counts) if c}
