"""
Metrics collection for simulation runs.

Collects per-step records, events and per-vehicle trajectory samples,
and aggregates them after the run.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Optional

import numpy as np
import pandas as pd

from .events import Event
from .state import VehicleStateStore


@dataclass
class StepRecord:
    """One iteration of the next-event loop."""

    step: int
    time: float
    dt: float
    critical_vehicle: int
    event_type: str
    transitions: int
    n_finished: int
    total_occupancy: int


@dataclass
class TrajectoryRecord:
    """State of one vehicle at an event boundary."""

    step: int
    time: float
    vehicle_id: int
    edge_uid: int
    part: float
    node_num: int
    velocity: float
    acceleration: float
    finished: bool


class MetricsCollector:
    """
    Collects and aggregates simulation metrics.

    Trajectory sampling can be switched off for large runs; step and
    event records are always kept.
    """

    def __init__(self, record_trajectory: bool = True):
        self.record_trajectory = record_trajectory

        self.steps: list[StepRecord] = []
        self.events: list[Event] = []
        self.trajectory: list[TrajectoryRecord] = []

        self._event_seq = 0

    def record_event(self, event: Event) -> None:
        """Record an event, stamping its sequence number."""
        event.seq = self._event_seq
        self._event_seq += 1
        self.events.append(event)

    def record_step(self, record: StepRecord) -> None:
        self.steps.append(record)

    def record_states(self, step: int, time: float, store: VehicleStateStore) -> None:
        """Sample every vehicle's state at an event boundary."""
        if not self.record_trajectory:
            return

        for veh_id in range(store.vehicle_count):
            snap = store.snapshot(veh_id)
            self.trajectory.append(TrajectoryRecord(step=step, time=time, **snap))

    def get_summary_metrics(
        self,
        store: VehicleStateStore,
        final_time: float,
    ) -> dict[str, Any]:
        """
        Compute summary metrics for the run.

        Returns:
            Dictionary of aggregate metrics
        """
        arrivals = store.arrival_times[~np.isnan(store.arrival_times)]
        dts = [s.dt for s in self.steps]

        return {
            "n_vehicles": store.vehicle_count,
            "n_finished": store.n_finished,
            "n_steps": len(self.steps),
            "final_time": final_time,
            "n_transitions": sum(s.transitions for s in self.steps),
            "avg_arrival_time": float(np.mean(arrivals)) if len(arrivals) else 0.0,
            "max_arrival_time": float(np.max(arrivals)) if len(arrivals) else 0.0,
            "min_step": float(np.min(dts)) if dts else 0.0,
            "mean_step": float(np.mean(dts)) if dts else 0.0,
            "final_velocity_mean": (
                float(np.mean(store.velocities)) if store.vehicle_count else 0.0
            ),
        }

    def to_dataframe(self) -> pd.DataFrame:
        """Trajectory samples as a DataFrame."""
        if not self.trajectory:
            return pd.DataFrame()
        return pd.DataFrame([asdict(r) for r in self.trajectory])

    def steps_to_dataframe(self) -> pd.DataFrame:
        if not self.steps:
            return pd.DataFrame()
        return pd.DataFrame([asdict(s) for s in self.steps])

    def events_to_dataframe(self, event_type: Optional[str] = None) -> pd.DataFrame:
        """Events as a DataFrame, optionally filtered by type name."""
        records = [
            {
                "seq": e.seq,
                "time": e.time,
                "event_type": e.event_type.name,
                "vehicle_id": e.vehicle_id,
                **e.data,
            }
            for e in self.events
            if event_type is None or e.event_type.name == event_type
        ]
        if not records:
            return pd.DataFrame()
        return pd.DataFrame(records)

    def reset(self) -> None:
        """Reset all metrics."""
        self.steps = []
        self.events = []
        self.trajectory = []
        self._event_seq = 0
