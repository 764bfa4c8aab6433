"""
Arrival detection.
"""

from __future__ import annotations

from typing import Callable, Optional

from .congestion import CongestionTracker
from .events import Event, create_arrival_event
from .kinematics import fuzzy_eq
from .scenario import Scenario
from .state import VehicleStateStore


class TerminationDetector:
    """
    Marks vehicles that have fully covered an edge ending at their destination.

    The finished flag is sticky. A newly finished vehicle leaves the
    occupancy counters.
    """

    def __init__(
        self,
        scenario: Scenario,
        store: VehicleStateStore,
        tracker: CongestionTracker,
        eps: float,
        on_event: Optional[Callable[[Event], None]] = None,
    ):
        self.scenario = scenario
        self.store = store
        self.tracker = tracker
        self.eps = eps
        self.on_event = on_event

        # Edges ending on each destination, looked up once per node
        self._dst_edges: dict[str, set[int]] = {}

    def _edges_into(self, node: str) -> set[int]:
        if node not in self._dst_edges:
            self._dst_edges[node] = set(self.scenario.graph.edges_ended_on(node))
        return self._dst_edges[node]

    def is_vehicle_finished(self, veh_id: int) -> bool:
        """Whether a vehicle currently satisfies the arrival condition."""
        state = self.store.states[veh_id]
        if not fuzzy_eq(state.part, 1.0, self.eps):
            return False
        return state.edge_uid in self._edges_into(self.scenario.vehicle(veh_id).dst)

    def check(self, t: float) -> bool:
        """
        Record newly arrived vehicles.

        Returns:
            True when every vehicle has finished
        """
        store = self.store
        all_finished = True

        for veh_id in range(store.vehicle_count):
            if store.finished[veh_id]:
                continue

            if not self.is_vehicle_finished(veh_id):
                all_finished = False
                continue

            store.finished[veh_id] = True
            store.arrival_times[veh_id] = t
            edge_uid = store.states[veh_id].edge_uid
            self.tracker.decrement(edge_uid)

            if self.on_event is not None:
                self.on_event(create_arrival_event(t, veh_id, edge_uid))

        return all_finished
