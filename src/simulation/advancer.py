"""
Moves every vehicle forward by one critical time step.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from .congestion import CongestionTracker
from .events import (
    Event,
    EventType,
    create_speed_cap_event,
    create_transition_event,
)
from .kinematics import EventTimeCalculator, fuzzy_eq
from .network import GraphBase
from .routing import select_edge
from .scenario import Scenario
from .state import VehicleStateStore

logger = logging.getLogger(__name__)


class StateAdvancer:
    """
    Applies a time delta to positions, velocities and accelerations.

    Transitions onto the next edge of a path go through the same
    congestion-aware selection as the initial placement.
    """

    def __init__(
        self,
        scenario: Scenario,
        store: VehicleStateStore,
        tracker: CongestionTracker,
        calculator: EventTimeCalculator,
        v_max: float,
        eps: float,
        on_event: Optional[Callable[[Event], None]] = None,
    ):
        self.scenario = scenario
        self.graph: GraphBase = scenario.graph
        self.store = store
        self.tracker = tracker
        self.calculator = calculator
        self.v_max = v_max
        self.eps = eps
        self.on_event = on_event

    def _emit(self, event: Event) -> None:
        if self.on_event is not None:
            self.on_event(event)

    def advance(self, t: float, dt: float) -> int:
        """
        Advance all vehicles by ``dt``; ``t`` is the clock after the step.

        Returns:
            Number of edge transitions performed

        Raises:
            NoConnectingEdgeError: if a path hop has no edge
        """
        store = self.store
        self.tracker.reconcile(store.states, store.finished)

        transitions = 0
        for veh_id in range(store.vehicle_count):
            if store.finished[veh_id]:
                continue

            state = store.states[veh_id]
            velocity = float(store.velocities[veh_id])
            acceleration = float(store.accelerations[veh_id])

            distance = velocity * dt + 0.5 * acceleration * dt * dt
            state.part += distance / self.graph.length(state.edge_uid)

            if state.part < 1.0 - self.eps:
                continue

            # Edge completed; overshoot past the end is absorbed here
            state.part = 1.0

            path = self.scenario.vehicle(veh_id).path
            if state.node_num >= len(path) - 2:
                # Last hop: park at the end and wait for arrival detection
                continue

            next_edge = select_edge(
                self.graph,
                self.tracker,
                path[state.node_num + 1],
                path[state.node_num + 2],
                vehicle_id=veh_id,
            )

            old_edge = state.edge_uid
            self.tracker.decrement(old_edge)
            self.tracker.increment(next_edge)

            state.edge_uid = next_edge
            state.part = 0.0
            state.node_num += 1
            transitions += 1

            self._emit(create_transition_event(t, veh_id, old_edge, next_edge, state.node_num))

        self._update_kinematics(t, dt)
        self.calculator.refresh(t, store)
        return transitions

    def _update_kinematics(self, t: float, dt: float) -> None:
        """Integrate velocity for every vehicle and end acceleration at the cap."""
        store = self.store
        for veh_id in range(store.vehicle_count):
            store.velocities[veh_id] += dt * store.accelerations[veh_id]

            if fuzzy_eq(float(store.accelerations[veh_id]), 0.0, self.eps):
                continue

            velocity = float(store.velocities[veh_id])
            if fuzzy_eq(velocity, self.v_max, self.eps) or velocity > self.v_max:
                store.velocities[veh_id] = self.v_max
                store.accelerations[veh_id] = 0.0
                self._emit(create_speed_cap_event(t, veh_id, self.v_max))
                logger.debug(f"Vehicle {veh_id} reached speed cap at t={t:.3f}")
