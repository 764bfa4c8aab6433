"""
Event-time computation for uniformly accelerated vehicles.

A vehicle's next event is whichever comes first: reaching the end of its
current edge, or reaching the global speed cap. The critical time of a
step is the minimum of those over all unfinished vehicles.
"""

from __future__ import annotations

import math
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from .events import EventType
from .network import GraphBase
from .state import VehicleStateStore

DEFAULT_EPS = 1e-9


def fuzzy_eq(a: float, b: float, eps: float = DEFAULT_EPS) -> bool:
    """Float equality within an absolute tolerance."""
    return abs(a - b) <= eps


def time_to_next_event(
    length: float,
    part: float,
    velocity: float,
    acceleration: float,
    v_max: float,
    eps: float = DEFAULT_EPS,
) -> tuple[float, EventType]:
    """
    Time until a single vehicle's next boundary event.

    Args:
        length: Length of the current edge
        part: Fraction of the edge already covered
        velocity: Current velocity (must be > 0 when acceleration is 0)
        acceleration: Current acceleration
        v_max: Speed cap
        eps: Tolerance for the zero-acceleration test

    Returns:
        (time, event type), where the type is EDGE_END or SPEED_CAP
    """
    remaining = max(0.0, length * (1.0 - part))
    if remaining <= 0.0:
        return 0.0, EventType.EDGE_END

    if fuzzy_eq(acceleration, 0.0, eps):
        return remaining / velocity, EventType.EDGE_END

    # dS = V*t + a*t^2/2 solved for t, in the form that does not cancel
    # when V^2 dominates 2*a*dS
    root = math.sqrt(velocity * velocity + 2 * acceleration * remaining)
    t_end = 2 * remaining / (velocity + root)
    t_cap = (v_max - velocity) / acceleration

    if t_cap < t_end:
        return t_cap, EventType.SPEED_CAP
    return t_end, EventType.EDGE_END


class EventTimeCalculator:
    """
    Computes per-vehicle event times and the global critical time.

    ``refresh`` is the bookkeeping hook the engine calls after placement
    and after every advance. It caches next-event estimates for
    reporting; ``critical_time`` always works from the live state.
    """

    def __init__(self, graph: GraphBase, v_max: float, eps: float = DEFAULT_EPS):
        self.graph = graph
        self.v_max = v_max
        self.eps = eps

        self.next_event_times: NDArray[np.float64] = np.empty(0, dtype=np.float64)
        self.next_event_types: list[Optional[EventType]] = []
        self.refreshed_at: float = 0.0

    def vehicle_event_time(self, store: VehicleStateStore, veh_id: int) -> tuple[float, EventType]:
        """Next event time and type for one vehicle."""
        state = store.states[veh_id]
        return time_to_next_event(
            length=self.graph.length(state.edge_uid),
            part=state.part,
            velocity=float(store.velocities[veh_id]),
            acceleration=float(store.accelerations[veh_id]),
            v_max=self.v_max,
            eps=self.eps,
        )

    def critical_time(self, store: VehicleStateStore) -> tuple[float, int, EventType]:
        """
        Minimum event time over unfinished vehicles.

        Returns:
            (critical time, vehicle id that sets it, its event type);
            the lowest vehicle id wins ties

        Raises:
            RuntimeError: if every vehicle has already finished
        """
        min_time = -1.0
        min_veh_id = -1
        min_type = EventType.EDGE_END

        for veh_id in range(store.vehicle_count):
            if store.finished[veh_id]:
                continue

            event_time, event_type = self.vehicle_event_time(store, veh_id)
            if min_veh_id < 0 or event_time < min_time:
                min_time = event_time
                min_veh_id = veh_id
                min_type = event_type

        if min_veh_id < 0:
            raise RuntimeError("Critical time requested with no unfinished vehicles")

        return min_time, min_veh_id, min_type

    def refresh(self, t: float, store: VehicleStateStore) -> None:
        """Cache next-event estimates; NaN marks finished vehicles."""
        times = np.full(store.vehicle_count, np.nan, dtype=np.float64)
        types: list[Optional[EventType]] = [None] * store.vehicle_count

        for veh_id in range(store.vehicle_count):
            if store.finished[veh_id]:
                continue
            state = store.states[veh_id]
            # Vehicles parked at the end of their last edge await arrival
            if fuzzy_eq(state.part, 1.0, self.eps):
                times[veh_id] = 0.0
                types[veh_id] = EventType.EDGE_END
                continue
            times[veh_id], types[veh_id] = self.vehicle_event_time(store, veh_id)

        self.next_event_times = times
        self.next_event_types = types
        self.refreshed_at = t

    def predicted_event_time(self, veh_id: int) -> float:
        """Absolute simulation time of a vehicle's next cached event."""
        return self.refreshed_at + float(self.next_event_times[veh_id])
