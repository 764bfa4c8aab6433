"""
Per-vehicle simulation state.

Discrete state lives in one dataclass per vehicle; kinematics and the
finished flags are parallel numpy arrays indexed by vehicle id. The store
holds data only, callers enforce the invariants.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray


@dataclass
class VehicleDiscreteState:
    """Position of a vehicle on the network."""

    edge_uid: int = -1  # Current edge, -1 before placement
    part: float = 0.0  # Fraction of the edge length already covered
    node_num: int = 0  # Path index of the node the current edge starts at


class VehicleStateStore:
    """Arrays sized once to the vehicle count and kept for the whole run."""

    def __init__(
        self,
        vehicle_count: int,
        a_max: float,
        initial_velocity: float = 0.0,
    ):
        self.vehicle_count = vehicle_count
        self.states: list[VehicleDiscreteState] = [
            VehicleDiscreteState() for _ in range(vehicle_count)
        ]
        self.velocities: NDArray[np.float64] = np.full(
            vehicle_count, initial_velocity, dtype=np.float64
        )
        self.accelerations: NDArray[np.float64] = np.full(
            vehicle_count, a_max, dtype=np.float64
        )
        self.finished: NDArray[np.bool_] = np.zeros(vehicle_count, dtype=bool)

        # Simulation time each vehicle was detected as finished
        self.arrival_times: NDArray[np.float64] = np.full(
            vehicle_count, np.nan, dtype=np.float64
        )

    def unfinished_ids(self) -> list[int]:
        """Vehicle ids still travelling, in id order."""
        return [veh_id for veh_id in range(self.vehicle_count) if not self.finished[veh_id]]

    @property
    def n_finished(self) -> int:
        return int(self.finished.sum())

    def snapshot(self, veh_id: int) -> dict:
        """Plain-dict view of one vehicle, for records and reports."""
        state = self.states[veh_id]
        return {
            "vehicle_id": veh_id,
            "edge_uid": state.edge_uid,
            "part": state.part,
            "node_num": state.node_num,
            "velocity": float(self.velocities[veh_id]),
            "acceleration": float(self.accelerations[veh_id]),
            "finished": bool(self.finished[veh_id]),
        }
