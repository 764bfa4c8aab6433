"""
Next-event simulation engine.

Each step advances the clock by exactly the time until the nearest
boundary event of any vehicle (end of edge or speed cap reached), moves
all vehicles by that amount and performs the resulting edge transitions.
"""

from __future__ import annotations

import logging
import time as time_module
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

import pandas as pd

from .advancer import StateAdvancer
from .congestion import CongestionTracker
from .errors import (
    DestinationMismatchError,
    PathTooShortError,
    SimulationError,
    SimulationStatus,
    SourceMismatchError,
    StepLimitExceededError,
)
from .events import create_departure_event
from .kinematics import DEFAULT_EPS, EventTimeCalculator, fuzzy_eq
from .metrics import MetricsCollector, StepRecord
from .routing import select_edge
from .scenario import Scenario
from .state import VehicleStateStore
from .termination import TerminationDetector

logger = logging.getLogger(__name__)


@dataclass
class SimulationConfig:
    """Configuration for a simulation run."""

    a_max: float = 2.0  # m/s^2, acceleration until the cap
    v_max: float = 20.0  # m/s, global speed cap
    initial_velocity: float = 0.0
    eps: float = DEFAULT_EPS  # Tolerance for every float comparison

    # Optional bound on loop iterations; None runs to completion
    max_steps: Optional[int] = None
    record_trajectory: bool = True

    def __post_init__(self):
        if self.eps <= 0:
            raise ValueError(f"eps must be positive, got {self.eps}")
        # Values within eps of zero read as zero to fuzzy_eq
        if self.a_max <= self.eps:
            raise ValueError(f"a_max must exceed eps ({self.eps}), got {self.a_max}")
        if self.v_max <= self.eps:
            raise ValueError(f"v_max must exceed eps ({self.eps}), got {self.v_max}")
        if not 0 <= self.initial_velocity <= self.v_max:
            raise ValueError(
                f"initial_velocity must be within [0, {self.v_max}], "
                f"got {self.initial_velocity}"
            )
        if self.max_steps is not None and self.max_steps <= 0:
            raise ValueError(f"max_steps must be positive, got {self.max_steps}")

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "SimulationConfig":
        """Build a configuration from the ``simulation`` section of a config file."""
        max_steps = mapping.get("max_steps")
        return cls(
            a_max=float(mapping.get("a_max", cls.a_max)),
            v_max=float(mapping.get("v_max", cls.v_max)),
            initial_velocity=float(mapping.get("initial_velocity", cls.initial_velocity)),
            eps=float(mapping.get("eps", cls.eps)),
            max_steps=int(max_steps) if max_steps is not None else None,
            record_trajectory=bool(mapping.get("record_trajectory", cls.record_trajectory)),
        )


@dataclass
class SimulationResult:
    """Results from a simulation run."""

    config: SimulationConfig
    status: SimulationStatus
    final_time: float = 0.0
    n_steps: int = 0
    metrics: dict[str, Any] = field(default_factory=dict)
    trajectory: pd.DataFrame = field(default_factory=pd.DataFrame)
    steps: pd.DataFrame = field(default_factory=pd.DataFrame)
    events: pd.DataFrame = field(default_factory=pd.DataFrame)
    error: Optional[str] = None
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status == SimulationStatus.OK


class SimulationEngine:
    """
    Runs one scenario to completion.

    All mutable run state (clock, vehicle arrays, occupancy) lives on the
    engine, so several engines can run independently. ``run`` is the
    entry point; ``initialize``/``step`` allow driving the loop by hand.
    """

    def __init__(self, scenario: Scenario, config: Optional[SimulationConfig] = None):
        self.scenario = scenario
        self.config = config or SimulationConfig()
        self.graph = scenario.graph

        self.metrics = MetricsCollector(record_trajectory=self.config.record_trajectory)
        self._reset_state()

    def _reset_state(self) -> None:
        n_vehicles = self.scenario.vehicle_count()

        self.t: float = 0.0
        self.n_steps: int = 0
        self.all_finished: bool = False

        self.store = VehicleStateStore(
            n_vehicles,
            a_max=self.config.a_max,
            initial_velocity=self.config.initial_velocity,
        )
        self.tracker = CongestionTracker(self.graph.edge_count())
        self.calculator = EventTimeCalculator(self.graph, self.config.v_max, self.config.eps)
        self.advancer = StateAdvancer(
            self.scenario,
            self.store,
            self.tracker,
            self.calculator,
            v_max=self.config.v_max,
            eps=self.config.eps,
            on_event=self.metrics.record_event,
        )
        self.detector = TerminationDetector(
            self.scenario,
            self.store,
            self.tracker,
            eps=self.config.eps,
            on_event=self.metrics.record_event,
        )
        self.metrics.reset()

    def validate(self) -> None:
        """
        Check every vehicle path against its declared endpoints.

        Raises:
            PathTooShortError, SourceMismatchError, DestinationMismatchError
        """
        for veh_id in range(self.scenario.vehicle_count()):
            vehicle = self.scenario.vehicle(veh_id)
            if len(vehicle.path) < 2:
                raise PathTooShortError(
                    f"Vehicle {veh_id} path has {len(vehicle.path)} node(s)", veh_id
                )
            if vehicle.path[0] != vehicle.src:
                raise SourceMismatchError(
                    f"Vehicle {veh_id} path starts at {vehicle.path[0]!r}, "
                    f"source is {vehicle.src!r}",
                    veh_id,
                )
            if vehicle.path[-1] != vehicle.dst:
                raise DestinationMismatchError(
                    f"Vehicle {veh_id} path ends at {vehicle.path[-1]!r}, "
                    f"destination is {vehicle.dst!r}",
                    veh_id,
                )

    def initialize(self) -> None:
        """Validate the scenario and place every vehicle on its first edge."""
        self._reset_state()
        self.validate()

        for veh_id in range(self.scenario.vehicle_count()):
            vehicle = self.scenario.vehicle(veh_id)
            edge_uid = select_edge(
                self.graph, self.tracker, vehicle.path[0], vehicle.path[1], vehicle_id=veh_id
            )
            self.tracker.increment(edge_uid)

            state = self.store.states[veh_id]
            state.edge_uid = edge_uid
            state.part = 0.0
            state.node_num = 0

            self.metrics.record_event(create_departure_event(self.t, veh_id, edge_uid))

        # Vehicles starting at the cap cruise from the outset
        if fuzzy_eq(self.config.initial_velocity, self.config.v_max, self.config.eps):
            self.store.accelerations[:] = 0.0

        self.calculator.refresh(self.t, self.store)
        self.all_finished = self.detector.check(self.t)
        self.metrics.record_states(0, self.t, self.store)

    def step(self) -> float:
        """
        Advance to the next event boundary.

        Returns:
            The critical time applied in this step

        Raises:
            NoConnectingEdgeError: if a transition finds no edge
        """
        dt, critical_vehicle, event_type = self.calculator.critical_time(self.store)

        self.t += dt
        transitions = self.advancer.advance(self.t, dt)
        self.all_finished = self.detector.check(self.t)
        self.n_steps += 1

        self.metrics.record_step(
            StepRecord(
                step=self.n_steps,
                time=self.t,
                dt=dt,
                critical_vehicle=critical_vehicle,
                event_type=event_type.name,
                transitions=transitions,
                n_finished=self.store.n_finished,
                total_occupancy=self.tracker.total(),
            )
        )
        self.metrics.record_states(self.n_steps, self.t, self.store)

        logger.debug(
            f"Step {self.n_steps}: t={self.t:.4f} dt={dt:.4f} "
            f"vehicle={critical_vehicle} {event_type.name}"
        )
        return dt

    def is_finished(self) -> bool:
        return self.all_finished

    def run(self) -> SimulationResult:
        """
        Run the simulation to completion.

        Input errors abort the run; the result then carries the matching
        status and no metrics.

        Returns:
            SimulationResult with status, metrics and trajectory
        """
        start_wall_time = time_module.time()
        n_vehicles = self.scenario.vehicle_count()
        logger.info(f"Starting simulation: {n_vehicles} vehicles, {self.graph.edge_count()} edges")

        try:
            self.initialize()
            while not self.is_finished():
                if self.config.max_steps is not None and self.n_steps >= self.config.max_steps:
                    raise StepLimitExceededError(
                        f"Run not finished after {self.n_steps} steps "
                        f"({self.store.n_finished}/{n_vehicles} vehicles arrived)"
                    )
                self.step()
        except SimulationError as e:
            logger.error(f"Simulation aborted ({e.status.name}): {e}")
            return SimulationResult(
                config=self.config,
                status=e.status,
                final_time=self.t,
                n_steps=self.n_steps,
                error=str(e),
                duration_seconds=time_module.time() - start_wall_time,
            )

        wall_time = time_module.time() - start_wall_time
        logger.info(
            f"Simulation complete: t={self.t:.3f} after {self.n_steps} steps "
            f"({wall_time:.2f}s wall time)"
        )

        return SimulationResult(
            config=self.config,
            status=SimulationStatus.OK,
            final_time=self.t,
            n_steps=self.n_steps,
            metrics=self.metrics.get_summary_metrics(self.store, self.t),
            trajectory=self.metrics.to_dataframe(),
            steps=self.metrics.steps_to_dataframe(),
            events=self.metrics.events_to_dataframe(),
            duration_seconds=wall_time,
        )


def run_simulation(
    scenario: Scenario,
    config: Optional[SimulationConfig] = None,
) -> SimulationResult:
    """
    Convenience function to run a simulation.

    Args:
        scenario: Graph and vehicles
        config: Simulation constants (defaults if omitted)

    Returns:
        SimulationResult
    """
    engine = SimulationEngine(scenario, config)
    return engine.run()
