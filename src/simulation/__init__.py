"""
Next-event traffic simulation engine.

Vehicles follow fixed node paths on a directed road graph, accelerate
uniformly up to a global speed cap and choose the least occupied of the
parallel edges between consecutive path nodes.
"""

from .advancer import StateAdvancer
from .congestion import CongestionTracker
from .engine import SimulationConfig, SimulationEngine, SimulationResult, run_simulation
from .errors import (
    DestinationMismatchError,
    NoConnectingEdgeError,
    PathTooShortError,
    SimulationError,
    SimulationStatus,
    SourceMismatchError,
    StepLimitExceededError,
)
from .events import Event, EventType
from .kinematics import EventTimeCalculator, fuzzy_eq, time_to_next_event
from .metrics import MetricsCollector, StepRecord, TrajectoryRecord
from .network import (
    GraphBase,
    RoadLink,
    RoadNetwork,
    RoadNode,
    create_line_network,
    create_parallel_network,
)
from .routing import select_edge
from .scenario import Scenario, VehicleSpec, load_scenario
from .state import VehicleDiscreteState, VehicleStateStore
from .termination import TerminationDetector

__all__ = [
    # Engine
    "SimulationConfig",
    "SimulationEngine",
    "SimulationResult",
    "run_simulation",
    # Components
    "CongestionTracker",
    "EventTimeCalculator",
    "StateAdvancer",
    "TerminationDetector",
    "VehicleDiscreteState",
    "VehicleStateStore",
    "fuzzy_eq",
    "select_edge",
    "time_to_next_event",
    # Errors
    "SimulationStatus",
    "SimulationError",
    "PathTooShortError",
    "SourceMismatchError",
    "DestinationMismatchError",
    "NoConnectingEdgeError",
    "StepLimitExceededError",
    # Events
    "Event",
    "EventType",
    # Metrics
    "MetricsCollector",
    "StepRecord",
    "TrajectoryRecord",
    # Network and scenario
    "GraphBase",
    "RoadNetwork",
    "RoadNode",
    "RoadLink",
    "create_line_network",
    "create_parallel_network",
    "Scenario",
    "VehicleSpec",
    "load_scenario",
]
