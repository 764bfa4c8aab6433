"""
Status codes and exceptions for simulation runs.

Every input problem aborts the whole run. Components raise a
``SimulationError`` subclass; the engine converts it into the matching
``SimulationStatus`` code that callers receive.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Optional


class SimulationStatus(IntEnum):
    """Result codes returned by ``SimulationEngine.run``."""

    OK = 0
    PATH_TOO_SHORT = -1
    SOURCE_MISMATCH = -2
    DESTINATION_MISMATCH = -3
    NO_CONNECTING_EDGE = -4
    STEP_LIMIT_EXCEEDED = -5  # Caller-imposed bound, not an input error


class SimulationError(Exception):
    """Base class for errors that abort a simulation run."""

    status: SimulationStatus = SimulationStatus.OK

    def __init__(self, message: str, vehicle_id: Optional[int] = None):
        super().__init__(message)
        self.vehicle_id = vehicle_id


class PathTooShortError(SimulationError):
    """A vehicle path has fewer than two nodes."""

    status = SimulationStatus.PATH_TOO_SHORT


class SourceMismatchError(SimulationError):
    """First path node differs from the vehicle's declared source."""

    status = SimulationStatus.SOURCE_MISMATCH


class DestinationMismatchError(SimulationError):
    """Last path node differs from the vehicle's declared destination."""

    status = SimulationStatus.DESTINATION_MISMATCH


class NoConnectingEdgeError(SimulationError):
    """No edge joins two consecutive path nodes."""

    status = SimulationStatus.NO_CONNECTING_EDGE

    def __init__(
        self,
        start: str,
        end: str,
        vehicle_id: Optional[int] = None,
    ):
        super().__init__(f"No edge connects {start!r} -> {end!r}", vehicle_id)
        self.start = start
        self.end = end


class StepLimitExceededError(SimulationError):
    """The run did not finish within ``SimulationConfig.max_steps``."""

    status = SimulationStatus.STEP_LIMIT_EXCEEDED
