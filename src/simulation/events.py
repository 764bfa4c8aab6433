"""
Event types for the simulation engine.

Each step of the next-event loop ends on at least one boundary event.
Events are recorded for reporting; they never drive control flow.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Optional


class EventType(Enum):
    """Types of events in the simulation."""

    DEPARTURE = auto()  # Vehicle placed on its first edge
    SPEED_CAP = auto()  # Vehicle reached V_MAX, starts cruising
    EDGE_END = auto()  # Vehicle reached the end of its current edge
    EDGE_TRANSITION = auto()  # Vehicle moved onto the next edge of its path
    ARRIVAL = auto()  # Vehicle confirmed at its destination


@dataclass(order=True)
class Event:
    """
    A simulation event.

    Events are ordered by time; the sequence number keeps same-time
    events in the order they were recorded.
    """

    time: float  # Simulation time in seconds
    seq: int = 0
    event_type: EventType = field(default=EventType.EDGE_END, compare=False)
    vehicle_id: Optional[int] = field(default=None, compare=False)
    data: dict[str, Any] = field(default_factory=dict, compare=False)


def create_departure_event(time: float, vehicle_id: int, edge_uid: int) -> Event:
    """Create a departure (initial placement) event."""
    return Event(
        time=time,
        event_type=EventType.DEPARTURE,
        vehicle_id=vehicle_id,
        data={"edge_uid": edge_uid},
    )


def create_speed_cap_event(time: float, vehicle_id: int, velocity: float) -> Event:
    """Create a speed-cap event."""
    return Event(
        time=time,
        event_type=EventType.SPEED_CAP,
        vehicle_id=vehicle_id,
        data={"velocity": velocity},
    )


def create_transition_event(
    time: float,
    vehicle_id: int,
    from_edge: int,
    to_edge: int,
    node_num: int,
) -> Event:
    """Create an edge transition event."""
    return Event(
        time=time,
        event_type=EventType.EDGE_TRANSITION,
        vehicle_id=vehicle_id,
        data={
            "from_edge": from_edge,
            "to_edge": to_edge,
            "node_num": node_num,
        },
    )


def create_arrival_event(time: float, vehicle_id: int, edge_uid: int) -> Event:
    """Create an arrival event."""
    return Event(
        time=time,
        event_type=EventType.ARRIVAL,
        vehicle_id=vehicle_id,
        data={"edge_uid": edge_uid},
    )
