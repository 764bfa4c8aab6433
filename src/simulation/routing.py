"""
Congestion-aware choice among parallel edges.
"""

from __future__ import annotations

from typing import Optional

from .congestion import CongestionTracker
from .errors import NoConnectingEdgeError
from .network import GraphBase


def select_edge(
    graph: GraphBase,
    tracker: CongestionTracker,
    start: str,
    end: str,
    vehicle_id: Optional[int] = None,
) -> int:
    """
    Pick the least occupied edge from ``start`` to ``end``.

    Candidates are scanned in graph order and the best one is replaced
    only on a strictly lower occupancy, so ties go to the earliest
    candidate.

    Raises:
        NoConnectingEdgeError: if the graph has no edge for the pair
    """
    candidates = graph.edges(start, end)
    if not candidates:
        raise NoConnectingEdgeError(start, end, vehicle_id)

    best = candidates[0]
    best_occupancy = tracker.occupancy(best)
    for edge_uid in candidates[1:]:
        occupancy = tracker.occupancy(edge_uid)
        if occupancy < best_occupancy:
            best = edge_uid
            best_occupancy = occupancy

    return best
