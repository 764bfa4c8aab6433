"""
Directed road network used by the simulation engine.

The engine only talks to the ``GraphBase`` interface; ``RoadNetwork`` is
the in-memory implementation used by the runner scripts and tests.
Parallel links between the same node pair are allowed and keep their
insertion order, which the edge selector relies on for tie-breaking.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional


class GraphBase(ABC):
    """Read-only graph interface consumed by the engine."""

    @abstractmethod
    def edge_count(self) -> int:
        """Number of edges; edge uids are ``0 .. edge_count() - 1``."""
        pass

    @abstractmethod
    def length(self, edge_uid: int) -> float:
        """Length of an edge."""
        pass

    @abstractmethod
    def edges(self, start: str, end: str) -> list[int]:
        """Edges from ``start`` to ``end``, in a stable order."""
        pass

    @abstractmethod
    def edges_ended_on(self, node: str) -> list[int]:
        """Edges whose head is ``node``."""
        pass


@dataclass
class RoadNode:
    """A node in the road network (intersection, zone centroid)."""

    node_id: str
    location: Optional[tuple[float, float]] = None


@dataclass
class RoadLink:
    """A directed link between two nodes."""

    uid: int
    from_node: str
    to_node: str
    length: float
    name: Optional[str] = None


@dataclass
class RoadNetwork(GraphBase):
    """
    In-memory directed multigraph.

    Links receive consecutive integer uids in the order they are added.
    """

    nodes: dict[str, RoadNode] = field(default_factory=dict)
    links: list[RoadLink] = field(default_factory=list)

    # (from_node, to_node) -> link uids in insertion order
    _by_pair: dict[tuple[str, str], list[int]] = field(
        default_factory=dict, init=False, repr=False
    )
    _by_head: dict[str, list[int]] = field(default_factory=dict, init=False, repr=False)

    def add_node(self, node_id: str, location: Optional[tuple[float, float]] = None) -> RoadNode:
        """Add a node (no-op if it already exists)."""
        if node_id not in self.nodes:
            self.nodes[node_id] = RoadNode(node_id=node_id, location=location)
        return self.nodes[node_id]

    def add_link(
        self,
        from_node: str,
        to_node: str,
        length: float,
        name: Optional[str] = None,
    ) -> RoadLink:
        """Add a directed link and return it."""
        if length <= 0:
            raise ValueError(f"Link length must be positive, got {length}")

        self.add_node(from_node)
        self.add_node(to_node)

        link = RoadLink(
            uid=len(self.links),
            from_node=from_node,
            to_node=to_node,
            length=float(length),
            name=name,
        )
        self.links.append(link)
        self._by_pair.setdefault((from_node, to_node), []).append(link.uid)
        self._by_head.setdefault(to_node, []).append(link.uid)
        return link

    # GraphBase

    def edge_count(self) -> int:
        return len(self.links)

    def length(self, edge_uid: int) -> float:
        return self.links[edge_uid].length

    def edges(self, start: str, end: str) -> list[int]:
        return list(self._by_pair.get((start, end), []))

    def edges_ended_on(self, node: str) -> list[int]:
        return list(self._by_head.get(node, []))

    def total_length(self) -> float:
        """Sum of all link lengths."""
        return sum(link.length for link in self.links)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "RoadNetwork":
        """
        Build a network from a config dictionary.

        Expected shape::

            nodes: [A, B, C]            # optional, implied by links
            links:
              - {from: A, to: B, length: 100.0}
              - {from: A, to: B, length: 120.0, name: bypass}
        """
        network = cls()
        for node in mapping.get("nodes", []) or []:
            if isinstance(node, Mapping):
                location = node.get("location")
                network.add_node(
                    str(node["id"]), tuple(location) if location else None
                )
            else:
                network.add_node(str(node))

        for entry in mapping.get("links", []) or []:
            network.add_link(
                from_node=str(entry["from"]),
                to_node=str(entry["to"]),
                length=float(entry["length"]),
                name=entry.get("name"),
            )
        return network


def create_line_network(
    node_ids: list[str],
    length: float = 100.0,
) -> RoadNetwork:
    """
    Create a chain A -> B -> C ... with one link per hop.

    Args:
        node_ids: Ordered node identifiers
        length: Length of every link

    Returns:
        RoadNetwork with ``len(node_ids) - 1`` links
    """
    network = RoadNetwork()
    for node_id in node_ids:
        network.add_node(node_id)
    for start, end in zip(node_ids, node_ids[1:]):
        network.add_link(start, end, length)
    return network


def create_parallel_network(
    start: str = "A",
    end: str = "B",
    n_parallel: int = 2,
    length: float = 100.0,
) -> RoadNetwork:
    """
    Create ``n_parallel`` equal links between one node pair.

    Useful for exercising the congestion-aware edge choice.
    """
    network = RoadNetwork()
    for i in range(n_parallel):
        network.add_link(start, end, length, name=f"{start}-{end}-{i}")
    return network
