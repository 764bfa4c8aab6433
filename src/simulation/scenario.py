"""
Initial scenario: the graph plus every vehicle's origin, destination and path.

The engine treats a scenario as read-only input. Loaders accept plain
dictionaries or YAML files with the layout used by ``configs/*.yaml``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from .network import GraphBase, RoadNetwork


@dataclass(frozen=True)
class VehicleSpec:
    """Declared trip of one vehicle."""

    src: str
    dst: str
    path: tuple[str, ...]

    @classmethod
    def from_path(cls, path: list[str]) -> "VehicleSpec":
        """Build a spec whose endpoints are taken from the path itself."""
        return cls(src=path[0], dst=path[-1], path=tuple(path))


@dataclass
class Scenario:
    """A graph and the vehicles that travel on it."""

    graph: GraphBase
    vehicles: list[VehicleSpec] = field(default_factory=list)

    def vehicle_count(self) -> int:
        return len(self.vehicles)

    def vehicle(self, veh_id: int) -> VehicleSpec:
        return self.vehicles[veh_id]

    def add_vehicle(self, src: str, dst: str, path: list[str]) -> int:
        """Append a vehicle and return its id."""
        self.vehicles.append(VehicleSpec(src=src, dst=dst, path=tuple(path)))
        return len(self.vehicles) - 1

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "Scenario":
        """
        Build a scenario from a config dictionary.

        Each entry of ``vehicles`` needs a ``path``; ``src``/``dst`` default
        to the path endpoints. ``count`` repeats an entry.
        """
        network = RoadNetwork.from_mapping(mapping.get("network", {}) or {})
        scenario = cls(graph=network)

        for entry in mapping.get("vehicles", []) or []:
            path = [str(node) for node in entry.get("path", [])]
            src = str(entry.get("src", path[0] if path else ""))
            dst = str(entry.get("dst", path[-1] if path else ""))
            for _ in range(int(entry.get("count", 1))):
                scenario.add_vehicle(src, dst, path)

        return scenario


def load_scenario(path: Path) -> Scenario:
    """Load a scenario from a YAML file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Scenario file not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    return Scenario.from_mapping(data)
