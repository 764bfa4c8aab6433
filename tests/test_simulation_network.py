"""
Tests for src/simulation/network.py and src/simulation/scenario.py.

Tests cover:
- RoadNetwork link bookkeeping and GraphBase queries
- Network factory functions
- Building networks and scenarios from mappings and YAML files
"""

import pytest
import yaml

from src.simulation.network import (
    GraphBase,
    RoadNetwork,
    create_line_network,
    create_parallel_network,
)
from src.simulation.scenario import Scenario, VehicleSpec, load_scenario


class TestRoadNetwork:
    """Tests for RoadNetwork."""

    def test_is_graph_base(self):
        """RoadNetwork implements the graph interface."""
        assert isinstance(RoadNetwork(), GraphBase)

    def test_uids_follow_insertion_order(self):
        """Links get consecutive uids starting at zero."""
        network = RoadNetwork()
        first = network.add_link("A", "B", 100.0)
        second = network.add_link("B", "C", 50.0)
        assert first.uid == 0
        assert second.uid == 1
        assert network.edge_count() == 2

    def test_nodes_created_implicitly(self):
        """Adding a link creates its endpoint nodes."""
        network = RoadNetwork()
        network.add_link("A", "B", 10.0)
        assert set(network.nodes) == {"A", "B"}

    def test_length_lookup(self):
        """Length is looked up by uid."""
        network = RoadNetwork()
        network.add_link("A", "B", 42.5)
        assert network.length(0) == 42.5

    def test_parallel_edges_keep_order(self):
        """Parallel links between one pair are returned in insertion order."""
        network = RoadNetwork()
        network.add_link("A", "B", 100.0)
        network.add_link("A", "C", 100.0)
        network.add_link("A", "B", 120.0)
        network.add_link("A", "B", 90.0)
        assert network.edges("A", "B") == [0, 2, 3]

    def test_edges_are_directed(self):
        """edges(u, v) does not return v -> u links."""
        network = RoadNetwork()
        network.add_link("A", "B", 100.0)
        assert network.edges("B", "A") == []

    def test_edges_ended_on(self):
        """Links are indexed by their head node."""
        network = RoadNetwork()
        network.add_link("A", "C", 100.0)
        network.add_link("B", "C", 100.0)
        network.add_link("C", "D", 100.0)
        assert network.edges_ended_on("C") == [0, 1]
        assert network.edges_ended_on("A") == []

    def test_edges_returns_copy(self):
        """Mutating a query result does not change the network."""
        network = RoadNetwork()
        network.add_link("A", "B", 100.0)
        network.edges("A", "B").append(99)
        assert network.edges("A", "B") == [0]

    @pytest.mark.parametrize("length", [0.0, -5.0])
    def test_rejects_non_positive_length(self, length):
        """Zero or negative lengths are rejected."""
        network = RoadNetwork()
        with pytest.raises(ValueError, match="positive"):
            network.add_link("A", "B", length)

    def test_total_length(self):
        """Total length sums every link."""
        network = create_line_network(["A", "B", "C"], length=75.0)
        assert network.total_length() == 150.0


class TestNetworkFactories:
    """Tests for create_line_network and create_parallel_network."""

    def test_line_network(self):
        """Line factory chains consecutive nodes."""
        network = create_line_network(["A", "B", "C", "D"])
        assert network.edge_count() == 3
        assert network.edges("B", "C") == [1]
        assert all(link.length == 100.0 for link in network.links)

    def test_parallel_network(self):
        """Parallel factory builds named links between the same pair."""
        network = create_parallel_network("X", "Y", n_parallel=3, length=10.0)
        assert network.edges("X", "Y") == [0, 1, 2]
        assert [link.name for link in network.links] == ["X-Y-0", "X-Y-1", "X-Y-2"]


class TestNetworkFromMapping:
    """Tests for RoadNetwork.from_mapping."""

    def test_links_and_names(self):
        """Links from a mapping keep order and names."""
        network = RoadNetwork.from_mapping(
            {
                "nodes": ["A", "B"],
                "links": [
                    {"from": "A", "to": "B", "length": 100},
                    {"from": "A", "to": "B", "length": 120, "name": "bypass"},
                ],
            }
        )
        assert network.edges("A", "B") == [0, 1]
        assert network.links[1].name == "bypass"
        assert network.length(1) == 120.0

    def test_node_entries_with_location(self):
        """Node entries may be plain ids or dicts with a location."""
        network = RoadNetwork.from_mapping(
            {"nodes": [{"id": "A", "location": [36.1, -86.7]}], "links": []}
        )
        assert network.nodes["A"].location == (36.1, -86.7)

    def test_empty_mapping(self):
        """An empty mapping gives an empty network."""
        network = RoadNetwork.from_mapping({})
        assert network.edge_count() == 0


class TestScenario:
    """Tests for Scenario and VehicleSpec."""

    def test_vehicle_spec_from_path(self):
        """Source and destination default to the path endpoints."""
        spec = VehicleSpec.from_path(["A", "B", "C"])
        assert spec.src == "A"
        assert spec.dst == "C"
        assert spec.path == ("A", "B", "C")

    def test_add_vehicle_returns_id(self):
        """Vehicle ids are assigned in insertion order."""
        scenario = Scenario(graph=create_line_network(["A", "B"]))
        assert scenario.add_vehicle("A", "B", ["A", "B"]) == 0
        assert scenario.add_vehicle("A", "B", ["A", "B"]) == 1
        assert scenario.vehicle_count() == 2
        assert scenario.vehicle(1).dst == "B"

    def test_from_mapping_defaults_endpoints_to_path(self):
        """Omitted src/dst come from the path."""
        scenario = Scenario.from_mapping(
            {
                "network": {"links": [{"from": "A", "to": "B", "length": 50}]},
                "vehicles": [{"path": ["A", "B"]}],
            }
        )
        vehicle = scenario.vehicle(0)
        assert (vehicle.src, vehicle.dst) == ("A", "B")

    def test_from_mapping_count_repeats(self):
        """count repeats a vehicle entry."""
        scenario = Scenario.from_mapping(
            {
                "network": {"links": [{"from": "A", "to": "B", "length": 50}]},
                "vehicles": [{"path": ["A", "B"], "count": 3}],
            }
        )
        assert scenario.vehicle_count() == 3

    def test_from_mapping_keeps_declared_endpoints(self):
        """Declared endpoints are kept even when they disagree with the path."""
        scenario = Scenario.from_mapping(
            {
                "network": {"links": [{"from": "A", "to": "B", "length": 50}]},
                "vehicles": [{"src": "Z", "dst": "B", "path": ["A", "B"]}],
            }
        )
        assert scenario.vehicle(0).src == "Z"


class TestLoadScenario:
    """Tests for load_scenario."""

    def test_load_yaml(self, tmp_path):
        """Scenario loads from a YAML file."""
        path = tmp_path / "scenario.yaml"
        path.write_text(
            yaml.dump(
                {
                    "network": {
                        "links": [
                            {"from": "A", "to": "B", "length": 100.0},
                            {"from": "B", "to": "C", "length": 100.0},
                        ]
                    },
                    "vehicles": [{"path": ["A", "B", "C"], "count": 2}],
                }
            )
        )
        scenario = load_scenario(path)
        assert scenario.vehicle_count() == 2
        assert scenario.graph.edge_count() == 2

    def test_missing_file(self, tmp_path):
        """A missing scenario file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_scenario(tmp_path / "missing.yaml")
