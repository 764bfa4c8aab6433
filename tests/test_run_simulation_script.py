"""Tests for the scripts/run_simulation.py command-line runner."""

import json

import pytest
import yaml

from scripts.run_simulation import build_sim_config, load_config, main, parse_args


@pytest.fixture
def scenario_file(tmp_path):
    """A small YAML scenario with a parallel hop."""
    config = {
        "name": "test",
        "simulation": {"a_max": 2.0, "v_max": 10.0},
        "network": {
            "links": [
                {"from": "A", "to": "B", "length": 100.0},
                {"from": "B", "to": "C", "length": 100.0},
                {"from": "B", "to": "C", "length": 100.0},
            ]
        },
        "vehicles": [{"path": ["A", "B", "C"], "count": 2}],
        "output": {"directory": str(tmp_path / "out")},
        "logging": {"level": "WARNING"},
    }
    path = tmp_path / "scenario.yaml"
    path.write_text(yaml.dump(config))
    return path


class TestParseArgs:
    """Tests for argument parsing."""

    def test_required_config(self):
        """--config is mandatory."""
        with pytest.raises(SystemExit):
            parse_args([])

    def test_overrides(self):
        """Numeric overrides are parsed to the right types."""
        args = parse_args(
            ["--config", "x.yaml", "--a-max", "1.5", "--v-max", "30", "--max-steps", "9"]
        )
        assert args.a_max == 1.5
        assert args.v_max == 30.0
        assert args.max_steps == 9
        assert args.dry_run is False


class TestBuildSimConfig:
    """Tests for merging file settings with CLI overrides."""

    def test_cli_overrides_file(self, scenario_file):
        """A CLI value replaces the file value; the rest is kept."""
        config = load_config(scenario_file)
        args = parse_args(["--config", str(scenario_file), "--v-max", "15"])
        sim_config = build_sim_config(config, args)
        assert sim_config.v_max == 15.0
        assert sim_config.a_max == 2.0


class TestMain:
    """End-to-end runs of the CLI entry point."""

    def test_missing_config(self, tmp_path):
        """A missing scenario file returns exit code 1."""
        assert main(["--config", str(tmp_path / "missing.yaml")]) == 1

    def test_dry_run(self, scenario_file, tmp_path):
        """Dry run reports settings and writes nothing."""
        assert main(["--config", str(scenario_file), "--dry-run"]) == 0
        assert not (tmp_path / "out").exists()

    def test_run_writes_outputs(self, scenario_file, tmp_path):
        """A successful run writes metrics, trajectory, events and config."""
        assert main(["--config", str(scenario_file)]) == 0

        out = tmp_path / "out"
        metrics = json.loads((out / "metrics.json").read_text())
        assert metrics["status"] == "OK"
        assert metrics["n_finished"] == 2
        assert (out / "trajectory.csv").exists()
        assert (out / "events.csv").exists()
        assert (out / "config_used.yaml").exists()

    def test_output_dir_override(self, scenario_file, tmp_path):
        """--output-dir replaces the directory from the file."""
        target = tmp_path / "elsewhere"
        assert main(["--config", str(scenario_file), "--output-dir", str(target)]) == 0
        assert (target / "metrics.json").exists()

    def test_failed_run_returns_error(self, scenario_file):
        """A non-OK status returns exit code 1."""
        assert main(["--config", str(scenario_file), "--max-steps", "1"]) == 1

    def test_invalid_settings(self, scenario_file):
        """Invalid simulation constants return exit code 1."""
        assert main(["--config", str(scenario_file), "--a-max", "-1"]) == 1

    def test_invalid_link_length(self, tmp_path):
        """A non-positive link length returns exit code 1."""
        path = tmp_path / "bad_length.yaml"
        path.write_text(
            yaml.dump(
                {
                    "network": {"links": [{"from": "A", "to": "B", "length": 0}]},
                    "vehicles": [{"path": ["A", "B"]}],
                }
            )
        )
        assert main(["--config", str(path)]) == 1

    def test_link_missing_endpoint(self, tmp_path):
        """A link without a from node returns exit code 1."""
        path = tmp_path / "bad_link.yaml"
        path.write_text(
            yaml.dump(
                {
                    "network": {"links": [{"to": "B", "length": 10}]},
                    "vehicles": [{"path": ["A", "B"]}],
                }
            )
        )
        assert main(["--config", str(path)]) == 1
