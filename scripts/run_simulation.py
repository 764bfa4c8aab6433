#!/usr/bin/env python3
"""
Run a single simulation from a YAML scenario file.

Usage:
    python -m scripts.run_simulation --config configs/parallel_corridor.yaml

Options:
    --config PATH       Path to YAML scenario file (required)
    --a-max FLOAT       Override maximum acceleration from config
    --v-max FLOAT       Override speed cap from config
    --max-steps INT     Abort with a non-convergence status after this many steps
    --output-dir PATH   Override output directory from config
    --verbose           Enable verbose logging
    --dry-run           Parse config and show settings without running
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

import numpy as np
import yaml

logger = logging.getLogger(__name__)


def load_config(config_path: Path) -> dict[str, Any]:
    """Load configuration from YAML file."""
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        config = yaml.safe_load(f)

    return config or {}


def setup_logging(config: dict[str, Any], verbose: bool = False) -> None:
    """Setup logging based on configuration."""
    log_config = config.get("logging", {}) or {}
    level = logging.DEBUG if verbose else getattr(logging, log_config.get("level", "INFO"))

    log_file = log_config.get("file")
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(log_file) if log_file else logging.NullHandler(),
        ],
    )


def build_sim_config(config: dict[str, Any], args: argparse.Namespace):
    """Create SimulationConfig from the config file plus CLI overrides."""
    from src.simulation import SimulationConfig

    sim_section = dict(config.get("simulation", {}) or {})
    if args.a_max is not None:
        sim_section["a_max"] = args.a_max
    if args.v_max is not None:
        sim_section["v_max"] = args.v_max
    if args.max_steps is not None:
        sim_section["max_steps"] = args.max_steps

    return SimulationConfig.from_mapping(sim_section)


def save_results(result, config: dict[str, Any], output_dir: Path) -> None:
    """Save simulation results."""
    output_dir.mkdir(parents=True, exist_ok=True)
    output_config = config.get("output", {}) or {}

    metrics_path = output_dir / "metrics.json"
    with open(metrics_path, "w") as f:
        # Convert numpy types to Python types
        metrics = {
            k: float(v) if isinstance(v, (np.floating, np.integer)) else v
            for k, v in result.metrics.items()
        }
        metrics["status"] = result.status.name
        json.dump(metrics, f, indent=2)
    logger.info(f"Saved metrics to {metrics_path}")

    if output_config.get("save_trajectory", True) and not result.trajectory.empty:
        csv_path = output_dir / "trajectory.csv"
        result.trajectory.to_csv(csv_path, index=False)
        logger.info(f"Saved trajectory to {csv_path}")

    if not result.events.empty:
        events_path = output_dir / "events.csv"
        result.events.to_csv(events_path, index=False)
        logger.info(f"Saved events to {events_path}")

    config_path = output_dir / "config_used.yaml"
    with open(config_path, "w") as f:
        yaml.dump(config, f, default_flow_style=False)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Run a traffic simulation from a YAML scenario file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument(
        "--config",
        type=Path,
        required=True,
        help="Path to YAML scenario file",
    )
    parser.add_argument(
        "--a-max",
        type=float,
        default=None,
        help="Override maximum acceleration from config",
    )
    parser.add_argument(
        "--v-max",
        type=float,
        default=None,
        help="Override speed cap from config",
    )
    parser.add_argument(
        "--max-steps",
        type=int,
        default=None,
        help="Abort after this many steps",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Override output directory from config",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse config and show settings without running",
    )

    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    from src.simulation import Scenario, SimulationEngine

    args = parse_args(argv)

    try:
        config = load_config(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except yaml.YAMLError as e:
        print(f"Error parsing config: {e}", file=sys.stderr)
        return 1

    setup_logging(config, args.verbose)

    try:
        sim_config = build_sim_config(config, args)
        scenario = Scenario.from_mapping(config)
    except (ValueError, KeyError) as e:
        print(f"Invalid simulation settings: {e}", file=sys.stderr)
        return 1

    output_config = config.get("output", {}) or {}
    output_dir = args.output_dir or Path(output_config.get("directory", "results/simulation"))

    print(f"Simulation: {config.get('name', 'Unnamed')}")
    print(f"  Config: {args.config}")
    print(f"  Vehicles: {scenario.vehicle_count():,}")
    print(f"  Edges: {scenario.graph.edge_count():,}")
    print(f"  a_max: {sim_config.a_max}  v_max: {sim_config.v_max}")
    print(f"  Output: {output_dir}")
    print()

    if args.dry_run:
        print("Dry run - not executing simulation")
        print("\nFull configuration:")
        print(yaml.dump(config, default_flow_style=False))
        return 0

    result = SimulationEngine(scenario, sim_config).run()

    if not result.ok:
        print(f"Simulation failed: {result.status.name} ({result.error})", file=sys.stderr)
        return 1

    save_results(result, config, output_dir)

    print("Results:")
    print(f"  Final time: {result.final_time:.3f}s")
    print(f"  Steps: {result.n_steps:,}")
    print(f"  Avg arrival time: {result.metrics.get('avg_arrival_time', 0):.3f}s")
    print(f"\nResults saved to: {output_dir}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
