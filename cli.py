#!/usr/bin/env python3
"""
densecluster CLI

Command-line interface for clustering point files.

Usage:
    python cli.py cluster points.json --epsilon 2.0 --min-density 1 --seed 0
    python cli.py cluster points.csv --format summary
    python cli.py estimate-eps points.csv --min-density 4
    python cli.py show-config

Point files are either JSON (a list of coordinate lists, or a list of
numbers for 1-D data) or CSV (one point per row, no header).
"""

import argparse
import json
import random
import sys
import uuid
from pathlib import Path
from typing import List, Optional

import numpy as np

from densecluster.config.settings_loader import ConfigManager, Settings
from densecluster.core.clustering_engine import ClusteringEngine
from densecluster.utils.advanced_logging import LogContext, configure_logging, log_exceptions
from densecluster.utils.error_handling import DenseClusterError


class ClusteringCLI:
    """CLI for densecluster."""

    def __init__(self, settings: Settings):
        """
        Initialize CLI.

        Args:
            settings: Loaded configuration
        """
        self.settings = settings
        self.engine = ClusteringEngine.from_settings(settings)

    @staticmethod
    def load_points(path: str) -> List[List[float]]:
        """
        Load points from a JSON or CSV file.

        Args:
            path: Point file path

        Returns:
            List of coordinate lists

        Raises:
            DenseClusterError: If the file cannot be read
        """
        file_path = Path(path)
        if not file_path.exists():
            raise DenseClusterError(f"Point file not found: {path}", error_code="FILE_NOT_FOUND")

        try:
            if file_path.suffix.lower() == ".json":
                with open(file_path, "r") as f:
                    raw = json.load(f)
            else:
                raw = np.loadtxt(file_path, delimiter=",", ndmin=2).tolist()

            if not isinstance(raw, list):
                raise DenseClusterError(f"Expected a list of points in {path}", error_code="INVALID_POINT_FILE")

            # Rows may differ in length here; the clustering run reports that
            return [
                [float(value) for value in point] if isinstance(point, list) else [float(point)]
                for point in raw
            ]
        except (ValueError, TypeError, OSError) as e:
            raise DenseClusterError(f"Could not read points from {path}: {e}", error_code="INVALID_POINT_FILE") from e

    def cluster(
        self,
        points: List[List[float]],
        epsilon: Optional[float] = None,
        min_density: Optional[int] = None,
        seed: Optional[int] = None,
    ) -> dict:
        """
        Cluster points and build a JSON-serializable report.

        Args:
            points: Coordinate lists
            epsilon: Override configured epsilon
            min_density: Override configured min_density
            seed: Seed for the random source (configured random_state if None)

        Returns:
            Report with clusters, noise and summary
        """
        params = {}
        if epsilon is not None:
            params["epsilon"] = epsilon
        if min_density is not None:
            params["min_density"] = min_density

        errors = self.engine.validate_clustering_config("dbscan", {**self.engine.default_params["dbscan"], **params})
        if errors:
            raise DenseClusterError("Invalid clustering parameters", error_code="INVALID_PARAMETERS", details=errors)

        if seed is None:
            seed = self.settings.clustering.algorithms.dbscan.random_state

        result = self.engine.cluster(points, algorithm="dbscan", algorithm_params=params, rng=random.Random(seed))

        return {
            "clusters": result.clusters,
            "noise": [points[i] for i in result.noise_indices],
            "summary": result.to_dict(),
        }

    def estimate_epsilon(self, points: List[List[float]], min_density: Optional[int] = None) -> float:
        """Estimate epsilon for the given density threshold."""
        if min_density is None:
            min_density = self.settings.clustering.algorithms.dbscan.min_density
        return self.engine.estimate_epsilon(points, min_density=min_density)


def print_json(data: dict, indent: int = 2):
    """Pretty print JSON."""
    print(json.dumps(data, indent=indent, default=str))


def print_summary(report: dict):
    """Print clustering summary."""
    summary = report["summary"]
    print("📊 Clustering Summary\n")
    print(f"Points: {summary['total_items']}")
    print(f"Clusters: {summary['n_clusters']}")
    print(f"Noise: {summary['outlier_count']}")

    print("\nCluster Sizes:")
    for cluster_id, size in enumerate(summary["cluster_sizes"]):
        print(f"  {cluster_id}: {size}")

    metrics = summary.get("quality_metrics", {})
    if metrics:
        print("\nQuality Metrics:")
        for name, value in metrics.items():
            print(f"  {name}: {value:.4f}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="densecluster CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "command",
        help="Command to execute",
        choices=["cluster", "estimate-eps", "show-config"],
    )

    parser.add_argument("args", nargs="*", help="Command arguments")
    parser.add_argument("--epsilon", "-e", type=float, help="Neighborhood radius")
    parser.add_argument("--min-density", "-m", type=int, help="Minimum neighbor count for a core point")
    parser.add_argument("--seed", type=int, help="Random seed for seed-point selection")
    parser.add_argument("--config", help="Path to settings.yaml")
    parser.add_argument("--format", choices=["json", "summary"], default="json", help="Output format")

    args = parser.parse_args(argv)

    try:
        settings = ConfigManager.reload_config(args.config) if args.config else ConfigManager.get_settings()
    except DenseClusterError as e:
        print(f"❌ {e.message}", file=sys.stderr)
        return 1

    log_settings = settings.logging
    configure_logging(
        log_level=log_settings.level,
        log_format=log_settings.format,
        log_file=log_settings.file.path if log_settings.file.enabled else None,
        service_name=settings.service.name,
        max_size_mb=log_settings.file.max_size_mb,
        backup_count=log_settings.file.backup_count,
    )

    cli = ClusteringCLI(settings)

    if args.command == "show-config":
        print_json(settings.model_dump())
        return 0

    if not args.args:
        print("❌ Point file required", file=sys.stderr)
        return 1

    try:
        with LogContext.correlation_context(f"{args.command}-{uuid.uuid4().hex[:12]}"), \
                log_exceptions(operation=args.command):
            points = cli.load_points(args.args[0])

            if args.command == "cluster":
                report = cli.cluster(points, epsilon=args.epsilon, min_density=args.min_density, seed=args.seed)
                if args.format == "summary":
                    print_summary(report)
                else:
                    print_json(report)

            elif args.command == "estimate-eps":
                epsilon = cli.estimate_epsilon(points, min_density=args.min_density)
                print(f"✅ Estimated epsilon: {epsilon:.6f}")

    except DenseClusterError as e:
        print(f"❌ {e.message}", file=sys.stderr)
        if e.details:
            print_json(e.details)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
