"""
Clustering Engine - Orchestrates clustering operations.

Main entry point for configured clustering.
Manages algorithm selection, parameter validation and execution.
"""

import logging
import numbers
from typing import Any, Dict, Optional, Sequence

import numpy as np

from densecluster.core.base_clustering import (
    ClusteringConfig,
    ClusteringResult,
    as_coordinate_matrix,
)
from densecluster.core.dbscan_algorithm import DBSCANAlgorithm
from densecluster.core.distance import METRICS
from densecluster.core.neighbors import NEIGHBOR_QUERIES
from densecluster.utils.advanced_logging import timed
from densecluster.utils.error_handling import InvalidAlgorithmError, InvalidParameterError

logger = logging.getLogger(__name__)


class ClusteringEngine:
    """
    Main clustering engine.

    Provides a unified interface over the registered algorithms and
    fills in default parameters from settings.
    """

    # Registry of available algorithms
    ALGORITHMS = {
        "dbscan": DBSCANAlgorithm,
    }

    def __init__(self, default_params: Optional[Dict[str, Dict[str, Any]]] = None):
        """
        Initialize clustering engine.

        Args:
            default_params: Per-algorithm default parameters
        """
        self.default_params = default_params or {}
        logger.info("Initialized ClusteringEngine")

    @classmethod
    def from_settings(cls, settings) -> "ClusteringEngine":
        """
        Build an engine whose defaults come from loaded settings.

        Args:
            settings: densecluster.config.settings_loader.Settings

        Returns:
            ClusteringEngine
        """
        algorithms = settings.clustering.algorithms
        return cls(default_params={"dbscan": algorithms.dbscan.model_dump()})

    def cluster(
        self,
        dataset: Sequence[Any],
        algorithm: str = "dbscan",
        algorithm_params: Optional[Dict[str, Any]] = None,
        rng: Optional[Any] = None,
    ) -> ClusteringResult:
        """
        Perform clustering using the specified algorithm.

        Args:
            dataset: Indexable sequence of points
            algorithm: Algorithm name (dbscan)
            algorithm_params: Algorithm-specific parameters, merged over defaults
            rng: Optional random source

        Returns:
            ClusteringResult with clusters, labels and metrics

        Raises:
            InvalidAlgorithmError: If algorithm is not supported
        """
        algorithm = algorithm.lower()
        if algorithm not in self.ALGORITHMS:
            raise InvalidAlgorithmError(
                f"Unsupported algorithm '{algorithm}'. "
                f"Supported: {list(self.ALGORITHMS.keys())}",
                details={"algorithm": algorithm},
            )

        params = {**self.default_params.get(algorithm, {}), **(algorithm_params or {})}

        logger.info(f"Starting {algorithm} clustering on {len(dataset)} points")

        config = ClusteringConfig(algorithm_name=algorithm, params=params)
        clusterer = self.ALGORITHMS[algorithm](config)
        result = clusterer.cluster(dataset, rng=rng)

        logger.info(
            f"{algorithm} clustering complete: {result.n_clusters} clusters, "
            f"{result.outlier_count} noise points"
        )

        return result

    @timed(operation="estimate_epsilon")
    def estimate_epsilon(
        self,
        dataset: Sequence[Any],
        min_density: int = 4,
    ) -> float:
        """
        Estimate epsilon from the k-distance curve.

        Sorts every point's distance to its k-th nearest neighbor
        (k = min_density, self included) and picks the elbow.

        Args:
            dataset: Indexable sequence of points
            min_density: Density threshold the epsilon is meant for

        Returns:
            Estimated epsilon
        """
        from sklearn.neighbors import NearestNeighbors

        vectors = as_coordinate_matrix(dataset)
        if len(vectors) < 2:
            raise InvalidParameterError(
                "At least 2 points are needed to estimate epsilon",
                details={"n_points": len(vectors)},
            )

        k = max(1, min(min_density, len(vectors)))
        nn = NearestNeighbors(n_neighbors=k, metric="euclidean").fit(vectors)
        distances, _ = nn.kneighbors(vectors)
        k_distances = np.sort(distances[:, -1])

        if len(k_distances) > 2:
            # Elbow: largest second difference of the sorted curve
            second_deltas = np.diff(k_distances, n=2)
            elbow_idx = int(np.argmax(second_deltas)) + 1
            epsilon = float(k_distances[elbow_idx])
        else:
            epsilon = float(k_distances[-1])

        logger.info(f"Estimated epsilon={epsilon:.4f} for min_density={min_density}")

        return epsilon

    def validate_clustering_config(
        self,
        algorithm: str,
        params: Dict[str, Any],
    ) -> Dict[str, str]:
        """
        Validate clustering configuration.

        The algorithm itself accepts degenerate thresholds; callers use this
        to reject them before a run.

        Args:
            algorithm: Algorithm name
            params: Algorithm parameters

        Returns:
            Dictionary of validation errors (empty if valid)
        """
        errors = {}

        algorithm = algorithm.lower()
        if algorithm not in self.ALGORITHMS:
            errors["algorithm"] = f"Unsupported algorithm '{algorithm}'"
            return errors

        if algorithm == "dbscan":
            min_density = params.get("min_density", 4)
            epsilon = params.get("epsilon", 0.5)
            metric = params.get("metric", "euclidean")
            neighbor_query = params.get("neighbor_query", "linear")

            if not isinstance(min_density, numbers.Integral) or isinstance(min_density, bool) or min_density < 1:
                errors["min_density"] = "Must be an integer >= 1"

            if not isinstance(epsilon, numbers.Real) or isinstance(epsilon, bool) or not epsilon >= 0:
                errors["epsilon"] = "Must be a number >= 0"

            if not isinstance(metric, str) or metric.lower() not in METRICS:
                errors["metric"] = f"Unsupported metric '{metric}'"

            if not isinstance(neighbor_query, str) or neighbor_query.lower() not in NEIGHBOR_QUERIES:
                errors["neighbor_query"] = f"Unsupported neighbor query '{neighbor_query}'"

        return errors
