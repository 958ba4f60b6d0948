"""
DBSCAN Clustering Algorithm Implementation.

Density-Based Spatial Clustering of Applications with Noise groups points
whose epsilon-neighborhoods are dense enough and leaves sparse points out:
- Core points have at least ``min_density`` neighbors (self included)
- Border points are reachable from a core point but not core themselves
- Noise points are neither, and appear in no cluster

Seeds are drawn uniformly at random from the unvisited points instead of
in index order. The draw only changes cluster discovery order and which
cluster claims a border point shared by two dense regions; results are
reproducible for a seeded random source.

Expansion does not skip every visited point. A point drawn earlier as a
seed and marked noise is still taken in as a border point when a later
cluster reaches it, so the noise set never depends on draw order and no
noise point lies within epsilon of a core point. Visited points that
already belong to a cluster are skipped.
"""

import logging
import math
import random
from collections import deque
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Type

import numpy as np

from densecluster.core.base_clustering import (
    BaseClusteringAlgorithm,
    ClusteringConfig,
    ClusteringResult,
    as_coordinate_matrix,
    labels_from_index_clusters,
)
from densecluster.core.distance import DistanceMetric, get_metric
from densecluster.core.neighbors import LinearScanNeighborQuery, NeighborQuery, get_neighbor_query
from densecluster.utils.advanced_logging import PerformanceLogger, get_logger
from densecluster.utils.error_handling import InvalidParameterError

logger = logging.getLogger(__name__)


@dataclass
class ExpansionResult:
    """Index-level outcome of one DBSCAN run."""

    clusters: List[List[int]] = field(default_factory=list)
    core_indices: List[int] = field(default_factory=list)
    noise_indices: List[int] = field(default_factory=list)


def _draw_index(rng: Any, upper: int) -> int:
    """Uniform integer in [0, upper) from a stdlib or numpy random source."""
    if isinstance(rng, np.random.Generator):
        return int(rng.integers(upper))
    if isinstance(rng, np.random.RandomState):
        return int(rng.randint(upper))
    return rng.randrange(upper)


def _validate_epsilon(epsilon: float) -> None:
    if math.isnan(epsilon) or epsilon < 0:
        raise InvalidParameterError(
            f"epsilon must be a non-negative number, got {epsilon}",
            details={"epsilon": epsilon},
        )


def expand_clusters(
    dataset: Sequence[Any],
    min_density: int,
    epsilon: float,
    rng: Optional[Any] = None,
    metric: Optional[DistanceMetric] = None,
    neighbor_query: Optional[Type[NeighborQuery]] = None,
) -> ExpansionResult:
    """
    Run DBSCAN and return clusters as dataset indices.

    Args:
        dataset: Indexable sequence of points (read-only)
        min_density: Minimum neighbor count, self included, for a core point
        epsilon: Neighborhood radius (inclusive)
        rng: Random source for seed selection (fresh random.Random if None)
        metric: Distance metric (Euclidean if None)
        neighbor_query: NeighborQuery implementation (linear scan if None)

    Returns:
        ExpansionResult with index clusters in discovery order

    Raises:
        DimensionMismatchError: If points differ in dimensionality
        InvalidParameterError: If epsilon is negative or NaN
    """
    _validate_epsilon(epsilon)

    result = ExpansionResult()
    n_points = len(dataset)
    if n_points == 0:
        return result

    rng = rng if rng is not None else random.Random()
    query_class = neighbor_query or LinearScanNeighborQuery
    neighbors_of = query_class(dataset, metric).query

    visited = [False] * n_points
    # Noise is provisional: a later expansion may still claim it as a border point
    noise = set()

    while True:
        unvisited = [i for i, seen in enumerate(visited) if not seen]
        if not unvisited:
            break

        seed = unvisited[_draw_index(rng, len(unvisited))]
        visited[seed] = True

        seed_neighbors = neighbors_of(seed, epsilon)
        if len(seed_neighbors) < min_density:
            noise.add(seed)
            continue

        members = [seed]
        result.core_indices.append(seed)
        queue = deque(seed_neighbors)

        while queue:
            j = queue.popleft()
            if visited[j]:
                if j in noise:
                    noise.discard(j)
                    members.append(j)
                continue

            visited[j] = True
            members.append(j)

            j_neighbors = neighbors_of(j, epsilon)
            if len(j_neighbors) >= min_density:
                result.core_indices.append(j)
                queue.extend(j_neighbors)

        logger.debug(f"Cluster {len(result.clusters)} complete: seed={seed}, size={len(members)}")
        result.clusters.append(members)

    result.noise_indices = sorted(noise)
    return result


def cluster(
    dataset: Sequence[Any],
    min_density: int,
    epsilon: float,
    rng: Optional[Any] = None,
    metric: Optional[DistanceMetric] = None,
    neighbor_query: Optional[Type[NeighborQuery]] = None,
) -> List[List[Any]]:
    """
    Group a dataset into density-connected clusters.

    Args:
        dataset: Indexable sequence of points (read-only)
        min_density: Minimum neighbor count, self included, for a core point
        epsilon: Neighborhood radius (inclusive)
        rng: Random source for seed selection; seed it for reproducible output
        metric: Distance metric (Euclidean if None)
        neighbor_query: NeighborQuery implementation (linear scan if None)

    Returns:
        Clusters in discovery order, each holding the caller's point objects.
        Points missing from every cluster are noise.

    Raises:
        DimensionMismatchError: If points differ in dimensionality
    """
    expansion = expand_clusters(dataset, min_density, epsilon, rng, metric, neighbor_query)
    return [[dataset[i] for i in members] for members in expansion.clusters]


class DBSCANAlgorithm(BaseClusteringAlgorithm):
    """
    DBSCAN clustering implementation.

    Best for: Arbitrary-shaped clusters with unknown cluster count
    Strengths: Explicit noise handling, no k required
    Weaknesses: Single global density threshold, quadratic neighbor search
    """

    def __init__(self, config: ClusteringConfig):
        """
        Initialize DBSCAN algorithm.

        Args:
            config: Clustering configuration
        """
        super().__init__(config)

        # Extract DBSCAN-specific parameters
        self.min_density = config.params.get("min_density", 4)
        self.epsilon = float(config.params.get("epsilon", 0.5))
        self.metric_name = config.params.get("metric", "euclidean")
        self.neighbor_query_name = config.params.get("neighbor_query", "linear")
        self.random_state = config.params.get("random_state")
        self.compute_metrics = config.params.get("compute_metrics", True)

        _validate_epsilon(self.epsilon)
        self.metric = get_metric(self.metric_name)
        self.neighbor_query = get_neighbor_query(self.neighbor_query_name)
        self._log = get_logger(__name__)

        logger.info(
            f"Initialized DBSCAN: min_density={self.min_density}, "
            f"epsilon={self.epsilon}, metric={self.metric_name}"
        )

    def cluster(self, dataset: Sequence[Any], rng: Optional[Any] = None) -> ClusteringResult:
        """
        Perform DBSCAN clustering.

        Args:
            dataset: Indexable sequence of points
            rng: Random source; defaults to random.Random(random_state)

        Returns:
            ClusteringResult with clusters, labels and metrics
        """
        if rng is None:
            rng = random.Random(self.random_state)

        n_points = len(dataset)
        with PerformanceLogger(
            "dbscan_cluster",
            logger=self._log,
            item_count=n_points,
            min_density=self.min_density,
            epsilon=self.epsilon,
        ):
            expansion = expand_clusters(
                dataset,
                self.min_density,
                self.epsilon,
                rng=rng,
                metric=self.metric,
                neighbor_query=self.neighbor_query,
            )

        clusters = [[dataset[i] for i in members] for members in expansion.clusters]
        labels = labels_from_index_clusters(n_points, expansion.clusters)
        n_clusters = len(clusters)
        outlier_count = len(expansion.noise_indices)

        logger.info(f"DBSCAN found {n_clusters} clusters with {outlier_count} noise points")

        centroids = None
        quality_metrics = {}
        if n_points > 0:
            vectors = as_coordinate_matrix(dataset)
            centroids = self._compute_centroids(vectors, labels, n_clusters)
            if self.compute_metrics:
                quality_metrics = self._calculate_quality_metrics(vectors, labels, centroids)

        return ClusteringResult(
            clusters=clusters,
            cluster_labels=labels,
            n_clusters=n_clusters,
            outlier_count=outlier_count,
            quality_metrics=quality_metrics,
            core_sample_indices=np.array(sorted(expansion.core_indices), dtype=np.int32),
            centroids=centroids,
        )
