"""
Base Clustering Algorithm Interface.

Defines the point capability every dataset element must satisfy and the
contract shared by clustering algorithms: configuration, result container
and quality metrics.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

import numpy as np


@runtime_checkable
class Point(Protocol):
    """Anything exposing an ordered sequence of real-valued coordinates."""

    def coordinates(self) -> Sequence[float]:
        ...


def coordinates_of(point: Any) -> np.ndarray:
    """
    Return the coordinates of a point as a 1-D float array.

    Accepts objects with a ``coordinates()`` method or ``coordinates``
    attribute, plain sequences and numpy rows, and scalars (1-D points).
    The point itself is never modified.

    Args:
        point: Dataset element

    Returns:
        Coordinate vector (D,)
    """
    raw = getattr(point, "coordinates", point)
    if callable(raw):
        raw = raw()
    return np.atleast_1d(np.asarray(raw, dtype=np.float64)).ravel()


def as_coordinate_matrix(dataset: Sequence[Any]) -> np.ndarray:
    """
    Stack the coordinates of every point into an (N x D) matrix.

    Raises:
        DimensionMismatchError: If points differ in dimensionality
    """
    from densecluster.utils.error_handling import DimensionMismatchError

    rows = [coordinates_of(point) for point in dataset]
    if not rows:
        return np.empty((0, 0), dtype=np.float64)

    expected = rows[0].shape[0]
    for row in rows:
        if row.shape[0] != expected:
            raise DimensionMismatchError(expected, row.shape[0])
    return np.vstack(rows)


@dataclass
class ClusteringConfig:
    """Configuration for clustering algorithms."""

    algorithm_name: str
    params: Dict[str, Any] = field(default_factory=dict)


class ClusteringResult:
    """Results from clustering operation."""

    def __init__(
        self,
        clusters: List[List[Any]],
        cluster_labels: np.ndarray,
        n_clusters: int,
        outlier_count: int,
        quality_metrics: Dict[str, float],
        core_sample_indices: Optional[np.ndarray] = None,
        centroids: Optional[np.ndarray] = None,
    ):
        self.clusters = clusters
        self.cluster_labels = cluster_labels
        self.n_clusters = n_clusters
        self.outlier_count = outlier_count
        self.quality_metrics = quality_metrics
        self.core_sample_indices = core_sample_indices
        self.centroids = centroids

    @property
    def labels(self) -> np.ndarray:
        """Alias for cluster_labels."""
        return self.cluster_labels

    @property
    def noise_indices(self) -> np.ndarray:
        """Dataset indices that belong to no cluster."""
        return np.where(self.cluster_labels == -1)[0]

    @property
    def cluster_centroids(self) -> Optional[Dict[int, np.ndarray]]:
        """Return centroids as dict mapping cluster_id -> centroid_vector."""
        if self.centroids is None:
            return None
        return {i: self.centroids[i] for i in range(len(self.centroids))}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "n_clusters": self.n_clusters,
            "outlier_count": self.outlier_count,
            "quality_metrics": self.quality_metrics,
            "total_items": len(self.cluster_labels),
            "cluster_sizes": [len(members) for members in self.clusters],
        }


def labels_from_index_clusters(n_points: int, index_clusters: List[List[int]]) -> np.ndarray:
    """
    Build per-point labels from index clusters.

    Args:
        n_points: Dataset size
        index_clusters: Dataset indices per cluster, in discovery order

    Returns:
        Label array (N,) where -1 marks noise
    """
    labels = np.full(n_points, -1, dtype=np.int32)
    for cluster_id, members in enumerate(index_clusters):
        labels[members] = cluster_id
    return labels


class BaseClusteringAlgorithm(ABC):
    """
    Abstract base class for clustering algorithms.

    Algorithms registered with the ClusteringEngine inherit from this
    class and implement the cluster() method.
    """

    def __init__(self, config: ClusteringConfig):
        """
        Initialize clustering algorithm.

        Args:
            config: Clustering configuration
        """
        self.config = config
        self.name = config.algorithm_name

    @abstractmethod
    def cluster(self, dataset: Sequence[Any], rng: Optional[Any] = None) -> ClusteringResult:
        """
        Perform clustering on a dataset of points.

        Args:
            dataset: Indexable sequence of points
            rng: Optional random source

        Returns:
            ClusteringResult with clusters, labels and metrics
        """
        pass

    def _compute_centroids(self, vectors: np.ndarray, labels: np.ndarray, n_clusters: int) -> Optional[np.ndarray]:
        """Mean coordinate vector of each cluster."""
        if n_clusters == 0:
            return None
        return np.vstack([vectors[labels == cluster_id].mean(axis=0) for cluster_id in range(n_clusters)])

    def _calculate_quality_metrics(
        self,
        vectors: np.ndarray,
        labels: np.ndarray,
        centroids: Optional[np.ndarray] = None,
    ) -> Dict[str, float]:
        """
        Calculate clustering quality metrics.

        Args:
            vectors: Point coordinates (N x D)
            labels: Cluster labels (-1 for noise)
            centroids: Optional cluster centroids

        Returns:
            Dictionary of quality metrics
        """
        from sklearn.metrics import silhouette_score, davies_bouldin_score

        metrics = {}

        # Filter out noise (-1 labels) for metrics calculation
        non_outlier_mask = labels != -1
        n_clustered = int(np.sum(non_outlier_mask))
        n_labels = len(np.unique(labels[non_outlier_mask]))

        # Both scores need 2 <= n_labels <= n_samples - 1
        if 1 < n_labels < n_clustered:
            metrics["silhouette_score"] = float(
                silhouette_score(vectors[non_outlier_mask], labels[non_outlier_mask])
            )
            metrics["davies_bouldin_index"] = float(
                davies_bouldin_score(vectors[non_outlier_mask], labels[non_outlier_mask])
            )

        # Average distance of members to their cluster centroid
        if centroids is not None:
            intra_distances = []
            for cluster_id in range(len(centroids)):
                cluster_vectors = vectors[labels == cluster_id]
                if len(cluster_vectors) > 0:
                    distances = np.linalg.norm(cluster_vectors - centroids[cluster_id], axis=1)
                    intra_distances.append(np.mean(distances))

            if intra_distances:
                metrics["avg_intra_cluster_distance"] = float(np.mean(intra_distances))

        if len(labels) > 0:
            metrics["noise_ratio"] = float(np.sum(~non_outlier_mask) / len(labels))

        return metrics
