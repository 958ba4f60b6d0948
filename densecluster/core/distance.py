"""
Distance metrics.

A metric turns two points into a non-negative, symmetric dissimilarity
that is zero for identical points. Euclidean distance is the only metric
shipped; others plug in through DistanceMetric and the METRICS registry.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Type

import numpy as np

from densecluster.core.base_clustering import coordinates_of
from densecluster.utils.error_handling import DimensionMismatchError, InvalidParameterError


class DistanceMetric(ABC):
    """Base class for point dissimilarity functions."""

    name = "base"

    def __call__(self, a: Any, b: Any) -> float:
        """Distance between two points."""
        return self.between(coordinates_of(a), coordinates_of(b))

    @abstractmethod
    def between(self, coords_a: np.ndarray, coords_b: np.ndarray) -> float:
        """
        Distance between two coordinate vectors.

        Raises:
            DimensionMismatchError: If the vectors differ in length
        """
        pass

    @staticmethod
    def _check_dimensions(coords_a: np.ndarray, coords_b: np.ndarray) -> None:
        if coords_a.shape[0] != coords_b.shape[0]:
            raise DimensionMismatchError(coords_a.shape[0], coords_b.shape[0])


class EuclideanDistance(DistanceMetric):
    """Square root of the sum of squared per-coordinate differences."""

    name = "euclidean"

    def between(self, coords_a: np.ndarray, coords_b: np.ndarray) -> float:
        self._check_dimensions(coords_a, coords_b)
        diff = coords_a - coords_b
        return float(np.sqrt(np.dot(diff, diff)))


METRICS: Dict[str, Type[DistanceMetric]] = {
    "euclidean": EuclideanDistance,
}


def get_metric(name: str) -> DistanceMetric:
    """
    Instantiate a registered metric by name.

    Args:
        name: Metric name (case-insensitive)

    Returns:
        DistanceMetric instance

    Raises:
        InvalidParameterError: If the metric is not registered
    """
    metric_class = METRICS.get(name.lower())
    if metric_class is None:
        raise InvalidParameterError(
            f"Unsupported metric '{name}'. Supported: {list(METRICS.keys())}",
            details={"metric": name},
        )
    return metric_class()


def euclidean_distance(a: Any, b: Any) -> float:
    """Euclidean distance between two points."""
    return EuclideanDistance()(a, b)
