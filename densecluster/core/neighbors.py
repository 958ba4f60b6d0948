"""
Neighbor queries.

Finds every dataset index within a radius of a reference point. The
linear scan is the reference implementation; a spatial index can be
registered in NEIGHBOR_QUERIES as long as it returns the same index set.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Type

from densecluster.core.base_clustering import coordinates_of
from densecluster.core.distance import DistanceMetric, EuclideanDistance
from densecluster.utils.error_handling import InvalidParameterError


class NeighborQuery(ABC):
    """Radius query over a fixed dataset."""

    def __init__(self, dataset: Sequence[Any], metric: Optional[DistanceMetric] = None):
        """
        Bind the query to a dataset.

        Args:
            dataset: Indexable sequence of points (read-only)
            metric: Distance metric (Euclidean if None)
        """
        self.dataset = dataset
        self.metric = metric or EuclideanDistance()

    def __len__(self) -> int:
        return len(self.dataset)

    @abstractmethod
    def query(self, index: int, epsilon: float) -> List[int]:
        """
        Indices j with distance(dataset[index], dataset[j]) <= epsilon.

        The result includes ``index`` itself and its order is deterministic
        for a fixed dataset ordering.
        """
        pass


class LinearScanNeighborQuery(NeighborQuery):
    """Full forward scan, O(N) metric evaluations per query."""

    def __init__(self, dataset: Sequence[Any], metric: Optional[DistanceMetric] = None):
        super().__init__(dataset, metric)
        # Coordinates are read once; the points themselves are left untouched
        self._coordinates = [coordinates_of(point) for point in dataset]

    def query(self, index: int, epsilon: float) -> List[int]:
        reference = self._coordinates[index]
        between = self.metric.between
        return [
            j for j, other in enumerate(self._coordinates)
            # A point is its own neighbor even when its distance to itself is NaN
            if j == index or between(reference, other) <= epsilon
        ]


NEIGHBOR_QUERIES: Dict[str, Type[NeighborQuery]] = {
    "linear": LinearScanNeighborQuery,
}


def get_neighbor_query(name: str) -> Type[NeighborQuery]:
    """
    Look up a registered neighbor query implementation.

    Raises:
        InvalidParameterError: If the name is not registered
    """
    query_class = NEIGHBOR_QUERIES.get(name.lower())
    if query_class is None:
        raise InvalidParameterError(
            f"Unsupported neighbor query '{name}'. Supported: {list(NEIGHBOR_QUERIES.keys())}",
            details={"neighbor_query": name},
        )
    return query_class


def region_query(
    dataset: Sequence[Any],
    index: int,
    epsilon: float,
    metric: Optional[DistanceMetric] = None,
) -> List[int]:
    """
    One-shot radius query.

    Args:
        dataset: Indexable sequence of points
        index: Reference point index
        epsilon: Neighborhood radius (inclusive)
        metric: Distance metric (Euclidean if None)

    Returns:
        Neighbor indices in ascending order, including ``index``
    """
    return LinearScanNeighborQuery(dataset, metric).query(index, epsilon)
