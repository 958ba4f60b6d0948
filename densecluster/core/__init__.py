"""
Core clustering module.

Exports:
- cluster: DBSCAN over any sequence of points
- ClusteringEngine: Main orchestration class
- BaseClusteringAlgorithm: Base class for algorithms
- ClusteringResult: Result container
- ClusteringConfig: Configuration container
- Distance metrics and neighbor queries
"""

from densecluster.core.base_clustering import (
    BaseClusteringAlgorithm,
    ClusteringConfig,
    ClusteringResult,
    Point,
    coordinates_of,
)
from densecluster.core.clustering_engine import ClusteringEngine
from densecluster.core.dbscan_algorithm import (
    DBSCANAlgorithm,
    ExpansionResult,
    cluster,
    expand_clusters,
)
from densecluster.core.distance import DistanceMetric, EuclideanDistance, euclidean_distance, get_metric
from densecluster.core.neighbors import (
    LinearScanNeighborQuery,
    NeighborQuery,
    get_neighbor_query,
    region_query,
)

__all__ = [
    "cluster",
    "expand_clusters",
    "ExpansionResult",
    "ClusteringEngine",
    "BaseClusteringAlgorithm",
    "ClusteringResult",
    "ClusteringConfig",
    "Point",
    "coordinates_of",
    "DBSCANAlgorithm",
    "DistanceMetric",
    "EuclideanDistance",
    "euclidean_distance",
    "get_metric",
    "NeighborQuery",
    "LinearScanNeighborQuery",
    "get_neighbor_query",
    "region_query",
]
