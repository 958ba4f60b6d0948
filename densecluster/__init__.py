"""
densecluster - density-based clustering of points in any dimension.
"""

from densecluster.core import ClusteringEngine, DBSCANAlgorithm, cluster
from densecluster.utils.error_handling import DimensionMismatchError

__version__ = "1.0.0"

__all__ = ["cluster", "ClusteringEngine", "DBSCANAlgorithm", "DimensionMismatchError"]
