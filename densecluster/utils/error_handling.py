"""
Error Handling Module

Provides the exception hierarchy shared by the clustering core,
the configuration layer and the CLI.
"""

import time
from typing import Any, Optional


# =============================================================================
# Custom Exception Hierarchy
# =============================================================================


class DenseClusterError(Exception):
    """Base exception for all densecluster errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.timestamp = time.time()

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/CLI output."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp,
        }


# Configuration Errors
class ConfigurationError(DenseClusterError):
    """Error in configuration loading or validation."""
    pass


# Clustering Errors
class ClusteringError(DenseClusterError):
    """Base class for clustering algorithm errors."""
    pass


class InvalidAlgorithmError(ClusteringError):
    """Unknown or unsupported clustering algorithm."""
    pass


class InvalidParameterError(ClusteringError):
    """Parameter the algorithm cannot interpret (negative epsilon, unknown metric)."""
    pass


class DimensionMismatchError(ClusteringError):
    """
    Two points report coordinate sequences of different length.

    Unrecoverable for the run that raised it: no partial clusters
    are returned.
    """

    def __init__(self, expected: int, actual: int, message: Optional[str] = None):
        super().__init__(
            message or f"Points have different dimensions: {expected} != {actual}",
            error_code="DIMENSION_MISMATCH",
            details={"expected": expected, "actual": actual},
        )
        self.expected = expected
        self.actual = actual
