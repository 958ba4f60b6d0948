"""
Pytest configuration and shared fixtures for densecluster tests.

This module provides:
- Point types exposing coordinates the way callers do
- Scenario datasets with known groupings
- Randomly generated datasets with clear density structure
- Configuration fixtures
"""

import os
import random
from dataclasses import dataclass
from typing import Tuple

import numpy as np
import pytest

# Set test environment variables
os.environ["TESTING"] = "true"
os.environ["LOG_LEVEL"] = "DEBUG"


# =============================================================================
# Point Types
# =============================================================================

@dataclass(frozen=True)
class Number:
    """1-D point."""

    value: float

    def coordinates(self):
        return [float(self.value)]


@dataclass(frozen=True)
class Coordinate:
    """2-D point."""

    x: int
    y: int

    def coordinates(self):
        return [float(self.x), float(self.y)]


def as_sets(clusters, key=lambda point: point):
    """Clusters as a set of frozensets, ignoring cluster and member order."""
    return {frozenset(key(point) for point in members) for members in clusters}


# =============================================================================
# Test Data Generators
# =============================================================================

@pytest.fixture
def number_dataset():
    """1-D scenario: three tight groups of three and one isolated point."""
    return [Number(v) for v in (1, 2, 3, 11, 12, 13, 21, 22, 23, 100)]


@pytest.fixture
def coordinate_dataset():
    """2-D scenario mirroring the 1-D groups."""
    return [
        Coordinate(1, 2), Coordinate(2, 3), Coordinate(3, 4),
        Coordinate(11, 12), Coordinate(12, 13), Coordinate(13, 14),
        Coordinate(21, 22), Coordinate(22, 23), Coordinate(23, 24),
        Coordinate(100, 200),
    ]


@pytest.fixture
def seeded_rng():
    """Seeded stdlib random source."""
    return random.Random(0)


@pytest.fixture
def blob_vectors() -> Tuple[np.ndarray, np.ndarray]:
    """
    Generate 2-D vectors with clear density structure.

    Creates 2 dense blobs of 40 points each plus 10 points scattered
    far away from both:
    - Blob 0: centered at (0, 0)
    - Blob 1: centered at (10, 10)
    - Noise: spread over x in [30, 80], at least 5 apart
    """
    rs = np.random.RandomState(42)
    blob0 = rs.randn(40, 2) * 0.3
    blob1 = rs.randn(40, 2) * 0.3 + 10.0
    noise = np.column_stack([np.arange(10) * 5.0 + 30.0, rs.uniform(-50, 50, 10)])

    vectors = np.vstack([blob0, blob1, noise])
    labels = np.array([0] * 40 + [1] * 40 + [-1] * 10)
    return vectors, labels


@pytest.fixture
def scattered_vectors() -> np.ndarray:
    """Uniformly scattered 3-D vectors for property checks."""
    rs = np.random.RandomState(7)
    return rs.uniform(0.0, 10.0, size=(120, 3))


# =============================================================================
# Configuration Fixtures
# =============================================================================

@pytest.fixture
def dbscan_config():
    """Sample DBSCAN configuration."""
    from densecluster.core.base_clustering import ClusteringConfig

    return ClusteringConfig(
        algorithm_name="dbscan",
        params={
            "min_density": 4,
            "epsilon": 1.0,
            "random_state": 0,
        },
    )


@pytest.fixture(autouse=True)
def reset_settings():
    """Drop cached settings around each test."""
    from densecluster.config.settings_loader import ConfigManager

    ConfigManager.reset()
    yield
    ConfigManager.reset()


# =============================================================================
# Markers
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests for individual components"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests for component interactions"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take >1 second"
    )
