"""
Unit tests for DBSCAN clustering.

Tests the cluster() operation and DBSCANAlgorithm including:
- Known groupings in 1-D and 2-D
- Partition, density-core and noise properties
- Determinism under a fixed seed
- Degenerate parameters
- Dimension mismatch handling
"""

import random

import numpy as np
import pytest

from conftest import Coordinate, Number, as_sets
from densecluster.core.base_clustering import ClusteringConfig
from densecluster.core.dbscan_algorithm import DBSCANAlgorithm, cluster, expand_clusters
from densecluster.core.neighbors import region_query
from densecluster.utils.error_handling import DimensionMismatchError, InvalidParameterError


def neighbor_counts(dataset, epsilon):
    return [len(region_query(dataset, i, epsilon)) for i in range(len(dataset))]


@pytest.mark.unit
class TestClusterScenarios:
    """Groupings with known answers."""

    def test_numbers(self, number_dataset, seeded_rng):
        """Test 1-D points with epsilon 2.0."""
        clusters = cluster(number_dataset, min_density=1, epsilon=2.0, rng=seeded_rng)

        assert len(clusters) == 4
        assert as_sets(clusters, key=lambda p: p.value) == {
            frozenset({1, 2, 3}),
            frozenset({11, 12, 13}),
            frozenset({21, 22, 23}),
            frozenset({100}),
        }

    def test_coordinates(self, coordinate_dataset, seeded_rng):
        """Test 2-D points with epsilon 4.0."""
        clusters = cluster(coordinate_dataset, min_density=1, epsilon=4.0, rng=seeded_rng)

        assert len(clusters) == 4
        assert as_sets(clusters) == {
            frozenset({Coordinate(1, 2), Coordinate(2, 3), Coordinate(3, 4)}),
            frozenset({Coordinate(11, 12), Coordinate(12, 13), Coordinate(13, 14)}),
            frozenset({Coordinate(21, 22), Coordinate(22, 23), Coordinate(23, 24)}),
            frozenset({Coordinate(100, 200)}),
        }

    def test_plain_scalars(self, seeded_rng):
        """Test that plain numbers work as 1-D points."""
        clusters = cluster([1, 2, 3, 11, 12, 13, 21, 22, 23, 100], 1, 2.0, rng=seeded_rng)
        assert as_sets(clusters) == {
            frozenset({1, 2, 3}),
            frozenset({11, 12, 13}),
            frozenset({21, 22, 23}),
            frozenset({100}),
        }

    def test_returns_caller_objects(self, number_dataset, seeded_rng):
        """Test that clusters hold the same objects as the dataset."""
        clusters = cluster(number_dataset, 1, 2.0, rng=seeded_rng)
        ids = {id(point) for point in number_dataset}
        for members in clusters:
            for point in members:
                assert id(point) in ids

    def test_empty_dataset(self, seeded_rng):
        """Test that an empty dataset yields no clusters."""
        assert cluster([], 1, 1.0, rng=seeded_rng) == []

    def test_min_density_above_dataset_size(self, number_dataset, seeded_rng):
        """Test that every point is noise when min_density > N."""
        assert cluster(number_dataset, len(number_dataset) + 1, 1000.0, rng=seeded_rng) == []

    def test_all_noise(self, seeded_rng):
        """Test isolated points with a density threshold of 2."""
        expansion = expand_clusters([Number(0), Number(10), Number(20)], 2, 1.0, rng=seeded_rng)
        assert expansion.clusters == []
        assert expansion.noise_indices == [0, 1, 2]

    def test_non_positive_min_density_makes_everything_core(self, number_dataset, seeded_rng):
        """Test the degenerate threshold: behaves like min_density=1."""
        for min_density in (0, -3):
            clusters = cluster(number_dataset, min_density, 2.0, rng=random.Random(1))
            assert len(clusters) == 4

    def test_zero_epsilon_groups_duplicates(self, seeded_rng):
        """Test that coincident points still form a dense region at radius 0."""
        expansion = expand_clusters([Number(1), Number(1), Number(2)], 2, 0.0, rng=seeded_rng)
        assert [sorted(members) for members in expansion.clusters] == [[0, 1]]
        assert expansion.noise_indices == [2]

    def test_large_epsilon_single_cluster(self, number_dataset, seeded_rng):
        """Test that a radius covering everything gives one cluster."""
        clusters = cluster(number_dataset, 3, 1000.0, rng=seeded_rng)
        assert len(clusters) == 1
        assert len(clusters[0]) == len(number_dataset)

    def test_chain_is_density_reachable(self, seeded_rng):
        """Test transitive expansion along a chain of core points."""
        dataset = [Number(v) for v in range(0, 20)]
        clusters = cluster(dataset, 3, 1.0, rng=seeded_rng)
        assert len(clusters) == 1
        assert len(clusters[0]) == 20


@pytest.mark.unit
class TestBorderPoints:
    """Border points and noise attribution."""

    def test_border_point_drawn_first_is_claimed(self):
        """Test that a border point is clustered whatever the draw order."""
        # 0 and 3.5 are border points of the core points 1 and 2
        dataset = [Number(0), Number(1), Number(2), Number(3.5)]
        for seed in range(25):
            expansion = expand_clusters(dataset, 3, 1.5, rng=random.Random(seed))
            assert [sorted(members) for members in expansion.clusters] == [[0, 1, 2, 3]]
            assert expansion.noise_indices == []
            assert sorted(expansion.core_indices) == [1, 2]

    def test_shared_border_point_joins_one_cluster(self):
        """Test that a point reachable from two regions appears exactly once."""
        # 1.5 is within 1.0 of the core points 0.6 and 2.4 but is not core itself
        dataset = [Number(v) for v in (0.0, 0.2, 0.4, 0.6, 1.5, 2.4, 2.6, 2.8, 3.0)]
        for seed in range(10):
            expansion = expand_clusters(dataset, 4, 1.0, rng=random.Random(seed))
            flat = [i for members in expansion.clusters for i in members]

            assert len(expansion.clusters) == 2
            assert sorted(len(members) for members in expansion.clusters) == [4, 5]
            assert sorted(flat) == list(range(len(dataset)))
            assert expansion.noise_indices == []
            assert 4 not in expansion.core_indices


@pytest.mark.unit
class TestClusterProperties:
    """Properties checked against brute-force neighbor counts."""

    @pytest.mark.parametrize("seed", [0, 1, 2, 3])
    def test_partition(self, scattered_vectors, seed):
        """Test that every index is clustered or noise, exactly once."""
        expansion = expand_clusters(scattered_vectors, 3, 1.5, rng=random.Random(seed))

        flat = [i for members in expansion.clusters for i in members]
        assert all(len(members) > 0 for members in expansion.clusters)
        assert len(flat) == len(set(flat))
        assert sorted(flat + expansion.noise_indices) == list(range(len(scattered_vectors)))

    @pytest.mark.parametrize("seed", [0, 1, 2, 3])
    def test_density_core(self, scattered_vectors, seed):
        """Test that core points meet the density threshold and all such points are core."""
        counts = neighbor_counts(scattered_vectors, 1.5)
        expansion = expand_clusters(scattered_vectors, 3, 1.5, rng=random.Random(seed))

        assert all(counts[i] >= 3 for i in expansion.core_indices)
        assert set(expansion.core_indices) == {i for i, c in enumerate(counts) if c >= 3}

    @pytest.mark.parametrize("seed", [0, 1, 2, 3])
    def test_noise_not_near_core(self, scattered_vectors, seed):
        """Test that no noise point lies within epsilon of a core point."""
        expansion = expand_clusters(scattered_vectors, 3, 1.5, rng=random.Random(seed))
        core = set(expansion.core_indices)

        for i in expansion.noise_indices:
            assert not core.intersection(region_query(scattered_vectors, i, 1.5))

    def test_noise_set_independent_of_seed(self, scattered_vectors):
        """Test that which points are noise does not depend on the draw order."""
        noise_sets = {
            tuple(expand_clusters(scattered_vectors, 3, 1.5, rng=random.Random(seed)).noise_indices)
            for seed in range(5)
        }
        assert len(noise_sets) == 1

    def test_min_density_one_gives_connected_components(self, scattered_vectors):
        """Test that every point is core and nothing is noise at min_density=1."""
        expansion = expand_clusters(scattered_vectors, 1, 1.5, rng=random.Random(0))
        assert expansion.noise_indices == []
        assert sorted(expansion.core_indices) == list(range(len(scattered_vectors)))

    def test_deterministic_under_seed(self, scattered_vectors):
        """Test that the same seed reproduces the same clusters in the same order."""
        first = expand_clusters(scattered_vectors, 3, 1.5, rng=random.Random(42))
        second = expand_clusters(scattered_vectors, 3, 1.5, rng=random.Random(42))
        assert first.clusters == second.clusters
        assert first.noise_indices == second.noise_indices

    def test_numpy_random_sources(self, scattered_vectors):
        """Test Generator and RandomState as random sources."""
        for make_rng in (np.random.default_rng, np.random.RandomState):
            first = expand_clusters(scattered_vectors, 3, 1.5, rng=make_rng(3))
            second = expand_clusters(scattered_vectors, 3, 1.5, rng=make_rng(3))
            assert first.clusters == second.clusters

    def test_unseeded_run_same_partition(self, blob_vectors):
        """Test that unambiguous clusters do not depend on the random source."""
        vectors, _ = blob_vectors
        seeded = cluster(vectors, 4, 1.0, rng=random.Random(0))
        unseeded = cluster(vectors, 4, 1.0)
        key = lambda row: tuple(row)
        assert as_sets(seeded, key=key) == as_sets(unseeded, key=key)


@pytest.mark.unit
class TestClusterErrors:
    """Error handling."""

    def test_dimension_mismatch_aborts(self, seeded_rng):
        """Test that mixed dimensionality raises and returns nothing."""
        dataset = [Number(1), Number(2), Coordinate(1, 2)]
        with pytest.raises(DimensionMismatchError):
            cluster(dataset, 1, 2.0, rng=seeded_rng)

    def test_dimension_mismatch_far_from_seed(self):
        """Test that a mismatched point is caught even when it is not near anything."""
        dataset = [(0.0, 0.0)] * 20 + [(500.0, 500.0, 500.0)]
        for seed in range(5):
            with pytest.raises(DimensionMismatchError):
                cluster(dataset, 2, 1.0, rng=random.Random(seed))

    def test_negative_epsilon_rejected(self, number_dataset, seeded_rng):
        with pytest.raises(InvalidParameterError):
            cluster(number_dataset, 1, -0.5, rng=seeded_rng)

    def test_nan_epsilon_rejected(self, number_dataset, seeded_rng):
        with pytest.raises(InvalidParameterError):
            cluster(number_dataset, 1, float("nan"), rng=seeded_rng)


@pytest.mark.unit
class TestDBSCANAlgorithm:
    """Test suite for the DBSCANAlgorithm wrapper."""

    def test_init(self, dbscan_config):
        """Test DBSCAN algorithm initialization."""
        clusterer = DBSCANAlgorithm(dbscan_config)
        assert clusterer.config == dbscan_config
        assert clusterer.min_density == 4
        assert clusterer.epsilon == 1.0
        assert clusterer.metric_name == "euclidean"

    def test_init_rejects_bad_parameters(self):
        """Test that invalid epsilon and unknown metric fail at construction."""
        with pytest.raises(InvalidParameterError):
            DBSCANAlgorithm(ClusteringConfig("dbscan", {"epsilon": -1.0}))
        with pytest.raises(InvalidParameterError):
            DBSCANAlgorithm(ClusteringConfig("dbscan", {"metric": "manhattan"}))

    def test_cluster_blobs(self, dbscan_config, blob_vectors):
        """Test clustering on vectors with clear structure."""
        vectors, true_labels = blob_vectors
        result = DBSCANAlgorithm(dbscan_config).cluster(vectors)

        assert result.n_clusters == 2
        assert len(result.labels) == len(vectors)
        # Scattered points are noise
        assert set(np.where(true_labels == -1)[0]).issubset(set(result.noise_indices))
        # No cluster mixes the two blobs
        for cluster_id in range(result.n_clusters):
            members = true_labels[result.labels == cluster_id]
            assert len(set(members)) == 1

    def test_labels_match_clusters(self, number_dataset):
        """Test that labels and clusters describe the same assignment."""
        config = ClusteringConfig("dbscan", {"min_density": 1, "epsilon": 2.0, "random_state": 0})
        result = DBSCANAlgorithm(config).cluster(number_dataset)

        for cluster_id, members in enumerate(result.clusters):
            indices = [number_dataset.index(point) for point in members]
            assert all(result.labels[i] == cluster_id for i in indices)
        assert result.outlier_count == 0
        assert result.to_dict()["cluster_sizes"] == [len(m) for m in result.clusters]

    def test_centroids_and_metrics(self, number_dataset):
        """Test centroid and quality metric calculation."""
        config = ClusteringConfig("dbscan", {"min_density": 1, "epsilon": 2.0, "random_state": 0})
        result = DBSCANAlgorithm(config).cluster(number_dataset)

        centroids = sorted(float(c[0]) for c in result.centroids)
        assert centroids == pytest.approx([2.0, 12.0, 22.0, 100.0])
        assert "silhouette_score" in result.quality_metrics
        assert -1.0 <= result.quality_metrics["silhouette_score"] <= 1.0
        assert result.quality_metrics["noise_ratio"] == 0.0

    def test_random_state_reproducible(self, scattered_vectors):
        """Test that random_state fixes the output."""
        config = ClusteringConfig("dbscan", {"min_density": 3, "epsilon": 1.5, "random_state": 11})
        first = DBSCANAlgorithm(config).cluster(scattered_vectors)
        second = DBSCANAlgorithm(config).cluster(scattered_vectors)
        np.testing.assert_array_equal(first.labels, second.labels)

    def test_empty_dataset(self, dbscan_config):
        """Test handling of an empty dataset."""
        result = DBSCANAlgorithm(dbscan_config).cluster([])
        assert result.n_clusters == 0
        assert result.clusters == []
        assert len(result.labels) == 0
        assert result.centroids is None

    def test_all_noise_result(self, dbscan_config):
        """Test a dataset where nothing is dense."""
        result = DBSCANAlgorithm(dbscan_config).cluster([Number(0), Number(10), Number(20)])
        assert result.n_clusters == 0
        assert result.outlier_count == 3
        assert list(result.labels) == [-1, -1, -1]

    def test_dimension_mismatch(self, dbscan_config):
        with pytest.raises(DimensionMismatchError):
            DBSCANAlgorithm(dbscan_config).cluster([Number(1), Coordinate(1, 1)])
