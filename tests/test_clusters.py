"""
Tests for the clustering module.
"""

import pytest
import numpy as np
import sys
import os

# Add the parent directory to the path to import the module
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from surveymath.exceptions import InvalidArgumentError, NullArgumentError
from surveymath.math.clusters import (
    ClusterModel, KMeans, KMeansPlusPlus, assign_points, init_kmeans_plus_plus,
    init_random, lloyd, make_rng, update_centroids
)
from surveymath.math.distance import CosineDistance, EuclideanDistance


@pytest.fixture
def two_groups():
    """Points near (0, 0) and points near (10, 10)."""
    return np.array([
        [0.0, 0.0],
        [0.1, 0.0],
        [0.0, 0.1],
        [0.1, 0.1],
        [10.0, 10.0],
        [10.1, 10.0],
        [10.0, 10.1],
        [10.1, 10.1]
    ])


class TestClusterModel:
    """Tests for the ClusterModel class."""

    def test_properties(self):
        """Test the model accessors."""
        model = ClusterModel(np.array([[0.0], [5.0]]), [0, 1, 1], 2.5, 4)

        assert model.k == 2
        assert model.labels.tolist() == [0, 1, 1]
        assert model.inertia == 2.5
        assert model.iterations == 4
        assert model.cluster_sizes() == [1, 2]
        assert model.members(1) == [1, 2]

    def test_immutable(self):
        """Arrays cannot be modified in place."""
        model = ClusterModel(np.array([[0.0], [5.0]]), [0, 1], 0.0, 1)

        with pytest.raises(ValueError):
            model.labels[0] = 1
        with pytest.raises(ValueError):
            model.centroids[0, 0] = 3.0

    def test_to_dict(self):
        """Test converting a model to dictionary format."""
        model = ClusterModel(np.array([[1.0, 1.0], [5.0, 5.0]]), [0, 0, 1, 1], 1.0, 2)

        result = model.to_dict()
        assert result['inertia'] == 1.0
        assert result['clusters'][0] == {'id': 0, 'center': [1.0, 1.0], 'members': [0, 1]}

        named = model.to_dict(['a', 'b', 'c', 'd'])
        assert named['clusters'][1]['members'] == ['c', 'd']


class TestInitializers:
    """Tests for the centroid initializers."""

    def test_init_random(self):
        """Random init picks k distinct rows of the data."""
        data = np.arange(20, dtype=float).reshape(10, 2)

        centroids = init_random(data, 4, make_rng(7))

        assert centroids.shape == (4, 2)
        rows = {tuple(row) for row in centroids}
        assert len(rows) == 4
        assert all(any(np.array_equal(c, point) for point in data) for c in centroids)

    def test_init_kmeans_plus_plus_spreads_seeds(self, two_groups):
        """k-means++ puts one seed in each well separated group."""
        for seed in range(20):
            centroids = init_kmeans_plus_plus(two_groups, 2, make_rng(seed), EuclideanDistance())
            near_origin = [c[0] < 5 for c in centroids]
            assert sorted(near_origin) == [False, True]

    def test_init_kmeans_plus_plus_identical_points(self):
        """All-identical data falls back to uniform sampling without failing."""
        data = np.ones((5, 3))
        centroids = init_kmeans_plus_plus(data, 3, make_rng(0))

        assert centroids.shape == (3, 3)
        assert np.all(centroids == 1.0)


class TestLloydSteps:
    """Tests for the assign and update steps."""

    def test_assign_points(self):
        """Each point goes to its nearest centroid and inertia sums squares."""
        data = np.array([[1.0, 1.0], [2.0, 2.0], [5.0, 5.0], [6.0, 6.0]])
        centroids = np.array([[1.5, 1.5], [5.5, 5.5]])

        labels, inertia = assign_points(data, centroids, EuclideanDistance())

        assert labels.tolist() == [0, 0, 1, 1]
        assert np.isclose(inertia, 4 * 0.5)

    def test_assign_ties_go_to_lowest_index(self):
        """A point equidistant from two centroids takes the first one."""
        labels, _ = assign_points(np.array([[0.0]]), np.array([[-1.0], [1.0]]), EuclideanDistance())
        assert labels.tolist() == [0]

    def test_update_centroids(self):
        """Centroids move to the mean of their members."""
        data = np.array([[1.0, 1.0], [2.0, 2.0], [5.0, 5.0], [6.0, 6.0]])

        centroids = update_centroids(data, np.array([0, 0, 1, 1]), 2, EuclideanDistance())

        assert np.allclose(centroids, [[1.5, 1.5], [5.5, 5.5]])

    def test_update_reseeds_empty_cluster(self):
        """An empty cluster is reseeded to the point farthest from its nearest centroid."""
        data = np.array([[0.0], [1.0], [10.0]])

        centroids = update_centroids(data, np.array([0, 0, 0]), 2, EuclideanDistance())

        assert np.isclose(centroids[0, 0], 11.0 / 3.0)
        assert centroids[1, 0] == 10.0

    def test_update_reseeds_several_empty_clusters_in_order(self):
        """Empty clusters are reseeded in index order, each seeing the previous reseeds."""
        data = np.array([[0.0], [1.0], [10.0]])

        centroids = update_centroids(data, np.array([0, 0, 0]), 3, EuclideanDistance())

        # Cluster 1 takes 10.0; cluster 2 then takes 0.0, now the farthest point
        assert centroids[1, 0] == 10.0
        assert centroids[2, 0] == 0.0


class TestLloyd:
    """Tests for the shared Lloyd loop."""

    def test_lloyd_converges(self):
        """Starting from poor centroids, Lloyd's algorithm finds the two groups."""
        data = np.array([[1.0, 1.0], [1.5, 1.5], [5.0, 5.0], [5.5, 5.5]])

        model = lloyd(data, np.array([[0.0, 0.0], [7.0, 7.0]]), EuclideanDistance(), 100, 1e-4)

        assert model.labels.tolist() == [0, 0, 1, 1]
        assert np.allclose(model.centroids, [[1.25, 1.25], [5.25, 5.25]])
        assert np.isclose(model.inertia, 0.5)
        assert model.iterations == 3

    def test_lloyd_max_iter(self):
        """With max_iter=1 the model pairs the single assignment with its centroids."""
        data = np.array([[1.0, 1.0], [1.5, 1.5], [5.0, 5.0], [5.5, 5.5]])
        init = np.array([[0.0, 0.0], [7.0, 7.0]])

        model = lloyd(data, init, EuclideanDistance(), max_iter=1)

        assert model.iterations == 1
        assert np.array_equal(model.centroids, init)
        assert model.labels.tolist() == [0, 0, 1, 1]

    def test_lloyd_does_not_modify_inputs(self):
        """Input data and initial centroids are left untouched."""
        data = np.array([[1.0, 1.0], [1.5, 1.5], [5.0, 5.0], [5.5, 5.5]])
        init = np.array([[0.0, 0.0], [7.0, 7.0]])
        data_copy, init_copy = data.copy(), init.copy()

        lloyd(data, init)

        assert np.array_equal(data, data_copy)
        assert np.array_equal(init, init_copy)


class TestKMeans:
    """Tests for the KMeans and KMeansPlusPlus algorithms."""

    def test_kmeans_basic(self, two_groups):
        """K-means separates two clear groups."""
        model = KMeans().fit(two_groups, 2, EuclideanDistance(), seed=3)

        labels = model.labels.tolist()
        assert len(set(labels[:4])) == 1
        assert len(set(labels[4:])) == 1
        assert labels[0] != labels[4]

    @pytest.mark.parametrize("algorithm", [KMeans(), KMeansPlusPlus()])
    def test_deterministic(self, algorithm):
        """Identical arguments give identical labels and inertia."""
        data = np.random.RandomState(0).rand(40, 3)

        first = algorithm.fit(data, 4, EuclideanDistance(), seed=11, max_iter=50, tol=1e-6)
        second = algorithm.fit(data, 4, EuclideanDistance(), seed=11, max_iter=50, tol=1e-6)

        assert np.array_equal(first.labels, second.labels)
        assert np.array_equal(first.centroids, second.centroids)
        assert first.inertia == second.inertia
        assert first.iterations == second.iterations

    def test_kmeans_plus_plus_separates_groups_for_any_seed(self, two_groups):
        """The two groups always get different labels."""
        for seed in range(25):
            model = KMeansPlusPlus().fit(two_groups, 2, EuclideanDistance(), seed=seed)
            labels = model.labels.tolist()

            assert len(set(labels[:4])) == 1
            assert len(set(labels[4:])) == 1
            assert labels[0] != labels[4]

    def test_labels_are_valid(self):
        """Every label indexes a centroid and inertia is non-negative."""
        data = np.random.RandomState(1).rand(30, 4)

        model = KMeansPlusPlus().fit(data, 5, CosineDistance(), seed=2)

        assert model.centroids.shape == (5, 4)
        assert model.labels.shape == (30,)
        assert model.labels.min() >= 0
        assert model.labels.max() < 5
        assert model.inertia >= 0.0

    def test_k_equals_n(self):
        """With one cluster per point, inertia is zero."""
        data = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]])

        model = KMeans().fit(data, 3, seed=5)

        assert sorted(model.labels.tolist()) == [0, 1, 2]
        assert np.isclose(model.inertia, 0.0)

    def test_k_one(self):
        """A single cluster has the data mean as its centroid."""
        data = np.array([[0.0, 0.0], [2.0, 0.0], [4.0, 6.0]])

        model = KMeansPlusPlus().fit(data, 1, seed=0)

        assert model.labels.tolist() == [0, 0, 0]
        assert np.allclose(model.centroids[0], [2.0, 2.0])

    def test_fit_does_not_modify_data(self, two_groups):
        """The data matrix passed in is not modified."""
        data_copy = two_groups.copy()
        KMeansPlusPlus().fit(two_groups, 2, seed=1)
        assert np.array_equal(two_groups, data_copy)

    def test_invalid_arguments(self, two_groups):
        """Bad k, settings or data raise the documented errors."""
        algorithm = KMeans()

        with pytest.raises(InvalidArgumentError):
            algorithm.fit(two_groups, 0)
        with pytest.raises(InvalidArgumentError):
            algorithm.fit(two_groups, -2)
        with pytest.raises(InvalidArgumentError):
            algorithm.fit(two_groups, 9)
        with pytest.raises(InvalidArgumentError):
            algorithm.fit(two_groups, 2, max_iter=0)
        with pytest.raises(InvalidArgumentError):
            algorithm.fit(two_groups, 2, tol=-1.0)
        with pytest.raises(InvalidArgumentError):
            algorithm.fit(np.zeros((0, 2)), 1)
        with pytest.raises(NullArgumentError):
            algorithm.fit(None, 2)

    def test_invalid_k_is_also_a_value_error(self, two_groups):
        """InvalidArgumentError can be caught as ValueError."""
        with pytest.raises(ValueError):
            KMeansPlusPlus().fit(two_groups, 0)
