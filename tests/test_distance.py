"""
Tests for the distance module.
"""

import pytest
import numpy as np
import sys
import os

# Add the parent directory to the path to import the module
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from surveymath.exceptions import InvalidArgumentError
from surveymath.math.distance import (
    EuclideanDistance, CosineDistance, DistanceMetric, get_distance
)


class TestEuclideanDistance:
    """Tests for the Euclidean metric."""

    def test_between(self):
        """Test distance between two vectors."""
        a = np.array([1.0, 2.0, 3.0])
        b = np.array([4.0, 5.0, 6.0])

        # sqrt(3^2 + 3^2 + 3^2) = sqrt(27)
        assert np.isclose(EuclideanDistance().between(a, b), np.sqrt(27))

    def test_symmetric_and_zero(self):
        """Distance is symmetric and zero for identical vectors."""
        dist = EuclideanDistance()
        a = np.array([0.2, 0.7])
        b = np.array([1.0, -3.0])

        assert dist.between(a, b) == dist.between(b, a)
        assert dist.between(a, a) == 0.0

    def test_pairwise(self):
        """Pairwise matrix matches between()."""
        dist = EuclideanDistance()
        data = np.array([[0.0, 0.0], [3.0, 4.0], [6.0, 8.0]])

        matrix = dist.pairwise(data)

        assert matrix.shape == (3, 3)
        assert np.allclose(np.diag(matrix), 0.0)
        assert np.allclose(matrix, matrix.T)
        assert np.isclose(matrix[0, 1], 5.0)
        assert np.isclose(matrix[0, 2], 10.0)

    def test_pairwise_single_point(self):
        """A single point gives a 1x1 zero matrix."""
        matrix = EuclideanDistance().pairwise(np.array([[1.0, 2.0]]))
        assert matrix.shape == (1, 1)
        assert matrix[0, 0] == 0.0


class TestCosineDistance:
    """Tests for the cosine metric."""

    def test_orthogonal_and_parallel(self):
        """Orthogonal vectors are at distance 1, parallel ones at 0."""
        dist = CosineDistance()

        assert np.isclose(dist.between(np.array([1.0, 0.0]), np.array([0.0, 1.0])), 1.0)
        assert np.isclose(dist.between(np.array([1.0, 1.0]), np.array([2.0, 2.0])), 0.0)
        assert np.isclose(dist.between(np.array([1.0, 0.0]), np.array([-1.0, 0.0])), 2.0)

    def test_zero_vector(self):
        """A zero vector has undefined orientation, so the distance is 1."""
        dist = CosineDistance()
        zero = np.zeros(3)

        assert dist.between(zero, np.array([1.0, 2.0, 3.0])) == 1.0
        assert dist.between(np.array([1.0, 2.0, 3.0]), zero) == 1.0
        assert dist.between(zero, zero) == 1.0

    def test_never_negative(self):
        """Rounding never produces a negative distance."""
        v = np.array([0.1, 0.2, 0.3])
        assert CosineDistance().between(v, v * 3) >= 0.0

    def test_pairwise_matches_between(self):
        """Vectorized pairwise agrees with the pair-by-pair definition."""
        dist = CosineDistance()
        data = np.array([
            [1.0, 0.0, 0.5],
            [0.0, 1.0, 0.0],
            [0.0, 0.0, 0.0],
            [0.3, 0.3, 0.3]
        ])

        matrix = dist.pairwise(data)

        for i in range(len(data)):
            for j in range(len(data)):
                if i == j:
                    continue
                assert np.isclose(matrix[i, j], dist.between(data[i], data[j]))
        assert matrix[0, 0] == 0.0
        assert matrix[2, 2] == 1.0

    def test_parallel_vectors_exactly_zero(self):
        """Rounding noise on parallel vectors is cut to zero in both code paths."""
        dist = CosineDistance()
        rng = np.random.RandomState(3)
        rows = rng.rand(20, 7)

        for row in rows:
            assert dist.between(row, row) == 0.0
            assert dist.between(row, 3.0 * row) == 0.0

        data = np.vstack([rows[0], 3.0 * rows[0], rows[1]])
        matrix = dist.pairwise(data)

        assert matrix[0, 1] == 0.0
        assert matrix[1, 0] == 0.0
        assert np.all(np.diag(matrix) == 0.0)
        assert matrix[0, 2] > 0.0


class TestDistanceMetric:
    """Tests for metric name resolution."""

    def test_parse_aliases(self):
        """Names and aliases resolve case-insensitively."""
        assert DistanceMetric.parse("euclidean") is DistanceMetric.EUCLIDEAN
        assert DistanceMetric.parse("L2") is DistanceMetric.EUCLIDEAN
        assert DistanceMetric.parse(" Cosine ") is DistanceMetric.COSINE
        assert DistanceMetric.parse("cos") is DistanceMetric.COSINE

    def test_parse_unknown(self):
        """Unknown names raise InvalidArgumentError."""
        with pytest.raises(InvalidArgumentError):
            DistanceMetric.parse("manhattan")

    def test_get_distance(self):
        """get_distance builds the concrete metric."""
        assert isinstance(get_distance("l2"), EuclideanDistance)
        assert isinstance(get_distance("cosine"), CosineDistance)
