"""
Distance metrics for clustering survey feature vectors.

A metric is a small strategy object with ``between(a, b)`` for one pair of
vectors and ``pairwise(data)`` for the full distance matrix of a data set.
Metrics hold no state, so one instance can be shared freely.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum

import numpy as np
from scipy.spatial.distance import pdist, squareform

from surveymath.exceptions import InvalidArgumentError

# Set up logging
logger = logging.getLogger(__name__)

# Cosine distances below this are rounding noise on parallel vectors
COSINE_ZERO_TOL = 1e-12


class Distance(ABC):
    """Distance between equal-length numeric vectors."""

    name = "distance"

    @abstractmethod
    def between(self, a: np.ndarray, b: np.ndarray) -> float:
        """
        Distance between two vectors.

        Args:
            a: First vector
            b: Second vector

        Returns:
            Non-negative, symmetric distance; zero for identical vectors
        """

    def pairwise(self, data: np.ndarray) -> np.ndarray:
        """
        Calculate the matrix of pairwise distances for a set of points.

        Args:
            data: Data matrix (N x D)

        Returns:
            Symmetric N x N matrix with a zero diagonal
        """
        data = np.asarray(data, dtype=float)
        n_points = data.shape[0]
        dist_matrix = np.zeros((n_points, n_points))

        for i in range(n_points):
            for j in range(i + 1, n_points):
                dist = self.between(data[i], data[j])
                dist_matrix[i, j] = dist
                dist_matrix[j, i] = dist

        return dist_matrix

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class EuclideanDistance(Distance):
    """Straight-line distance, ``sqrt(sum((a_i - b_i)^2))``."""

    name = "euclidean"

    def between(self, a: np.ndarray, b: np.ndarray) -> float:
        return float(np.linalg.norm(np.asarray(a, dtype=float) - np.asarray(b, dtype=float)))

    def pairwise(self, data: np.ndarray) -> np.ndarray:
        data = np.asarray(data, dtype=float)
        if data.shape[0] < 2:
            return np.zeros((data.shape[0], data.shape[0]))
        return squareform(pdist(data, metric='euclidean'))


class CosineDistance(Distance):
    """
    One minus cosine similarity.

    Suited to bag-of-words and one-hot profiles, where the orientation of a
    response vector matters more than its magnitude. If either vector is all
    zeros the orientation is undefined and the distance is 1.0.
    """

    name = "cosine"

    def between(self, a: np.ndarray, b: np.ndarray) -> float:
        a = np.asarray(a, dtype=float)
        b = np.asarray(b, dtype=float)

        norm_a = np.dot(a, a)
        norm_b = np.dot(b, b)
        if norm_a == 0.0 or norm_b == 0.0:
            return 1.0

        similarity = np.dot(a, b) / (np.sqrt(norm_a) * np.sqrt(norm_b))
        # Floating point can push the similarity just outside [-1, 1]
        similarity = min(1.0, max(-1.0, similarity))
        dist = 1.0 - similarity
        return 0.0 if dist < COSINE_ZERO_TOL else float(dist)

    def pairwise(self, data: np.ndarray) -> np.ndarray:
        data = np.asarray(data, dtype=float)
        norms = np.sqrt(np.einsum('ij,ij->i', data, data))
        zero = norms == 0.0

        safe_norms = np.where(zero, 1.0, norms)
        unit = data / safe_norms[:, None]
        similarity = np.clip(unit @ unit.T, -1.0, 1.0)

        dist_matrix = 1.0 - similarity
        dist_matrix[dist_matrix < COSINE_ZERO_TOL] = 0.0
        dist_matrix[zero, :] = 1.0
        dist_matrix[:, zero] = 1.0
        # A vector is at distance 0 from itself, except the all-zero one
        np.fill_diagonal(dist_matrix, np.where(zero, 1.0, 0.0))
        return dist_matrix


class DistanceMetric(str, Enum):
    """Closed set of supported distance metrics."""

    EUCLIDEAN = "euclidean"
    COSINE = "cosine"

    @classmethod
    def parse(cls, name: str) -> 'DistanceMetric':
        """
        Resolve a metric name, accepting the common aliases.

        Args:
            name: Metric name, case insensitive ("euclidean", "l2", "cosine", "cos")

        Returns:
            The matching DistanceMetric
        """
        key = (name or "").strip().lower()
        if key in _DISTANCE_ALIASES:
            return _DISTANCE_ALIASES[key]
        raise InvalidArgumentError(f"Unknown distance metric: {name}")

    def build(self) -> Distance:
        if self is DistanceMetric.EUCLIDEAN:
            return EuclideanDistance()
        return CosineDistance()


_DISTANCE_ALIASES = {
    'euclidean': DistanceMetric.EUCLIDEAN,
    'l2': DistanceMetric.EUCLIDEAN,
    'cosine': DistanceMetric.COSINE,
    'cos': DistanceMetric.COSINE,
}


def get_distance(name: str) -> Distance:
    """
    Build the distance metric registered under ``name``.

    Args:
        name: Metric name or alias

    Returns:
        A Distance instance
    """
    return DistanceMetric.parse(name).build()
