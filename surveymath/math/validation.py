"""
Cluster quality scores.

The silhouette coefficient contrasts, for each point, the mean distance to
the other members of its own cluster (a) with the mean distance to the
members of the nearest other cluster (b):

    s(i) = (b - a) / max(a, b)

Computing it needs every pairwise distance, O(N^2) in time and memory, so it
is meant for scoring one survey's responses in batch and not for large or
streaming data sets.
"""

import logging
from typing import Optional

import numpy as np

from surveymath.exceptions import InvalidArgumentError, NullArgumentError
from surveymath.math.clusters import ClusterModel
from surveymath.math.distance import Distance, EuclideanDistance

# Set up logging
logger = logging.getLogger(__name__)


class Silhouette:
    """Silhouette validator. Holds no state between calls."""

    def score_per_point(self,
                        data: np.ndarray,
                        model: ClusterModel,
                        distance: Optional[Distance] = None) -> np.ndarray:
        """
        Calculate the silhouette of every point.

        A point alone in its cluster has a(i) = 0. Empty clusters are skipped
        when looking for the nearest other cluster; if there is no other
        non-empty cluster at all, b(i) is infinite and s(i) is 0.

        Args:
            data: Data matrix the model was fitted on
            model: Fitted cluster model
            distance: Distance metric (defaults to Euclidean)

        Returns:
            Array of N scores in [-1, 1]
        """
        if data is None:
            raise NullArgumentError("data cannot be None")
        if model is None:
            raise NullArgumentError("model cannot be None")
        distance = distance or EuclideanDistance()

        data = np.asarray(data, dtype=float)
        labels = model.labels
        n_points = data.shape[0]
        if labels.shape[0] != n_points:
            raise InvalidArgumentError(
                f"Model has {labels.shape[0]} labels but data has {n_points} rows")
        if n_points == 0:
            return np.zeros(0)

        k = max(model.k, int(labels.max()) + 1)
        counts = np.bincount(labels, minlength=k)
        dist_matrix = distance.pairwise(data)

        # Row i, column c: sum of distances from point i to members of cluster c
        one_hot = np.zeros((n_points, k))
        one_hot[np.arange(n_points), labels] = 1.0
        cluster_sums = dist_matrix @ one_hot

        scores = np.zeros(n_points)
        for i in range(n_points):
            own = labels[i]

            same = counts[own] - 1
            a = (cluster_sums[i, own] - dist_matrix[i, i]) / same if same > 0 else 0.0

            b = np.inf
            for c in range(k):
                if c != own and counts[c] > 0:
                    b = min(b, cluster_sums[i, c] / counts[c])

            if np.isinf(b) or (a == 0 and b == 0):
                scores[i] = 0.0
            else:
                scores[i] = (b - a) / max(a, b)

        return scores

    def average(self,
                data: np.ndarray,
                model: ClusterModel,
                distance: Optional[Distance] = None) -> float:
        """
        Mean silhouette over all points.

        Returns:
            Average score, or 0.0 when there are no points
        """
        scores = self.score_per_point(data, model, distance)
        return float(np.mean(scores)) if scores.size else 0.0
