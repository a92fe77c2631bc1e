"""
Choosing the number of clusters with the elbow heuristic.
"""

import logging
from typing import Optional

import numpy as np
import pandas as pd

from surveymath.exceptions import InvalidArgumentError, NullArgumentError
from surveymath.math.clusters import ClusteringAlgorithm
from surveymath.math.distance import Distance

# Set up logging
logger = logging.getLogger(__name__)

ELBOW_MAX_ITER = 200
ELBOW_TOL = 1e-4


class ElbowMethod:
    """
    Elbow method for suggesting k.

    The algorithm is run once per k in [k_min, k_max]. On the inertia-vs-k
    curve, the suggested k is the point farthest from the chord joining the
    two endpoints, which approximates the point of maximum curvature.
    """

    def __init__(self, max_iter: int = ELBOW_MAX_ITER, tol: float = ELBOW_TOL):
        self.max_iter = max_iter
        self.tol = tol

    def inertia_curve(self,
                      data: np.ndarray,
                      k_min: int,
                      k_max: int,
                      algorithm: ClusteringAlgorithm,
                      distance: Optional[Distance] = None,
                      seed: int = 42) -> pd.Series:
        """
        Inertia of the fitted model for each k in the range.

        Args:
            data: Data matrix
            k_min: Smallest k, at least 1
            k_max: Largest k, greater than k_min and at most the number of rows
            algorithm: Clustering algorithm to run
            distance: Distance metric
            seed: Seed passed to every run

        Returns:
            Series of inertias indexed by k
        """
        if data is None:
            raise NullArgumentError("data cannot be None")
        if algorithm is None:
            raise NullArgumentError("algorithm cannot be None")
        if k_min < 1 or k_min >= k_max:
            raise InvalidArgumentError(f"Invalid k range [{k_min}, {k_max}]: need 1 <= k_min < k_max")
        n_points = np.asarray(data).shape[0]
        if k_max > n_points:
            raise InvalidArgumentError(f"k_max={k_max} exceeds the number of points ({n_points})")

        ks = list(range(k_min, k_max + 1))
        inertias = [
            algorithm.fit(data, k, distance, seed, self.max_iter, self.tol).inertia
            for k in ks
        ]
        return pd.Series(inertias, index=pd.Index(ks, name='k'), name='inertia')

    def suggest_k(self,
                  data: np.ndarray,
                  k_min: int,
                  k_max: int,
                  algorithm: ClusteringAlgorithm,
                  distance: Optional[Distance] = None,
                  seed: int = 42) -> int:
        """
        Suggest a number of clusters.

        Returns:
            The k in [k_min, k_max] farthest from the endpoint chord; ties go
            to the smallest k
        """
        curve = self.inertia_curve(data, k_min, k_max, algorithm, distance, seed)
        best_k = elbow_point(curve)
        logger.info(f"Elbow method suggests k={best_k} in [{k_min}, {k_max}]")
        return best_k


def elbow_point(curve: pd.Series) -> int:
    """
    Find the elbow of an inertia curve.

    Args:
        curve: Inertia values indexed by k, in increasing k order

    Returns:
        The k with the largest perpendicular distance to the chord between
        the first and last points
    """
    ks = curve.index.to_numpy(dtype=float)
    inertias = curve.to_numpy(dtype=float)

    x1, y1 = ks[0], inertias[0]
    x2, y2 = ks[-1], inertias[-1]
    norm = np.hypot(y2 - y1, x2 - x1)

    best_k = int(ks[0])
    best_dist = -1.0
    for x0, y0 in zip(ks, inertias):
        dist = abs((y2 - y1) * x0 - (x2 - x1) * y0 + x2 * y1 - y2 * x1) / norm
        if dist > best_dist:
            best_dist = dist
            best_k = int(x0)

    return best_k
