"""
K-means clustering for encoded survey responses.

Lloyd's algorithm is implemented once, in ``lloyd``, and starts from
whatever centroids it is given. The two initialization strategies, uniform
random sampling and k-means++, are plain functions that only choose those
starting centroids. ``KMeans`` and ``KMeansPlusPlus`` pair an initializer
with ``lloyd`` behind a common ``fit`` signature.

The only source of randomness is the ``numpy.random.RandomState`` created
from the caller's seed and used during initialization, so a given
(data, k, seed, max_iter, tol) always produces the same model.
"""

import logging
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from surveymath.exceptions import InvalidArgumentError, NullArgumentError
from surveymath.math.distance import Distance, EuclideanDistance

# Set up logging
logger = logging.getLogger(__name__)

DEFAULT_MAX_ITER = 300
DEFAULT_TOL = 1e-4
DEFAULT_SEED = 42


class ClusterModel:
    """
    Result of a clustering run.

    Holds the centroids (k x D), one label per data row, the inertia and
    the number of iterations performed. The arrays are read-only copies.
    """

    def __init__(self,
                 centroids: np.ndarray,
                 labels: np.ndarray,
                 inertia: float,
                 iterations: int):
        self._centroids = np.array(centroids, dtype=float)
        self._labels = np.array(labels, dtype=int)
        self._centroids.setflags(write=False)
        self._labels.setflags(write=False)
        self._inertia = float(inertia)
        self._iterations = int(iterations)

    @property
    def centroids(self) -> np.ndarray:
        return self._centroids

    @property
    def labels(self) -> np.ndarray:
        return self._labels

    @property
    def inertia(self) -> float:
        """Sum of squared distances from each point to its centroid."""
        return self._inertia

    @property
    def iterations(self) -> int:
        return self._iterations

    @property
    def k(self) -> int:
        return self._centroids.shape[0]

    def cluster_sizes(self) -> List[int]:
        """Number of members of each cluster, indexed by label."""
        return np.bincount(self._labels, minlength=self.k).tolist()

    def members(self, label: int) -> List[int]:
        """Row indices assigned to ``label``."""
        return np.flatnonzero(self._labels == label).tolist()

    def to_dict(self, data_indices: Optional[List] = None) -> Dict:
        """
        Convert the model to a dictionary for serialization.

        Args:
            data_indices: Optional mapping from row positions to original ids

        Returns:
            Dictionary with the inertia, iteration count and one entry per cluster
        """
        clusters = []
        for label in range(self.k):
            members = self.members(label)
            if data_indices is not None:
                members = [data_indices[idx] for idx in members]
            clusters.append({
                'id': label,
                'center': self._centroids[label].tolist(),
                'members': members
            })

        return {
            'inertia': self._inertia,
            'iterations': self._iterations,
            'clusters': clusters
        }

    def __repr__(self) -> str:
        return (f"ClusterModel(k={self.k}, inertia={self._inertia:.6g}, "
                f"iterations={self._iterations})")


def check_fit_args(data: Optional[np.ndarray],
                   k: int,
                   max_iter: int = DEFAULT_MAX_ITER,
                   tol: float = DEFAULT_TOL) -> np.ndarray:
    """
    Validate clustering arguments and return the data as a float matrix.

    Raises:
        NullArgumentError: If data is None
        InvalidArgumentError: If the data is empty or not 2-D, if k is not in
            [1, n_points], if max_iter < 1 or if tol < 0
    """
    if data is None:
        raise NullArgumentError("data cannot be None")

    data = np.asarray(data, dtype=float)
    if data.ndim != 2:
        raise InvalidArgumentError(f"data must be a 2-D matrix, got shape {data.shape}")
    if data.shape[0] == 0:
        raise InvalidArgumentError("data must contain at least one row")
    if k <= 0:
        raise InvalidArgumentError("k must be > 0")
    if k > data.shape[0]:
        raise InvalidArgumentError(f"k={k} exceeds the number of points ({data.shape[0]})")
    if max_iter < 1:
        raise InvalidArgumentError("max_iter must be >= 1")
    if tol < 0:
        raise InvalidArgumentError("tol must be >= 0")

    return data


def make_rng(seed: int) -> np.random.RandomState:
    """RandomState for ``seed``, folding any integer into the accepted range."""
    return np.random.RandomState(int(seed) & 0xFFFFFFFF)


def init_random(data: np.ndarray,
                k: int,
                rng: np.random.RandomState,
                distance: Optional[Distance] = None) -> np.ndarray:
    """
    Choose k distinct rows uniformly at random as initial centroids.

    Args:
        data: Data matrix
        k: Number of clusters
        rng: Seeded random state
        distance: Unused; accepted for a uniform initializer signature

    Returns:
        Initial centroids (k x D)
    """
    indices = rng.permutation(data.shape[0])[:k]
    return data[indices].copy()


def init_kmeans_plus_plus(data: np.ndarray,
                          k: int,
                          rng: np.random.RandomState,
                          distance: Optional[Distance] = None) -> np.ndarray:
    """
    Choose initial centroids with k-means++ seeding.

    The first center is a uniformly random row. Every following center is
    drawn by roulette selection over the cumulative sum of each point's
    squared distance to its nearest chosen center, so far-away points are
    favored and the seeds end up well spread.

    Args:
        data: Data matrix
        k: Number of clusters
        rng: Seeded random state
        distance: Distance metric (defaults to Euclidean)

    Returns:
        Initial centroids (k x D)
    """
    distance = distance or EuclideanDistance()
    n_points = data.shape[0]

    first_idx = rng.randint(0, n_points)
    centers = [data[first_idx]]

    # Distance from each point to its nearest chosen center
    closest = np.array([distance.between(point, centers[0]) for point in data])

    for _ in range(1, k):
        weights = closest ** 2
        total = weights.sum()

        if total <= 0:
            # Every point sits on a chosen center
            next_idx = rng.randint(0, n_points)
        else:
            target = rng.random_sample() * total
            next_idx = int(np.searchsorted(np.cumsum(weights), target, side='right'))
            next_idx = min(next_idx, n_points - 1)

        centers.append(data[next_idx])
        new_dists = np.array([distance.between(point, data[next_idx]) for point in data])
        closest = np.minimum(closest, new_dists)

    return np.array(centers, dtype=float)


def point_centroid_distances(data: np.ndarray,
                             centroids: np.ndarray,
                             distance: Distance) -> np.ndarray:
    """
    Distance from every point to every centroid.

    Returns:
        Matrix of shape (n_points, n_centroids)
    """
    return np.array([[distance.between(point, center) for center in centroids]
                     for point in data]).reshape(data.shape[0], len(centroids))


def assign_points(data: np.ndarray,
                  centroids: np.ndarray,
                  distance: Distance) -> Tuple[np.ndarray, float]:
    """
    Assign each point to its nearest centroid.

    Ties go to the lowest centroid index.

    Returns:
        Tuple of (labels, inertia)
    """
    dists = point_centroid_distances(data, centroids, distance)
    labels = np.argmin(dists, axis=1)
    min_dists = dists[np.arange(data.shape[0]), labels]
    inertia = float(np.sum(min_dists ** 2))
    return labels, inertia


def update_centroids(data: np.ndarray,
                     labels: np.ndarray,
                     k: int,
                     distance: Distance) -> np.ndarray:
    """
    Move each centroid to the mean of its members.

    A cluster that received no points is reseeded to the data point that is
    farthest from its nearest centroid. Empty clusters are handled in
    ascending index order, and each reseed joins the reference set before
    the next one is chosen, so two empty clusters never get the same seed
    unless the points coincide.

    Args:
        data: Data matrix
        labels: Current assignment
        k: Number of clusters
        distance: Distance metric

    Returns:
        New centroids (k x D)
    """
    centroids = np.zeros((k, data.shape[1]))
    counts = np.bincount(labels, minlength=k)

    for c in range(k):
        if counts[c] > 0:
            centroids[c] = data[labels == c].mean(axis=0)

    active = [c for c in range(k) if counts[c] > 0]
    for c in range(k):
        if counts[c] > 0:
            continue
        nearest = point_centroid_distances(data, centroids[active], distance).min(axis=1)
        farthest = int(np.argmax(nearest))
        logger.debug(f"Cluster {c} is empty; reseeding to point {farthest}")
        centroids[c] = data[farthest]
        active.append(c)

    return centroids


def lloyd(data: np.ndarray,
          initial_centroids: np.ndarray,
          distance: Optional[Distance] = None,
          max_iter: int = DEFAULT_MAX_ITER,
          tol: float = DEFAULT_TOL) -> ClusterModel:
    """
    Run Lloyd's algorithm from the given starting centroids.

    Each iteration assigns every point to its nearest centroid and then moves
    the centroids to the means of their members. The run stops when the
    inertia changes by at most ``tol * max(1, previous inertia)`` or after
    ``max_iter`` assignments. Reaching ``max_iter`` is not an error; the model
    of the last assignment is returned.

    Args:
        data: Data matrix (N x D)
        initial_centroids: Starting centroids (k x D)
        distance: Distance metric (defaults to Euclidean)
        max_iter: Maximum number of assignment steps
        tol: Relative inertia tolerance

    Returns:
        ClusterModel whose labels refer to its centroids
    """
    if initial_centroids is None:
        raise NullArgumentError("initial_centroids cannot be None")
    centroids = np.array(initial_centroids, dtype=float)
    data = check_fit_args(data, centroids.shape[0], max_iter, tol)
    distance = distance or EuclideanDistance()
    k = centroids.shape[0]

    prev_inertia = None
    for iteration in range(max_iter):
        labels, inertia = assign_points(data, centroids, distance)

        if prev_inertia is not None and abs(prev_inertia - inertia) <= tol * max(1.0, prev_inertia):
            logger.debug(f"Converged after {iteration + 1} iterations (inertia={inertia:.6g})")
            return ClusterModel(centroids, labels, inertia, iteration + 1)

        if iteration == max_iter - 1:
            break

        prev_inertia = inertia
        centroids = update_centroids(data, labels, k, distance)

    logger.debug(f"Stopped at max_iter={max_iter} (inertia={inertia:.6g})")
    return ClusterModel(centroids, labels, inertia, max_iter)


Initializer = Callable[[np.ndarray, int, np.random.RandomState, Optional[Distance]], np.ndarray]


class ClusteringAlgorithm:
    """
    K-means with a pluggable initializer.

    Instances keep no per-call state, so one algorithm can serve concurrent
    ``fit`` calls with independent data and seeds.
    """

    name = "kmeans"

    def __init__(self, initializer: Initializer, name: Optional[str] = None):
        self._initializer = initializer
        if name is not None:
            self.name = name

    def fit(self,
            data: np.ndarray,
            k: int,
            distance: Optional[Distance] = None,
            seed: int = DEFAULT_SEED,
            max_iter: int = DEFAULT_MAX_ITER,
            tol: float = DEFAULT_TOL) -> ClusterModel:
        """
        Cluster the rows of ``data`` into ``k`` groups.

        Args:
            data: Data matrix (N x D); never modified
            k: Number of clusters, 1 <= k <= N
            distance: Distance metric (defaults to Euclidean)
            seed: Seed for the initialization random state
            max_iter: Maximum number of iterations
            tol: Relative inertia tolerance for convergence

        Returns:
            A ClusterModel
        """
        data = check_fit_args(data, k, max_iter, tol)
        distance = distance or EuclideanDistance()

        rng = make_rng(seed)
        initial_centroids = self._initializer(data, k, rng, distance)

        model = lloyd(data, initial_centroids, distance, max_iter, tol)
        logger.info(f"{self.name} fitted k={k} on {data.shape[0]} points: "
                    f"inertia={model.inertia:.6g}, iterations={model.iterations}")
        return model

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class KMeans(ClusteringAlgorithm):
    """K-means with uniformly random initial centroids."""

    def __init__(self):
        super().__init__(init_random, "kmeans")


class KMeansPlusPlus(ClusteringAlgorithm):
    """K-means with k-means++ seeding."""

    def __init__(self):
        super().__init__(init_kmeans_plus_plus, "kmeans++")
