"""
PCA projection of encoded responses for visualization.

Principal components are found by power iteration with deflation, starting
from a fixed-seed random vector so the projection is reproducible. Only the leading two
components are needed to place responses and centroids on a 2-D map.
"""

import logging
from typing import Dict, Optional, Tuple

import numpy as np

# Set up logging
logger = logging.getLogger(__name__)


def normalize_vector(v: np.ndarray) -> np.ndarray:
    """
    Normalize a vector to unit length.

    Args:
        v: Vector to normalize

    Returns:
        Normalized vector, or v itself if it has zero length
    """
    norm = np.linalg.norm(v)
    if norm == 0:
        return v
    return v / norm


def factor_matrix(data: np.ndarray, xs: np.ndarray) -> np.ndarray:
    """
    Remove the component along ``xs`` from every row of ``data``.

    Args:
        data: Matrix of data
        xs: Direction to factor out

    Returns:
        Matrix with no variance left in the xs direction
    """
    denom = np.dot(xs, xs)
    if denom == 0:
        return data
    return data - np.outer(data @ xs, xs) / denom


def rand_starting_vec(n_cols: int, seed: int = 0) -> np.ndarray:
    """Reproducible random starting vector for power iteration."""
    return np.random.RandomState(seed).randn(n_cols)


def power_iteration(data: np.ndarray,
                    iters: int = 100,
                    start_vector: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Find the dominant eigenvector of X^T X by power iteration.

    Args:
        data: Data matrix X
        iters: Maximum number of iterations
        start_vector: Initial vector (defaults to rand_starting_vec)

    Returns:
        Unit eigenvector, or a zero vector when X has no variance left
    """
    n_cols = data.shape[1]
    vec = rand_starting_vec(n_cols) if start_vector is None else np.asarray(start_vector, dtype=float)

    last_eigval = 0.0
    for _ in range(iters):
        product = data.T @ (data @ vec)
        eigval = np.linalg.norm(product)
        if eigval < 1e-12:
            return np.zeros(n_cols)

        vec = normalize_vector(product)
        if np.isclose(eigval, last_eigval, rtol=1e-12, atol=0.0):
            break
        last_eigval = eigval

    # Fix the sign so the largest coordinate is positive
    if vec[np.argmax(np.abs(vec))] < 0:
        vec = -vec
    return vec


def powerit_pca(data: np.ndarray, n_comps: int = 2, iters: int = 100) -> Dict[str, np.ndarray]:
    """
    Find the first ``n_comps`` principal components of the data.

    Args:
        data: Data matrix
        n_comps: Number of components to find
        iters: Maximum number of iterations per component

    Returns:
        Dictionary with 'center' (column means) and 'comps' (n_comps x D).
        Components beyond the rank of the data are zero vectors.
    """
    data = np.asarray(data, dtype=float)
    center = data.mean(axis=0) if data.shape[0] else np.zeros(data.shape[1])
    factored = data - center

    comps = []
    for _ in range(n_comps):
        if factored.shape[1] == 0:
            comps.append(np.zeros(0))
            continue
        pc = power_iteration(factored, iters)
        comps.append(pc)
        factored = factor_matrix(factored, pc)

    return {
        'center': center,
        'comps': np.array(comps).reshape(n_comps, data.shape[1])
    }


def project(data: np.ndarray, pca_results: Dict[str, np.ndarray]) -> np.ndarray:
    """Project rows onto the components, after centering."""
    data = np.atleast_2d(np.asarray(data, dtype=float))
    return (data - pca_results['center']) @ pca_results['comps'].T


def project_2d(data: np.ndarray,
               centroids: Optional[np.ndarray] = None) -> Tuple[np.ndarray, np.ndarray]:
    """
    Place points and centroids on the plane of the two leading components.

    Args:
        data: Data matrix (N x D)
        centroids: Optional centroid matrix (k x D), projected with the same components

    Returns:
        Tuple of (points N x 2, centroids k x 2)
    """
    data = np.asarray(data, dtype=float)
    pca_results = powerit_pca(data, 2)

    points_2d = project(data, pca_results)
    if centroids is None:
        centroids_2d = np.zeros((0, 2))
    else:
        centroids_2d = project(centroids, pca_results)

    logger.debug(f"Projected {points_2d.shape[0]} points and {centroids_2d.shape[0]} centroids to 2-D")
    return points_2d, centroids_2d
