"""
Numerical core: encoding, distances, clustering, k selection and validation.
"""

from surveymath.math.distance import (
    Distance, EuclideanDistance, CosineDistance, DistanceMetric, get_distance
)
from surveymath.math.encoder import FeatureEncoder, tokenize
from surveymath.math.clusters import (
    ClusterModel, ClusteringAlgorithm, KMeans, KMeansPlusPlus,
    init_random, init_kmeans_plus_plus, lloyd
)
from surveymath.math.kselector import ElbowMethod, elbow_point
from surveymath.math.validation import Silhouette
from surveymath.math.named_matrix import NamedMatrix
