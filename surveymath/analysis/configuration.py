"""
Resolution of clustering strategy names.

Surveys name their init method and distance metric as strings. They are
resolved once, here, into members of small closed enums and then into the
concrete algorithm and distance objects injected into the analysis.
"""

import logging
from enum import Enum
from typing import Dict, Optional

from surveymath.components.config import Config
from surveymath.exceptions import InvalidArgumentError, require_not_none
from surveymath.math.clusters import ClusteringAlgorithm, KMeans, KMeansPlusPlus
from surveymath.math.distance import Distance, DistanceMetric
from surveymath.survey.models import Survey

# Set up logging
logger = logging.getLogger(__name__)

DEFAULT_INIT_METHOD = "kmeans++"
DEFAULT_DISTANCE = "cosine"


class InitMethod(str, Enum):
    """Closed set of centroid initialization strategies."""

    KMEANS = "kmeans"
    KMEANS_PP = "kmeans++"

    @classmethod
    def parse(cls, name: str) -> 'InitMethod':
        key = (name or "").strip().lower()
        if key in _INIT_ALIASES:
            return _INIT_ALIASES[key]
        raise InvalidArgumentError(f"Unknown init method: {name}")

    def build(self) -> ClusteringAlgorithm:
        if self is InitMethod.KMEANS:
            return KMeans()
        return KMeansPlusPlus()


_INIT_ALIASES = {
    'kmeans': InitMethod.KMEANS,
    'k-means': InitMethod.KMEANS,
    'kmeans++': InitMethod.KMEANS_PP,
    'k-means++': InitMethod.KMEANS_PP,
    'kpp': InitMethod.KMEANS_PP,
}


class AlgorithmConfiguration:
    """
    Clustering strategy chosen for a survey.

    Blank names fall back to the given defaults, which themselves default to
    k-means++ with cosine distance. Unknown names also fall back, with a
    warning, unless ``strict`` is set, in which case they raise
    InvalidArgumentError.
    """

    def __init__(self,
                 init_method: Optional[str] = None,
                 distance: Optional[str] = None,
                 strict: bool = False,
                 default_init_method: Optional[str] = None,
                 default_distance: Optional[str] = None):
        init_fallback = self._resolve_default(default_init_method, DEFAULT_INIT_METHOD, InitMethod.parse)
        distance_fallback = self._resolve_default(default_distance, DEFAULT_DISTANCE, DistanceMetric.parse)

        self.init_method = self._resolve(init_method, init_fallback, InitMethod.parse, strict)
        self.distance = self._resolve(distance, distance_fallback, DistanceMetric.parse, strict)

    @staticmethod
    def _resolve_default(name, builtin, parse):
        if name is None or not str(name).strip():
            return parse(builtin)
        try:
            return parse(name)
        except InvalidArgumentError:
            logger.warning(f"Unknown configured strategy name '{name}', using '{builtin}'")
            return parse(builtin)

    @staticmethod
    def _resolve(name, fallback, parse, strict):
        if name is None or not str(name).strip():
            return fallback
        try:
            return parse(name)
        except InvalidArgumentError:
            if strict:
                raise
            logger.warning(f"Unknown strategy name '{name}', using '{fallback.value}'")
            return fallback

    @classmethod
    def from_survey(cls,
                    survey: Survey,
                    strict: bool = False,
                    config: Optional[Config] = None) -> 'AlgorithmConfiguration':
        """
        Build the configuration stored on a survey.

        Args:
            survey: Survey naming its init method and distance
            strict: Raise on unknown names instead of falling back
            config: Configuration whose ``analysis.init-method`` and
                ``analysis.distance`` replace the built-in defaults

        Returns:
            Resolved AlgorithmConfiguration
        """
        require_not_none(survey, "survey")
        defaults = {}
        if config is not None:
            defaults = {
                'default_init_method': config.get('analysis.init-method'),
                'default_distance': config.get('analysis.distance'),
            }
        return cls(survey.init_method, survey.distance, strict, **defaults)

    def build_algorithm(self) -> ClusteringAlgorithm:
        return self.init_method.build()

    def build_distance(self) -> Distance:
        return self.distance.build()

    def __repr__(self) -> str:
        return (f"AlgorithmConfiguration(init_method={self.init_method.value!r}, "
                f"distance={self.distance.value!r})")


def supported_init_methods() -> Dict[str, str]:
    """Available init methods, id to display label."""
    return {
        InitMethod.KMEANS.value: "K-Means",
        InitMethod.KMEANS_PP.value: "K-Means++",
    }


def supported_distances() -> Dict[str, str]:
    """Available distance metrics, id to display label."""
    return {
        DistanceMetric.EUCLIDEAN.value: "Euclidean",
        DistanceMetric.COSINE.value: "Cosine",
    }
