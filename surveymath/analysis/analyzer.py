"""
Survey analysis pipeline.

Encodes a survey's responses, clusters them and scores the clustering,
returning everything a caller needs to report on the respondent groups.
"""

import logging
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from surveymath.analysis.configuration import AlgorithmConfiguration
from surveymath.components.config import Config, ConfigManager
from surveymath.exceptions import InvalidArgumentError, require_not_none
from surveymath.math.encoder import FeatureEncoder
from surveymath.math.kselector import ElbowMethod
from surveymath.math.pca import project_2d
from surveymath.math.validation import Silhouette
from surveymath.survey.models import Survey, SurveyResponse

# Set up logging
logger = logging.getLogger(__name__)


class AnalyticsResult:
    """
    Outcome of analyzing one survey.

    Labels, silhouettes and 2-D points follow the order of the analyzed
    responses.
    """

    def __init__(self,
                 clusters: int,
                 inertia: float,
                 average_silhouette: float,
                 cluster_counts: Dict[int, int],
                 response_ids: Optional[List[str]] = None,
                 labels: Optional[np.ndarray] = None,
                 silhouettes: Optional[np.ndarray] = None,
                 points_2d: Optional[np.ndarray] = None,
                 centroids_2d: Optional[np.ndarray] = None,
                 feature_names: Optional[List[str]] = None,
                 iterations: int = 0):
        self.clusters = clusters
        self.inertia = inertia
        self.average_silhouette = average_silhouette
        self.cluster_counts = dict(cluster_counts)
        self.response_ids = response_ids
        self.labels = labels
        self.silhouettes = silhouettes
        self.points_2d = points_2d
        self.centroids_2d = centroids_2d
        self.feature_names = feature_names
        self.iterations = iterations

    def to_dict(self) -> Dict:
        """
        Convert the result to plain Python types for serialization.

        Returns:
            Dictionary representation of the result
        """
        def as_list(arr):
            return None if arr is None else np.asarray(arr).tolist()

        return {
            'clusters': self.clusters,
            'inertia': self.inertia,
            'average_silhouette': self.average_silhouette,
            'cluster_counts': {int(k): int(v) for k, v in self.cluster_counts.items()},
            'response_ids': self.response_ids,
            'labels': as_list(self.labels),
            'silhouettes': as_list(self.silhouettes),
            'points_2d': as_list(self.points_2d),
            'centroids_2d': as_list(self.centroids_2d),
            'feature_names': self.feature_names,
            'iterations': self.iterations
        }

    def __repr__(self) -> str:
        return (f"AnalyticsResult(clusters={self.clusters}, inertia={self.inertia:.6g}, "
                f"average_silhouette={self.average_silhouette:.4f})")


class SurveyAnalyzer:
    """
    Runs encoder, clustering algorithm and silhouette validator over a survey.

    A fresh encoder is built for every call, so one analyzer may serve
    several surveys concurrently.
    """

    def __init__(self,
                 config: Optional[Config] = None,
                 validator: Optional[Silhouette] = None,
                 selector: Optional[ElbowMethod] = None):
        """
        Initialize the analyzer.

        Args:
            config: Configuration (defaults to the shared ConfigManager instance)
            validator: Cluster validator
            selector: k selector used when a survey does not fix k
        """
        self.config = config or ConfigManager.get_config()
        self.validator = validator or Silhouette()
        self.selector = selector or ElbowMethod()

    def analyze(self,
                survey: Survey,
                responses: Sequence[SurveyResponse],
                k: Optional[int] = None,
                seed: Optional[int] = None) -> AnalyticsResult:
        """
        Cluster a survey's responses.

        Args:
            survey: Survey whose questions define the encoding
            responses: At least two responses to analyze
            k: Number of clusters; defaults to the survey's own setting
            seed: Random seed; defaults to the configured seed

        Returns:
            AnalyticsResult for the responses
        """
        require_not_none(survey, "survey")
        require_not_none(responses, "responses")
        if len(responses) < 2:
            raise InvalidArgumentError("At least two responses are required for analysis")

        n_responses = len(responses)
        seed = self.config.get('analysis.seed', 42) if seed is None else seed
        max_iter = self.config.get('analysis.max-iters', 300)
        tol = self.config.get('analysis.tol', 1e-4)

        encoder = FeatureEncoder().fit(survey, responses)
        features = encoder.encode(responses)
        X = features.values

        strategy = AlgorithmConfiguration.from_survey(survey, config=self.config)
        algorithm = strategy.build_algorithm()
        distance = strategy.build_distance()

        requested = k if k is not None else survey.k
        if not requested:
            requested = self._choose_k(X, algorithm, distance, seed)
        k = self._sanitize_cluster_count(requested, n_responses)

        model = algorithm.fit(X, k, distance, seed, max_iter, tol)
        scores = self.validator.score_per_point(X, model, distance)
        average = float(np.mean(scores))

        counts = pd.Series(model.labels).value_counts().sort_index()
        points_2d, centroids_2d = project_2d(X, model.centroids)

        logger.info(f"Analyzed survey {survey.id}: {n_responses} responses, k={k}, "
                    f"inertia={model.inertia:.6g}, silhouette={average:.4f}")

        return AnalyticsResult(
            clusters=k,
            inertia=model.inertia,
            average_silhouette=average,
            cluster_counts={int(label): int(count) for label, count in counts.items()},
            response_ids=features.rownames(),
            labels=np.array(model.labels),
            silhouettes=scores,
            points_2d=points_2d,
            centroids_2d=centroids_2d,
            feature_names=features.colnames(),
            iterations=model.iterations
        )

    def _choose_k(self, X, algorithm, distance, seed) -> int:
        """Pick k when the survey leaves it unset."""
        default_k = self.config.get('analysis.k', 3)
        if not self.config.get('analysis.auto-k', True):
            return default_k

        k_min = self.config.get('analysis.k-min', 2)
        k_max = min(self.config.get('analysis.k-max', 8), X.shape[0])
        if k_min >= k_max:
            logger.debug(f"Elbow range [{k_min}, {k_max}] too small; using k={default_k}")
            return default_k

        return self.selector.suggest_k(X, k_min, k_max, algorithm, distance, seed)

    @staticmethod
    def _sanitize_cluster_count(requested: int, n_responses: int) -> int:
        """Clamp k to [1, n_responses]."""
        k = min(max(1, requested), n_responses)
        if k != requested:
            logger.warning(f"Requested k={requested} clamped to {k} for {n_responses} responses")
        return k
