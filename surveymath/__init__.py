"""
Surveymath package for survey response analytics.

Encodes survey answers into feature vectors, clusters respondents with
k-means and scores the resulting groups.
"""

__version__ = '0.1.0'

from surveymath.analysis import SurveyAnalyzer, AnalyticsResult, AlgorithmConfiguration
from surveymath.components.config import Config, ConfigManager
