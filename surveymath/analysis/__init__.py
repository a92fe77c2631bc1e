"""
Survey analysis for surveymath.

This package composes encoding, clustering and validation into a single
report per survey.
"""

from surveymath.analysis.configuration import (
    InitMethod, AlgorithmConfiguration, supported_init_methods, supported_distances
)
from surveymath.analysis.analyzer import SurveyAnalyzer, AnalyticsResult
