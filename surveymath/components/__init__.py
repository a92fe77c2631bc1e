"""
System components for surveymath.
"""

from surveymath.components.config import Config, ConfigManager, setup_logging
