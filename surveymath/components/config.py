"""
Configuration management for survey analytics.

Values come, in increasing precedence, from built-in defaults, environment
variables and explicit overrides (a dict, or a JSON/YAML file), followed by
a few inferred values.
"""

import os
import json
import logging
import threading
from typing import Any, Dict, Optional
from copy import deepcopy

import yaml

# Set up logging
logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

_LOG_LEVELS = {
    'debug': logging.DEBUG,
    'info': logging.INFO,
    'warn': logging.WARNING,
    'warning': logging.WARNING,
    'error': logging.ERROR,
    'critical': logging.CRITICAL,
}


def setup_logging(level: Optional[str] = None) -> None:
    """
    Set up logging.

    Args:
        level: Logging level name ("debug", "info", "warn", ...). Defaults to
            the configured ``logging.level``.
    """
    if level is None:
        level = ConfigManager.get_config().get('logging.level', 'warn')

    logging.basicConfig(
        level=_LOG_LEVELS.get(str(level).lower(), logging.WARNING),
        format=LOG_FORMAT,
        handlers=[
            logging.StreamHandler()
        ]
    )


def to_int(value: Any) -> Optional[int]:
    """
    Convert a value to an integer.

    Args:
        value: Value to convert

    Returns:
        Integer value, or None if conversion failed
    """
    if value is None:
        return None

    try:
        return int(value)
    except (ValueError, TypeError):
        return None


def to_float(value: Any) -> Optional[float]:
    """
    Convert a value to a float.

    Args:
        value: Value to convert

    Returns:
        Float value, or None if conversion failed
    """
    if value is None:
        return None

    try:
        return float(value)
    except (ValueError, TypeError):
        return None


def to_bool(value: Any) -> Optional[bool]:
    """
    Convert a value to a boolean.

    Args:
        value: Value to convert

    Returns:
        Boolean value, or None if conversion failed
    """
    if value is None:
        return None

    if isinstance(value, bool):
        return value

    if isinstance(value, (int, float)):
        return bool(value)

    if isinstance(value, str):
        value = value.lower().strip()
        if value in ('true', 'yes', 'y', '1', 't'):
            return True
        if value in ('false', 'no', 'n', '0', 'f'):
            return False

    return None


def _env_or(name: str, converter, current: Any) -> Any:
    # Unparseable environment values keep the current setting
    if name not in os.environ:
        return current
    converted = converter(os.environ[name])
    if converted is None:
        logger.warning(f"Ignoring invalid value for {name}: {os.environ[name]!r}")
        return current
    return converted


class Config:
    """
    Configuration for survey analytics.
    """

    def __init__(self, overrides: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration.

        Args:
            overrides: Optional configuration overrides
        """
        self._lock = threading.RLock()
        self._config = {}
        self._initialized = False

        self.load_config(overrides)

    def load_config(self, overrides: Optional[Dict[str, Any]] = None) -> None:
        """
        Load configuration from all sources.

        Args:
            overrides: Optional configuration overrides
        """
        with self._lock:
            config = self._get_defaults()
            config = self._apply_env_vars(config)

            if overrides:
                config = self._apply_overrides(config, overrides)

            config = self._apply_inferred_values(config)

            self._config = config
            self._initialized = True

            logger.info("Configuration loaded")

    def _get_defaults(self) -> Dict[str, Any]:
        return {
            'math-env': 'dev',

            # Clustering analysis
            'analysis': {
                'k': 3,                  # clusters when the survey does not say
                'k-min': 2,              # elbow search range
                'k-max': 8,
                'auto-k': True,          # use the elbow method when k is unset
                'init-method': 'kmeans++',
                'distance': 'cosine',
                'max-iters': 300,
                'tol': 1e-4,
                'seed': 42
            },

            'logging': {
                'level': 'warn'
            }
        }

    def _apply_env_vars(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply environment variables to configuration.

        Args:
            config: Current configuration

        Returns:
            Updated configuration
        """
        config = deepcopy(config)
        analysis = config['analysis']

        if 'MATH_ENV' in os.environ:
            config['math-env'] = os.environ['MATH_ENV']

        analysis['k'] = _env_or('SURVEY_K', to_int, analysis['k'])
        analysis['k-min'] = _env_or('SURVEY_K_MIN', to_int, analysis['k-min'])
        analysis['k-max'] = _env_or('SURVEY_K_MAX', to_int, analysis['k-max'])
        analysis['auto-k'] = _env_or('SURVEY_AUTO_K', to_bool, analysis['auto-k'])
        analysis['init-method'] = os.environ.get('SURVEY_INIT_METHOD', analysis['init-method'])
        analysis['distance'] = os.environ.get('SURVEY_DISTANCE', analysis['distance'])
        analysis['max-iters'] = _env_or('SURVEY_MAX_ITERS', to_int, analysis['max-iters'])
        analysis['tol'] = _env_or('SURVEY_TOL', to_float, analysis['tol'])
        analysis['seed'] = _env_or('SURVEY_SEED', to_int, analysis['seed'])

        config['logging']['level'] = os.environ.get('LOG_LEVEL', config['logging']['level']).lower()

        return config

    def _apply_overrides(self, config: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply configuration overrides.

        Args:
            config: Current configuration
            overrides: Configuration overrides

        Returns:
            Updated configuration
        """
        config = deepcopy(config)

        def deep_update(d, u):
            for k, v in u.items():
                if isinstance(v, dict) and k in d and isinstance(d[k], dict):
                    d[k] = deep_update(d[k], v)
                else:
                    d[k] = v
            return d

        return deep_update(config, deepcopy(overrides))

    def _apply_inferred_values(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply inferred configuration values.

        Args:
            config: Current configuration

        Returns:
            Updated configuration
        """
        config = deepcopy(config)
        analysis = config['analysis']

        config['math-env-string'] = str(config['math-env'])

        # The elbow search needs at least two candidates
        if analysis['k-min'] < 1:
            analysis['k-min'] = 1
        if analysis['k-max'] <= analysis['k-min']:
            analysis['k-max'] = analysis['k-min'] + 1

        return config

    def get(self, path: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            path: Configuration path (dot-separated)
            default: Default value if not found

        Returns:
            Configuration value, or default if not found
        """
        if not self._initialized:
            self.load_config()

        value = self._config
        for component in path.split('.'):
            if isinstance(value, dict) and component in value:
                value = value[component]
            else:
                return default

        return value

    def set(self, path: str, value: Any) -> None:
        """
        Set a configuration value.

        Args:
            path: Configuration path (dot-separated)
            value: Configuration value
        """
        with self._lock:
            if not self._initialized:
                self.load_config()

            components = path.split('.')
            config = self._config
            for component in components[:-1]:
                if component not in config:
                    config[component] = {}
                config = config[component]

            config[components[-1]] = value

    def to_dict(self) -> Dict[str, Any]:
        """Get a copy of the whole configuration."""
        if not self._initialized:
            self.load_config()

        return deepcopy(self._config)

    def save_to_file(self, filepath: str) -> None:
        """
        Save configuration to a JSON or YAML file.

        Args:
            filepath: Path to save configuration
        """
        if not self._initialized:
            self.load_config()

        if filepath.endswith('.json'):
            with open(filepath, 'w') as f:
                json.dump(self._config, f, indent=2)
        elif filepath.endswith('.yaml') or filepath.endswith('.yml'):
            with open(filepath, 'w') as f:
                yaml.dump(self._config, f, default_flow_style=False)
        else:
            raise ValueError(f"Unsupported file format: {filepath}")

    def load_from_file(self, filepath: str) -> None:
        """
        Load overrides from a JSON or YAML file.

        Args:
            filepath: Path to load configuration from
        """
        if filepath.endswith('.json'):
            with open(filepath, 'r') as f:
                overrides = json.load(f)
        elif filepath.endswith('.yaml') or filepath.endswith('.yml'):
            with open(filepath, 'r') as f:
                overrides = yaml.safe_load(f)
        else:
            raise ValueError(f"Unsupported file format: {filepath}")

        self.load_config(overrides)


class ConfigManager:
    """
    Singleton manager for configuration.
    """

    _instance = None
    _lock = threading.RLock()

    @classmethod
    def get_config(cls, overrides: Optional[Dict[str, Any]] = None) -> Config:
        """
        Get the configuration instance.

        Args:
            overrides: Optional configuration overrides

        Returns:
            Config instance
        """
        with cls._lock:
            if cls._instance is None:
                cls._instance = Config(overrides)
            elif overrides:
                cls._instance.load_config(overrides)

            return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the shared instance; the next get_config builds a fresh one."""
        with cls._lock:
            cls._instance = None
