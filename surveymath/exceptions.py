"""
Exceptions raised by the surveymath analytics core.

All errors are raised synchronously at the call that violates a
precondition. They subclass the matching built-in so callers can also catch
``ValueError``, ``TypeError`` or ``RuntimeError``.
"""


class AnalysisError(Exception):
    """Base class for surveymath errors."""


class InvalidArgumentError(AnalysisError, ValueError):
    """An argument is outside the range an operation accepts."""


class NullArgumentError(AnalysisError, TypeError):
    """A required collaborator was not supplied."""


class NotFittedError(AnalysisError, RuntimeError):
    """A fitted-state operation was called before ``fit``."""


def require_not_none(value, name: str):
    """
    Return ``value`` unchanged, raising if it is None.

    Args:
        value: Value to check
        name: Argument name used in the error message

    Returns:
        The value itself
    """
    if value is None:
        raise NullArgumentError(f"{name} cannot be None")
    return value
