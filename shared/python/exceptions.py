"""Exception hierarchy for the Presales Estimation Engine.

Provides categorized exceptions for configuration and input problems.
"""

from typing import Any


class EstimationEngineError(Exception):
    """Base exception for all estimation engine errors."""

    def __init__(self, message: str, details: Any = None):
        """Initialize exception.

        Args:
            message: Error message
            details: Additional error details
        """
        super().__init__(message)
        self.details = details


class ConfigError(EstimationEngineError):
    """Configuration-related errors."""
    pass


class ValidationError(EstimationEngineError):
    """Assessment data validation errors."""
    pass


class CLIError(EstimationEngineError):
    """Command-line interface errors."""
    pass
