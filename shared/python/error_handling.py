"""Error handling utilities and decorators for the estimation engine.

Provides standardized error handling patterns and utilities.
"""

import functools
import logging
from typing import Any, Callable

try:
    from .exceptions import ConfigError, EstimationEngineError
except ImportError:
    from exceptions import ConfigError, EstimationEngineError

logger = logging.getLogger(__name__)


def handle_config_errors(func: Callable) -> Callable:
    """Decorator to handle configuration errors consistently.

    Our own errors pass through; anything else raised while loading
    configuration is logged and wrapped in ConfigError.

    Args:
        func: Function to decorate

    Returns:
        Decorated function
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except EstimationEngineError:
            raise
        except Exception as e:
            logger.error(f"Configuration error in {func.__name__}: {str(e)}")
            raise ConfigError(f"Configuration error: {str(e)}") from e

    return wrapper


class ErrorHandler:
    """Utility class for consistent error handling."""

    @staticmethod
    def log_and_raise(error_class: type[EstimationEngineError], message: str, details: Any = None) -> None:
        """Log an error and raise the specified exception.

        Args:
            error_class: Exception class to raise
            message: Error message
            details: Additional error details
        """
        logger.error(message)
        raise error_class(message, details)

    @staticmethod
    def raise_if_errors(
        error_class: type[EstimationEngineError], summary: str, errors: list[str]
    ) -> None:
        """Raise error_class with every message when the list is non-empty.

        Args:
            error_class: Exception class to raise
            summary: Leading sentence of the message
            errors: Collected validation messages
        """
        if not errors:
            return
        message = summary + "\n" + "\n".join(f"  - {error}" for error in errors)
        ErrorHandler.log_and_raise(error_class, message, errors)
