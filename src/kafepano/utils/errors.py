"""
Error handling utilities and result types for KafePano.

Store-facing calls never raise into the display loop: mutations return a
Result, reads collapse to a default value, and timer/subscription callbacks
run inside an error boundary.
"""

import logging
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

# Type variable for generic function decoration
F = TypeVar("F", bound=Callable[..., Any])


@dataclass
class Result:
    """
    Outcome of a store-facing operation.

    Attributes:
        success: True if the operation completed
        id: Generated key for add operations
        value: Payload for read operations
        error: Human-readable failure message
    """

    success: bool
    id: Optional[str] = None
    value: Any = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, value: Any = None, id: Optional[str] = None) -> "Result":
        return cls(success=True, id=id, value=value)

    @classmethod
    def fail(cls, error: Any) -> "Result":
        return cls(success=False, error=str(error))

    def __bool__(self) -> bool:
        return self.success


def error_boundary(
    *,
    reraise: bool = False,
    default_return: Any = None,
    log_level: int = logging.ERROR,
) -> Callable[[F], F]:
    """
    Decorator to create consistent error boundaries around functions.

    Args:
        reraise: If True, re-raise the exception after logging
        default_return: Value to return if error occurs and not reraising
        log_level: Logging level for the error (default: ERROR)

    Returns:
        Decorated function with error handling

    Example:
        >>> @error_boundary(default_return=False)
        ... def tick():
        ...     slideshow.next_slide()
        ...     return True
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                logger.log(
                    log_level,
                    f"Error in {func.__name__}: {e}",
                    exc_info=True,
                    extra={"function": func.__name__, "module": func.__module__},
                )

                if reraise:
                    raise

                return default_return

        return wrapper  # type: ignore

    return decorator


def safe_execute(
    func: Callable[[], Any],
    *,
    on_error: Optional[Callable[[Exception], Any]] = None,
    default: Any = None,
) -> Any:
    """
    Safely execute a function with error handling.

    Useful for one-off operations where a decorator isn't appropriate.

    Args:
        func: Function to execute
        on_error: Optional callback to call if error occurs (receives exception)
        default: Default value to return on error

    Returns:
        Function result, or default value on error
    """
    try:
        return func()
    except Exception as e:
        logger.error(f"Error in safe_execute: {e}", exc_info=True)
        if on_error:
            on_error(e)
        return default


class KafePanoError(Exception):
    """Base exception for all KafePano-specific errors."""

    pass


class StoreError(KafePanoError):
    """Raised by content store adapters when a read or write fails."""

    pass


class ConfigurationError(KafePanoError):
    """Raised when there's an issue with configuration."""

    pass


class UploadError(KafePanoError):
    """Raised when an asset upload is rejected or fails."""

    pass


class AuthError(KafePanoError):
    """Raised when sign-in against the identity service fails."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
