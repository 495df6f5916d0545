"""
Utility modules for KafePano.
"""

from .errors import (
    AuthError,
    ConfigurationError,
    KafePanoError,
    Result,
    StoreError,
    UploadError,
    error_boundary,
    safe_execute,
)

__all__ = [
    "KafePanoError",
    "StoreError",
    "ConfigurationError",
    "UploadError",
    "AuthError",
    "Result",
    "error_boundary",
    "safe_execute",
]
