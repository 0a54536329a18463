"""
Core utilities for the mlpack bindings: the error hierarchy and retry policy.
"""

from __future__ import annotations

from mlpack_bindings.core.error_handling import (
    ClassifiedError,
    DownloadError,
    ErrorCategory,
    ErrorSeverity,
    LibraryNotFoundError,
    MLPackBindingError,
    ModelHandleError,
    NativeCallError,
    ParameterError,
    RegistryBusyError,
    RetryConfig,
    RetryHandler,
    SymbolNotFoundError,
    with_retry,
)

__all__ = [
    # Exceptions
    "MLPackBindingError",
    "LibraryNotFoundError",
    "SymbolNotFoundError",
    "ParameterError",
    "ModelHandleError",
    "RegistryBusyError",
    "NativeCallError",
    "DownloadError",
    # Classification
    "ErrorCategory",
    "ErrorSeverity",
    "ClassifiedError",
    # Retry
    "RetryConfig",
    "RetryHandler",
    "with_retry",
]
