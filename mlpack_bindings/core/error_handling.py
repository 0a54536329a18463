"""
Error Handling for the mlpack Bindings
======================================

Provides:
- A single exception hierarchy for everything raised by the binding layer
- Error classification (category, severity, retryability)
- Retry with exponential backoff for network-bound helpers (dataset downloads)

Errors raised inside a native call are always re-raised as NativeCallError
with the program name attached, after the settings registry has been cleared.
"""

from __future__ import annotations

import functools
import logging
import random
import time
import traceback
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional, Set, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


# =============================================================================
# EXCEPTIONS
# =============================================================================


class MLPackBindingError(Exception):
    """Base class for all binding-layer errors."""
    pass


class LibraryNotFoundError(MLPackBindingError):
    """Raised when a native shim library cannot be located or loaded."""

    def __init__(self, library: str, searched: Optional[list] = None):
        self.library = library
        self.searched = list(searched or [])
        message = f"Native library '{library}' could not be loaded"
        if self.searched:
            message += f" (searched: {', '.join(str(p) for p in self.searched)})"
        super().__init__(message)


class SymbolNotFoundError(MLPackBindingError):
    """Raised when a loaded library does not export an expected symbol."""

    def __init__(self, library: str, symbol: str):
        self.library = library
        self.symbol = symbol
        super().__init__(f"Symbol '{symbol}' not found in native library '{library}'")


class ParameterError(MLPackBindingError, ValueError):
    """Raised when a parameter value cannot be passed to the native side."""

    def __init__(self, message: str, program: Optional[str] = None, param: Optional[str] = None):
        self.program = program
        self.param = param
        prefix = ""
        if program and param:
            prefix = f"{program}: parameter '{param}': "
        elif program:
            prefix = f"{program}: "
        elif param:
            prefix = f"parameter '{param}': "
        super().__init__(prefix + message)


class ModelHandleError(ParameterError):
    """Raised when a model handle is null, of the wrong type, or from another backend."""
    pass


class RegistryBusyError(MLPackBindingError):
    """Raised when the settings registry is re-entered from the thread holding it."""
    pass


class NativeCallError(MLPackBindingError):
    """Raised when the native entry point of a program fails."""

    def __init__(self, program: str, cause: BaseException):
        self.program = program
        self.cause = cause
        super().__init__(f"Native call for '{program}' failed: {cause}")


class DownloadError(MLPackBindingError):
    """Raised when a dataset download fails after all retries."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Download of {url} failed: {reason}")


# =============================================================================
# ERROR CLASSIFICATION
# =============================================================================

# Rate limiting and server-side failures
_RETRYABLE_HTTP_STATUS = frozenset({429, 500, 502, 503, 504})


class ErrorSeverity(Enum):
    """Error severity levels."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories for routing."""
    TRANSIENT = "transient"      # Retry-able errors
    PERMANENT = "permanent"       # Non-retry-able errors
    NETWORK = "network"           # Network-related
    VALIDATION = "validation"     # Input validation
    CONFIGURATION = "configuration"  # Config errors / missing libraries
    NATIVE = "native"             # Failures inside the wrapped library
    INTERNAL = "internal"         # Internal logic errors


@dataclass
class ClassifiedError:
    """Error with classification metadata."""
    exception: BaseException
    category: ErrorCategory
    severity: ErrorSeverity
    is_retryable: bool
    context: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)
    traceback_str: str = ""

    @classmethod
    def from_exception(
        cls,
        exception: BaseException,
        context: Optional[Dict[str, Any]] = None,
    ) -> "ClassifiedError":
        """Classify an exception."""
        category, severity, retryable = cls._classify(exception)

        return cls(
            exception=exception,
            category=category,
            severity=severity,
            is_retryable=retryable,
            context=context or {},
            traceback_str=traceback.format_exc(),
        )

    @staticmethod
    def _classify(exception: BaseException) -> Tuple[ErrorCategory, ErrorSeverity, bool]:
        """Classify exception into category, severity, and retryability."""
        if isinstance(exception, ParameterError):
            return ErrorCategory.VALIDATION, ErrorSeverity.WARNING, False

        if isinstance(exception, (LibraryNotFoundError, SymbolNotFoundError)):
            return ErrorCategory.CONFIGURATION, ErrorSeverity.ERROR, False

        if isinstance(exception, NativeCallError):
            return ErrorCategory.NATIVE, ErrorSeverity.ERROR, False

        if isinstance(exception, RegistryBusyError):
            return ErrorCategory.PERMANENT, ErrorSeverity.ERROR, False

        # HTTP errors carrying a response (requests.HTTPError)
        status = getattr(getattr(exception, "response", None), "status_code", None)
        if isinstance(status, int):
            if status in _RETRYABLE_HTTP_STATUS:
                return ErrorCategory.TRANSIENT, ErrorSeverity.WARNING, True
            return ErrorCategory.PERMANENT, ErrorSeverity.ERROR, False

        exc_type = type(exception).__name__.lower()
        exc_msg = str(exception).lower()

        # Network errors - usually transient
        if any(net in exc_type for net in ["connection", "timeout", "network", "socket"]):
            return ErrorCategory.NETWORK, ErrorSeverity.WARNING, True

        if "timeout" in exc_msg or "timed out" in exc_msg:
            return ErrorCategory.NETWORK, ErrorSeverity.WARNING, True

        if any(val in exc_type for val in ["validation", "value", "type", "attribute"]):
            return ErrorCategory.VALIDATION, ErrorSeverity.WARNING, False

        return ErrorCategory.INTERNAL, ErrorSeverity.ERROR, False


# =============================================================================
# RETRY WITH BACKOFF
# =============================================================================


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    exponential_base: float = 2.0
    jitter: float = 0.1
    retry_on: Set[ErrorCategory] = field(
        default_factory=lambda: {
            ErrorCategory.TRANSIENT,
            ErrorCategory.NETWORK,
        }
    )


class RetryHandler:
    """
    Retry handler with exponential backoff.

    Only errors whose category is listed in ``retry_on`` and which classify
    as retryable are retried; everything else propagates immediately.
    """

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        on_retry: Optional[Callable[[int, BaseException], None]] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self.config = config or RetryConfig()
        self.on_retry = on_retry
        self._sleep = sleep or time.sleep

    def delay_for(self, attempt: int) -> float:
        """Backoff delay (seconds) before retry number ``attempt + 1``."""
        delay = min(
            self.config.base_delay * (self.config.exponential_base ** attempt),
            self.config.max_delay,
        )
        return delay + delay * self.config.jitter * random.random()

    def execute(self, func: Callable[..., T], *args, **kwargs) -> T:
        """
        Execute function with retry logic.

        Raises:
            Exception: the last error once retries are exhausted, or the
                first non-retryable error.
        """
        for attempt in range(self.config.max_retries + 1):
            try:
                return func(*args, **kwargs)

            except Exception as e:
                classified = ClassifiedError.from_exception(e)

                if not classified.is_retryable:
                    raise

                if classified.category not in self.config.retry_on:
                    raise

                if attempt >= self.config.max_retries:
                    raise

                delay = self.delay_for(attempt)

                logger.warning(
                    f"Retry {attempt + 1}/{self.config.max_retries} "
                    f"after {delay:.2f}s: {e}"
                )

                if self.on_retry:
                    self.on_retry(attempt + 1, e)

                self._sleep(delay)

        raise RuntimeError("unreachable")  # pragma: no cover


def with_retry(
    max_retries: int = 3,
    base_delay: float = 1.0,
    retry_on: Optional[Set[ErrorCategory]] = None,
):
    """
    Decorator for retry with backoff.

    Usage:
        @with_retry(max_retries=3, base_delay=1.0)
        def fetch():
            ...
    """
    config = RetryConfig(
        max_retries=max_retries,
        base_delay=base_delay,
        retry_on=retry_on or {ErrorCategory.TRANSIENT, ErrorCategory.NETWORK},
    )
    handler = RetryHandler(config)

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> T:
            return handler.execute(func, *args, **kwargs)
        return wrapper

    return decorator
