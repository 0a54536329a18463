"""
MLPack Bridge
=============

Owns the backend selection, the registry lock and the call metrics, and
executes BindingPrograms through the settings-registry protocol.

Backend selection (``config.backend``):
- "native":  the ctypes backend; a missing utility library is an error
- "dry_run": the in-memory registry, no native code is touched
- "auto":    native when the utility library loads, otherwise dry_run

Usage:
    bridge = get_bridge()
    result = bridge.execute(program, program.options(reference=X, k=3))
    print(bridge.get_metrics())
"""

from __future__ import annotations

import logging
import threading
import time
from enum import Enum
from typing import Any, Dict, Optional

from mlpack_bindings.bindings.params import BindingOptions, BindingResult
from mlpack_bindings.bindings.program import BindingMetrics, BindingProgram
from mlpack_bindings.bindings.registry import CallSession, InMemoryRegistry, SettingsRegistry
from mlpack_bindings.config import BindingsConfig, get_config
from mlpack_bindings.core.error_handling import (
    LibraryNotFoundError,
    MLPackBindingError,
    NativeCallError,
)

logger = logging.getLogger(__name__)


class BackendType(Enum):
    """Available registry backends."""
    NATIVE = "native"
    DRY_RUN = "dry_run"
    AUTO = "auto"


def detect_registry(config: BindingsConfig) -> SettingsRegistry:
    """Build the registry backend requested by ``config.backend``."""
    backend = BackendType(config.backend)

    if backend == BackendType.DRY_RUN:
        logger.info("Using dry-run settings registry")
        return InMemoryRegistry()

    from mlpack_bindings.bindings.native import CtypesRegistry

    if backend == BackendType.NATIVE:
        return CtypesRegistry(config)

    try:
        return CtypesRegistry(config)
    except LibraryNotFoundError as e:
        logger.warning(f"Native mlpack bindings unavailable, falling back to dry run: {e}")
        return InMemoryRegistry()


class MLPackBridge:
    """
    Executes binding programs against one settings registry.

    Usage:
        bridge = MLPackBridge(registry=InMemoryRegistry())
        result = KMEANS.run(bridge=bridge, clusters=3, input=X)
    """

    def __init__(
        self,
        config: Optional[BindingsConfig] = None,
        registry: Optional[SettingsRegistry] = None,
    ):
        self.config = config or get_config()
        self.registry = registry if registry is not None else detect_registry(self.config)
        self.metrics = BindingMetrics()

        logger.info(f"MLPackBridge initialized (backend: {self.backend})")

    @property
    def backend(self) -> str:
        return self.registry.backend

    @property
    def is_native(self) -> bool:
        return self.backend == BackendType.NATIVE.value

    @property
    def lock(self):
        return self.registry.lock

    def version(self) -> Optional[str]:
        """Native mlpack version, when the backend reports one."""
        return self.registry.version()

    def execute(self, program: BindingProgram, options: BindingOptions) -> BindingResult:
        """
        Run one program through the registry protocol.

        Raises:
            ParameterError: invalid options (nothing is sent to the registry).
            RegistryBusyError: re-entry from the thread holding the registry.
            NativeCallError: the native entry point failed.
        """
        program.validate(options)

        start = time.perf_counter()
        try:
            with self.registry.lock.hold(program.name):
                result = self._run_locked(program, options)
        except Exception:
            self.metrics.record_error(program.name)
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        self.metrics.record_call(program.name, duration_ms, self.is_native)
        logger.debug(f"[{program.name}] finished in {duration_ms:.2f}ms")
        return result

    def _run_locked(self, program: BindingProgram, options: BindingOptions) -> BindingResult:
        session = CallSession(self.registry, program.native_name, program.title)
        try:
            session.begin(enable_timers=self.config.enable_timers)

            for spec in program.params:
                value = getattr(options, spec.name)
                if spec.should_pass(value):
                    session.set_input(spec, value)

            session.mark_outputs(program.outputs)

            logger.debug(f"[{program.name}] calling native entry point")
            try:
                self.registry.call(program.native_name)
            except MLPackBindingError:
                raise
            except Exception as e:
                raise NativeCallError(program.name, e) from e

            return session.extract(program.result_cls)
        finally:
            session.close()

    def get_metrics(self) -> Dict[str, Any]:
        """Call metrics for this bridge."""
        return {
            "total_calls": self.metrics.total_calls,
            "total_time_ms": self.metrics.total_time_ms,
            "avg_time_ms": self.metrics.avg_time_ms,
            "native_ratio": self.metrics.native_ratio,
            "errors": self.metrics.errors,
            "calls_by_program": dict(self.metrics.calls_by_program),
            "backend": self.backend,
        }


# =============================================================================
# MODULE-LEVEL CONVENIENCE FUNCTIONS
# =============================================================================


_bridge: Optional[MLPackBridge] = None
_bridge_lock = threading.Lock()


def get_bridge() -> MLPackBridge:
    """Get the process-wide MLPackBridge, creating it on first use."""
    global _bridge

    if _bridge is None:
        with _bridge_lock:
            if _bridge is None:
                _bridge = MLPackBridge()
    return _bridge


def set_bridge(bridge: MLPackBridge) -> None:
    """Replace the process-wide bridge."""
    global _bridge

    with _bridge_lock:
        _bridge = bridge


def reset_bridge() -> None:
    """Forget the process-wide bridge (next get_bridge() re-detects)."""
    global _bridge

    with _bridge_lock:
        _bridge = None


def has_native_backend() -> bool:
    """Check if the native mlpack libraries are in use."""
    return get_bridge().is_native
