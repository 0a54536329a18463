"""
Binding Programs
================

A BindingProgram ties one mlpack command-line program to its options and
result dataclasses and runs it through the settings-registry protocol.

    from mlpack_bindings.methods import KNN
    result = KNN.run(reference=X, k=5)
    await KNN.run_async(reference=X, k=5)

Programs register themselves in a process-wide catalog when their method
module is imported; ``get_program`` / ``list_programs`` import all method
modules on first use.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Type

from mlpack_bindings.bindings.params import BindingOptions, BindingResult, ParamSpec
from mlpack_bindings.core.error_handling import ParameterError

if TYPE_CHECKING:
    from mlpack_bindings.bindings.bridge import MLPackBridge

logger = logging.getLogger(__name__)


# =============================================================================
# METRICS
# =============================================================================


@dataclass
class BindingMetrics:
    """Metrics for binding calls."""
    total_calls: int = 0
    total_time_ms: float = 0.0
    native_calls: int = 0
    dry_run_calls: int = 0
    errors: int = 0
    last_call_time_ms: float = 0.0
    calls_by_program: Dict[str, int] = field(default_factory=dict)
    errors_by_program: Dict[str, int] = field(default_factory=dict)

    def record_call(self, program: str, duration_ms: float, is_native: bool) -> None:
        """Record a call."""
        self.total_calls += 1
        self.total_time_ms += duration_ms
        self.last_call_time_ms = duration_ms
        self.calls_by_program[program] = self.calls_by_program.get(program, 0) + 1
        if is_native:
            self.native_calls += 1
        else:
            self.dry_run_calls += 1

    def record_error(self, program: str) -> None:
        """Record an error."""
        self.errors += 1
        self.errors_by_program[program] = self.errors_by_program.get(program, 0) + 1

    @property
    def avg_time_ms(self) -> float:
        """Average call time."""
        return self.total_time_ms / max(1, self.total_calls)

    @property
    def native_ratio(self) -> float:
        """Ratio of native calls."""
        return self.native_calls / max(1, self.total_calls)


# =============================================================================
# PROGRAM
# =============================================================================


class BindingProgram:
    """One exported mlpack operation."""

    def __init__(
        self,
        name: str,
        title: str,
        options_cls: Type[BindingOptions],
        result_cls: Type[BindingResult],
        family: str,
        summary: str = "",
        native_name: Optional[str] = None,
    ):
        self.name = name
        self.native_name = native_name or name
        self.title = title
        self.options_cls = options_cls
        self.result_cls = result_cls
        self.family = family
        self.summary = summary

    def __repr__(self) -> str:
        return f"BindingProgram({self.name!r}, family={self.family!r})"

    @property
    def params(self) -> List[ParamSpec]:
        return self.options_cls.specs()

    @property
    def outputs(self) -> List[ParamSpec]:
        return self.result_cls.specs()

    @property
    def required(self) -> List[ParamSpec]:
        return [spec for spec in self.params if spec.required]

    def options(self, **overrides: Any) -> BindingOptions:
        """Defaults record, optionally with some fields replaced."""
        return self._merge(self.options_cls(), overrides)

    def _merge(self, options: BindingOptions, overrides: Dict[str, Any]) -> BindingOptions:
        if not isinstance(options, self.options_cls):
            raise ParameterError(
                f"expected {self.options_cls.__name__}, got {type(options).__name__}", self.name
            )
        if not overrides:
            return options

        changes = {}
        for key, value in overrides.items():
            field_name = self.options_cls.resolve_name(key)
            if field_name is None:
                raise ParameterError("unknown parameter", self.name, key)
            changes[field_name] = value
        return dataclasses.replace(options, **changes)

    def validate(self, options: BindingOptions) -> None:
        """
        Check every field of ``options`` before touching the registry.

        Raises:
            ParameterError: missing required value or wrong type.
            ModelHandleError: wrong model type or null handle.
        """
        for spec in self.params:
            spec.validate(getattr(options, spec.name), self.name)

    def run(
        self,
        options: Optional[BindingOptions] = None,
        *,
        bridge: Optional["MLPackBridge"] = None,
        **overrides: Any,
    ) -> BindingResult:
        """Run the program synchronously and return its result record."""
        from mlpack_bindings.bindings.bridge import get_bridge

        opts = self._merge(options if options is not None else self.options_cls(), overrides)
        return (bridge or get_bridge()).execute(self, opts)

    async def run_async(
        self,
        options: Optional[BindingOptions] = None,
        *,
        bridge: Optional["MLPackBridge"] = None,
        **overrides: Any,
    ) -> BindingResult:
        """Run the program in a worker thread; calls are still serialized."""
        return await asyncio.to_thread(self.run, options, bridge=bridge, **overrides)


# =============================================================================
# CATALOG
# =============================================================================


_catalog: Dict[str, BindingProgram] = {}
_catalog_lock = threading.Lock()


def register_program(program: BindingProgram) -> BindingProgram:
    with _catalog_lock:
        existing = _catalog.get(program.name)
        if existing is not None and existing is not program:
            raise ValueError(f"Program '{program.name}' is already registered")
        _catalog[program.name] = program
    return program


def define_program(
    name: str,
    title: str,
    options_cls: Type[BindingOptions],
    result_cls: Type[BindingResult],
    family: str,
    summary: str = "",
    native_name: Optional[str] = None,
) -> BindingProgram:
    """Create and register a program."""
    return register_program(
        BindingProgram(name, title, options_cls, result_cls, family, summary, native_name)
    )


def _load_methods() -> None:
    import mlpack_bindings.methods  # noqa: F401


def get_program(name: str) -> BindingProgram:
    """
    Look up a program by name.

    Raises:
        KeyError: if no such program exists.
    """
    _load_methods()
    try:
        return _catalog[name]
    except KeyError:
        raise KeyError(f"Unknown mlpack program: {name}") from None


def list_programs(family: Optional[str] = None) -> List[BindingProgram]:
    """All programs sorted by name, optionally filtered by family."""
    _load_methods()
    programs = sorted(_catalog.values(), key=lambda p: p.name)
    if family is not None:
        programs = [p for p in programs if p.family == family]
    return programs


def list_families() -> List[str]:
    _load_methods()
    return sorted({p.family for p in _catalog.values()})
