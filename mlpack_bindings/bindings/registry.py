"""
Settings Registry
=================

mlpack's bindings talk to the native side through one process-wide
key/value store (the "settings registry"). Each call follows the same
protocol:

    reset_timers -> enable_timers -> disable_backtrace -> disable_verbose
    -> restore_settings(title) -> set_* / set_passed for every input
    -> set_passed for every output -> call(program) -> get_* for every output
    -> clear_settings

The registry is not reentrant: two calls may never interleave. RegistryLock
serializes callers and turns same-thread re-entry into RegistryBusyError.

Backends:
- CtypesRegistry (native.py): the real protocol over the C shim libraries
- InMemoryRegistry: records the protocol in a trace and runs Python
  handlers in place of native entry points (dry runs and tests)
"""

from __future__ import annotations

import itertools
import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from mlpack_bindings.bindings.marshal import NativeMatrix, from_native, to_native
from mlpack_bindings.bindings.models import ModelHandle, check_handle
from mlpack_bindings.bindings.params import BindingResult, ParamKind, ParamSpec
from mlpack_bindings.core.error_handling import RegistryBusyError

logger = logging.getLogger(__name__)


# =============================================================================
# LOCKING
# =============================================================================


class RegistryLock:
    """Non-reentrant lock that fails fast on same-thread re-entry."""

    def __init__(self):
        self._lock = threading.Lock()
        self._owner: Optional[int] = None
        self._holder: Optional[str] = None

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    @property
    def holder(self) -> Optional[str]:
        """Name of the program currently holding the registry."""
        return self._holder

    def acquire(self, program: str) -> None:
        if self._owner == threading.get_ident():
            raise RegistryBusyError(
                f"Cannot run '{program}' while '{self._holder}' holds the settings "
                f"registry on the same thread"
            )
        self._lock.acquire()
        self._owner = threading.get_ident()
        self._holder = program

    def release(self) -> None:
        self._owner = None
        self._holder = None
        self._lock.release()

    @contextmanager
    def hold(self, program: str) -> Iterator[None]:
        self.acquire(program)
        try:
            yield
        finally:
            self.release()


# =============================================================================
# PROTOCOL
# =============================================================================


class SettingsRegistry(ABC):
    """The call protocol between the binding layer and mlpack."""

    backend: str = "abstract"

    def __init__(self, lock: Optional[RegistryLock] = None):
        self.lock = lock or RegistryLock()

    # --- session control -----------------------------------------------------

    @abstractmethod
    def reset_timers(self) -> None:
        pass

    @abstractmethod
    def enable_timers(self) -> None:
        pass

    @abstractmethod
    def disable_backtrace(self) -> None:
        pass

    @abstractmethod
    def disable_verbose(self) -> None:
        pass

    @abstractmethod
    def enable_verbose(self) -> None:
        pass

    @abstractmethod
    def restore_settings(self, title: str) -> None:
        """Load the parameter table registered under a program title."""
        pass

    @abstractmethod
    def clear_settings(self) -> None:
        """Drop all parameter values; native buffers become invalid."""
        pass

    @abstractmethod
    def set_passed(self, name: str) -> None:
        pass

    @abstractmethod
    def has_param(self, name: str) -> bool:
        pass

    # --- scalars and vectors -------------------------------------------------

    @abstractmethod
    def set_bool(self, name: str, value: bool) -> None:
        pass

    @abstractmethod
    def set_int(self, name: str, value: int) -> None:
        pass

    @abstractmethod
    def set_double(self, name: str, value: float) -> None:
        pass

    @abstractmethod
    def set_string(self, name: str, value: str) -> None:
        pass

    @abstractmethod
    def set_vec_int(self, name: str, values: Sequence[int]) -> None:
        pass

    @abstractmethod
    def set_vec_string(self, name: str, values: Sequence[str]) -> None:
        pass

    @abstractmethod
    def get_bool(self, name: str) -> bool:
        pass

    @abstractmethod
    def get_int(self, name: str) -> int:
        pass

    @abstractmethod
    def get_double(self, name: str) -> float:
        pass

    @abstractmethod
    def get_string(self, name: str) -> str:
        pass

    @abstractmethod
    def get_vec_int(self, name: str) -> List[int]:
        pass

    @abstractmethod
    def get_vec_string(self, name: str) -> List[str]:
        pass

    # --- matrices and models -------------------------------------------------

    @abstractmethod
    def set_matrix(self, name: str, matrix: NativeMatrix) -> None:
        """Hand a marshaled buffer to the registry (no copy)."""
        pass

    @abstractmethod
    def get_matrix(self, name: str, kind: ParamKind) -> Optional[NativeMatrix]:
        """Borrow an output buffer; valid until clear_settings."""
        pass

    @abstractmethod
    def set_model(self, program: str, name: str, handle: ModelHandle) -> None:
        pass

    @abstractmethod
    def get_model(self, program: str, name: str, model_type: str) -> Optional[ModelHandle]:
        pass

    # --- execution -----------------------------------------------------------

    @abstractmethod
    def call(self, program: str) -> None:
        """Invoke the native entry point of a program."""
        pass

    def version(self) -> Optional[str]:
        return None


# =============================================================================
# CALL SESSION
# =============================================================================


class CallSession:
    """
    One pass through the registry protocol for a single program.

    The session pins every marshaled buffer and model handle it hands to the
    registry until ``close()`` has cleared the settings.
    """

    def __init__(self, registry: SettingsRegistry, program: str, title: str):
        self.registry = registry
        self.program = program
        self.title = title
        self._pins: List[Any] = []
        self._closed = False

    @property
    def pinned(self) -> Tuple[Any, ...]:
        return tuple(self._pins)

    def pin(self, obj: Any) -> None:
        self._pins.append(obj)

    def begin(self, enable_timers: bool = True) -> None:
        reg = self.registry
        reg.reset_timers()
        if enable_timers:
            reg.enable_timers()
        reg.disable_backtrace()
        reg.disable_verbose()
        reg.restore_settings(self.title)

    def set_input(self, spec: ParamSpec, value: Any) -> None:
        """Send one input value and mark it passed."""
        reg = self.registry
        name = spec.identifier
        kind = spec.kind

        if kind is ParamKind.BOOL:
            reg.set_bool(name, bool(value))
        elif kind is ParamKind.INT:
            reg.set_int(name, int(value))
        elif kind is ParamKind.DOUBLE:
            reg.set_double(name, float(value))
        elif kind is ParamKind.STRING:
            reg.set_string(name, value)
        elif kind is ParamKind.VEC_INT:
            reg.set_vec_int(name, [int(v) for v in value])
        elif kind is ParamKind.VEC_STRING:
            reg.set_vec_string(name, list(value))
        elif kind is ParamKind.MODEL:
            check_handle(value, spec.model_type, reg.backend, self.program, name)
            self.pin(value)
            reg.set_model(self.program, name, value)
        else:
            matrix = to_native(value, kind, name)
            self.pin(matrix)
            reg.set_matrix(name, matrix)

        reg.set_passed(name)
        logger.debug(f"[{self.program}] passed {name} ({kind.value})")

        if name == "verbose" and value:
            reg.enable_verbose()

    def mark_outputs(self, specs: Sequence[ParamSpec]) -> None:
        for spec in specs:
            self.registry.set_passed(spec.identifier)

    def get_output(self, spec: ParamSpec) -> Any:
        """
        Read one output.

        Empty matrices and null models give None. Scalars and vectors come
        back as stored, so an unset one reads as its zero value.
        """
        reg = self.registry
        name = spec.identifier
        kind = spec.kind

        if kind is ParamKind.BOOL:
            return reg.get_bool(name)
        if kind is ParamKind.INT:
            return reg.get_int(name)
        if kind is ParamKind.DOUBLE:
            return reg.get_double(name)
        if kind is ParamKind.STRING:
            return reg.get_string(name)
        if kind is ParamKind.VEC_INT:
            return reg.get_vec_int(name)
        if kind is ParamKind.VEC_STRING:
            return reg.get_vec_string(name)
        if kind is ParamKind.MODEL:
            handle = reg.get_model(self.program, name, spec.model_type)
            if handle is None or handle.is_null:
                return None
            return handle

        native = reg.get_matrix(name, kind)
        if native is None or native.is_empty:
            return None
        return from_native(native, kind)

    def extract(self, result_cls: type) -> BindingResult:
        values = {spec.name: self.get_output(spec) for spec in result_cls.specs()}
        return result_cls(**values)

    def close(self) -> None:
        if self._closed:
            return
        try:
            self.registry.clear_settings()
        finally:
            self._pins.clear()
            self._closed = True


# =============================================================================
# IN-MEMORY BACKEND
# =============================================================================


ProgramHandler = Callable[["InMemoryRegistry"], None]

_ZERO_VALUES: Dict[str, Any] = {
    "bool": False,
    "int": 0,
    "double": 0.0,
    "string": "",
}


class InMemoryRegistry(SettingsRegistry):
    """
    Dry-run backend.

    Every protocol call is appended to ``trace`` as a tuple such as
    ``("set_int", "k", 5)``. ``call(program)`` runs the handler registered
    for the program, if any; a handler reads inputs and writes outputs via
    the same getters and setters the binding layer uses.

    Models live in ``models`` keyed by fake addresses handed out by
    ``store_model``; they survive clear_settings like native models do.
    """

    backend = "dry_run"

    def __init__(
        self,
        handlers: Optional[Dict[str, ProgramHandler]] = None,
        lock: Optional[RegistryLock] = None,
    ):
        super().__init__(lock)
        self.handlers: Dict[str, ProgramHandler] = dict(handlers or {})
        self.trace: List[Tuple[Any, ...]] = []
        self.params: Dict[str, Any] = {}
        self.passed: List[str] = []
        self.models: Dict[int, Any] = {}
        self.title: Optional[str] = None
        self.timers_enabled = False
        self.verbose = False
        self.calls = 0
        self._addresses = itertools.count(0x1000, 0x10)

    def _record(self, *entry: Any) -> None:
        self.trace.append(entry)

    def register_handler(self, program: str, handler: ProgramHandler) -> None:
        self.handlers[program] = handler

    def store_model(self, model_type: str, payload: Any = None) -> ModelHandle:
        """Allocate a fake native model and return its handle."""
        address = next(self._addresses)
        self.models[address] = payload
        return ModelHandle(model_type, address, self.backend)

    def model_payload(self, handle: ModelHandle) -> Any:
        return self.models.get(handle.address)

    def ops(self) -> List[str]:
        """Names of the recorded protocol calls, in order."""
        return [entry[0] for entry in self.trace]

    # --- session control -----------------------------------------------------

    def reset_timers(self) -> None:
        self._record("reset_timers")

    def enable_timers(self) -> None:
        self._record("enable_timers")
        self.timers_enabled = True

    def disable_backtrace(self) -> None:
        self._record("disable_backtrace")

    def disable_verbose(self) -> None:
        self._record("disable_verbose")
        self.verbose = False

    def enable_verbose(self) -> None:
        self._record("enable_verbose")
        self.verbose = True

    def restore_settings(self, title: str) -> None:
        self._record("restore_settings", title)
        self.title = title

    def clear_settings(self) -> None:
        self._record("clear_settings")
        self.params.clear()
        self.passed.clear()
        self.title = None

    def set_passed(self, name: str) -> None:
        self._record("set_passed", name)
        self.passed.append(name)

    def has_param(self, name: str) -> bool:
        return name in self.params

    # --- scalars and vectors -------------------------------------------------

    def _set(self, op: str, name: str, value: Any) -> None:
        self._record(op, name, value)
        self.params[name] = value

    def set_bool(self, name: str, value: bool) -> None:
        self._set("set_bool", name, bool(value))

    def set_int(self, name: str, value: int) -> None:
        self._set("set_int", name, int(value))

    def set_double(self, name: str, value: float) -> None:
        self._set("set_double", name, float(value))

    def set_string(self, name: str, value: str) -> None:
        self._set("set_string", name, str(value))

    def set_vec_int(self, name: str, values: Sequence[int]) -> None:
        self._set("set_vec_int", name, [int(v) for v in values])

    def set_vec_string(self, name: str, values: Sequence[str]) -> None:
        self._set("set_vec_string", name, [str(v) for v in values])

    def _get(self, name: str, zero: Any) -> Any:
        return self.params.get(name, zero)

    def get_bool(self, name: str) -> bool:
        return bool(self._get(name, _ZERO_VALUES["bool"]))

    def get_int(self, name: str) -> int:
        return int(self._get(name, _ZERO_VALUES["int"]))

    def get_double(self, name: str) -> float:
        return float(self._get(name, _ZERO_VALUES["double"]))

    def get_string(self, name: str) -> str:
        return str(self._get(name, _ZERO_VALUES["string"]))

    def get_vec_int(self, name: str) -> List[int]:
        return list(self._get(name, []))

    def get_vec_string(self, name: str) -> List[str]:
        return list(self._get(name, []))

    # --- matrices and models -------------------------------------------------

    def set_matrix(self, name: str, matrix: NativeMatrix) -> None:
        self._record("set_matrix", name, matrix.kind.value, matrix.n_rows, matrix.n_cols)
        self.params[name] = matrix

    def get_matrix(self, name: str, kind: ParamKind) -> Optional[NativeMatrix]:
        value = self.params.get(name)
        if value is None:
            return None
        if not isinstance(value, NativeMatrix):
            raise TypeError(f"registry entry '{name}' is not a matrix")
        return value

    def set_output_array(self, name: str, array: Any, kind: ParamKind) -> None:
        """Handler helper: store a numpy array as an output matrix."""
        self.params[name] = to_native(
            np.array(array, dtype=np.float64), kind, name, check_values=False
        )

    def input_array(self, name: str) -> Optional[np.ndarray]:
        """Handler helper: read an input matrix back as a numpy array."""
        native = self.get_matrix(name, ParamKind.MATRIX)
        return None if native is None else from_native(native)

    def set_model(self, program: str, name: str, handle: ModelHandle) -> None:
        self._record("set_model", name, handle.model_type)
        self.params[name] = handle

    def get_model(self, program: str, name: str, model_type: str) -> Optional[ModelHandle]:
        value = self.params.get(name)
        if value is None:
            return None
        if not isinstance(value, ModelHandle) or value.model_type != model_type:
            raise TypeError(f"registry entry '{name}' is not a {model_type}")
        return value

    # --- execution -----------------------------------------------------------

    def call(self, program: str) -> None:
        self._record("call", program)
        self.calls += 1
        handler = self.handlers.get(program)
        if handler is None:
            logger.debug(f"[dry_run] no handler for '{program}', outputs stay empty")
            return
        handler(self)

    def version(self) -> Optional[str]:
        return "dry-run"
