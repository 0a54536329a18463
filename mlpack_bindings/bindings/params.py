"""
Parameter Declarations
======================

Every exported operation is described by two dataclasses:

- an *options* record (subclass of BindingOptions) whose fields are declared
  with ``param()`` and carry the documented mlpack default, and
- a *result* record (subclass of BindingResult) whose fields are declared
  with ``output()`` and default to None.

The field metadata is turned into ParamSpec objects, which know how a value
travels into the settings registry (which typed setter, which native name,
whether it is passed at all).

Example:
    @dataclass
    class KmeansOptions(BindingOptions):
        clusters: Optional[int] = param(ParamKind.INT, required=True)
        max_iterations: int = param(ParamKind.INT, 1000)
"""

from __future__ import annotations

import dataclasses
import functools
import numbers
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type

import numpy as np

from mlpack_bindings.core.error_handling import ParameterError

_METADATA_KEY = "mlpack"
COPY_ALL_INPUTS = "copy_all_inputs"


# =============================================================================
# PARAMETER KINDS
# =============================================================================


class ParamKind(Enum):
    """Wire types understood by the settings registry."""
    BOOL = "bool"
    INT = "int"
    DOUBLE = "double"
    STRING = "string"
    VEC_INT = "vector<int>"
    VEC_STRING = "vector<string>"
    MATRIX = "matrix"
    UMATRIX = "umatrix"
    ROW = "row"
    UROW = "urow"
    COL = "col"
    UCOL = "ucol"
    MATRIX_WITH_INFO = "matrix_with_info"
    MODEL = "model"

    @property
    def is_scalar(self) -> bool:
        return self in _SCALAR_KINDS

    @property
    def is_vector(self) -> bool:
        return self in (ParamKind.VEC_INT, ParamKind.VEC_STRING)

    @property
    def is_matrix(self) -> bool:
        return self in _MATRIX_KINDS

    @property
    def is_unsigned(self) -> bool:
        return self in (ParamKind.UMATRIX, ParamKind.UROW, ParamKind.UCOL)

    @property
    def is_two_dimensional(self) -> bool:
        return self in (ParamKind.MATRIX, ParamKind.UMATRIX, ParamKind.MATRIX_WITH_INFO)


_SCALAR_KINDS = frozenset({ParamKind.BOOL, ParamKind.INT, ParamKind.DOUBLE, ParamKind.STRING})
_MATRIX_KINDS = frozenset({
    ParamKind.MATRIX,
    ParamKind.UMATRIX,
    ParamKind.ROW,
    ParamKind.UROW,
    ParamKind.COL,
    ParamKind.UCOL,
    ParamKind.MATRIX_WITH_INFO,
})


# =============================================================================
# DATA WITH DATASET INFO
# =============================================================================


@dataclass
class DataWithInfo:
    """
    A matrix paired with per-dimension categorical flags.

    ``data`` has one point per row; ``categorical[i]`` tells whether column
    ``i`` holds category indices rather than numeric values.
    """
    data: Any
    categorical: Optional[Sequence[bool]] = None

    def __post_init__(self) -> None:
        self.data = np.asarray(self.data, dtype=np.float64)
        if self.data.ndim != 2:
            raise ParameterError(
                f"DataWithInfo expects a 2-D array, got {self.data.ndim}-D"
            )
        n_dims = self.data.shape[1]
        if self.categorical is None:
            self.categorical = np.zeros(n_dims, dtype=bool)
        else:
            self.categorical = np.asarray(self.categorical, dtype=bool).ravel()
        if self.categorical.shape[0] != n_dims:
            raise ParameterError(
                f"DataWithInfo has {n_dims} dimensions but "
                f"{self.categorical.shape[0]} categorical flags"
            )


# =============================================================================
# PARAMETER SPEC
# =============================================================================


@dataclass(frozen=True)
class ParamSpec:
    """Resolved description of one input or output field."""
    name: str
    identifier: str
    kind: ParamKind
    default: Any = None
    doc: str = ""
    required: bool = False
    model_type: Optional[str] = None
    is_output: bool = False

    def should_pass(self, value: Any) -> bool:
        """
        Whether ``value`` is handed to the registry.

        Required parameters always are; matrices, vectors and models are
        passed when not None; scalars only when they differ from the default.
        """
        if self.required:
            return True
        if not self.kind.is_scalar:
            return value is not None
        return value != self.default

    def validate(self, value: Any, program: Optional[str] = None) -> None:
        """Raise ParameterError if ``value`` cannot be sent as this kind."""
        if value is None:
            if self.required:
                raise ParameterError("required parameter is missing", program, self.identifier)
            if self.kind.is_scalar:
                raise ParameterError("value may not be None", program, self.identifier)
            return

        kind = self.kind
        if kind is ParamKind.BOOL:
            ok = isinstance(value, (bool, np.bool_))
        elif kind is ParamKind.INT:
            ok = isinstance(value, numbers.Integral) and not isinstance(value, (bool, np.bool_))
        elif kind is ParamKind.DOUBLE:
            ok = isinstance(value, numbers.Real) and not isinstance(value, (bool, np.bool_))
        elif kind is ParamKind.STRING:
            ok = isinstance(value, str)
        elif kind is ParamKind.VEC_INT:
            ok = _is_sequence(value) and all(
                isinstance(v, numbers.Integral) and not isinstance(v, bool) for v in value
            )
        elif kind is ParamKind.VEC_STRING:
            ok = _is_sequence(value) and all(isinstance(v, str) for v in value)
        elif kind is ParamKind.MODEL:
            from mlpack_bindings.bindings.models import check_handle

            check_handle(value, self.model_type, program=program, param=self.identifier)
            ok = True
        else:
            ok = not isinstance(value, (str, bytes, dict))

        if not ok:
            raise ParameterError(
                f"expected {kind.value}, got {type(value).__name__}", program, self.identifier
            )


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple, np.ndarray))


# =============================================================================
# FIELD DECLARATIONS
# =============================================================================


def param(
    kind: ParamKind,
    default: Any = None,
    doc: str = "",
    required: bool = False,
    identifier: Optional[str] = None,
    model_type: Optional[str] = None,
) -> Any:
    """Declare one input field of an options dataclass."""
    if kind is ParamKind.MODEL and not model_type:
        raise ValueError("model parameters need a model_type")
    if not kind.is_scalar and default is not None:
        raise ValueError(f"{kind.value} parameters cannot have a default value")

    metadata = {
        _METADATA_KEY: {
            "kind": kind,
            "doc": doc,
            "required": required,
            "identifier": identifier,
            "model_type": model_type,
            "is_output": False,
        }
    }
    return field(default=None if required else default, metadata=metadata)


def output(kind: ParamKind, doc: str = "", model_type: Optional[str] = None) -> Any:
    """Declare one output field of a result dataclass."""
    if kind is ParamKind.MODEL and not model_type:
        raise ValueError("model outputs need a model_type")
    metadata = {
        _METADATA_KEY: {
            "kind": kind,
            "doc": doc,
            "required": False,
            "identifier": None,
            "model_type": model_type,
            "is_output": True,
        }
    }
    return field(default=None, metadata=metadata)


@functools.lru_cache(maxsize=None)
def _collect_specs(cls: type) -> Tuple[ParamSpec, ...]:
    specs = []
    for f in dataclasses.fields(cls):
        meta = f.metadata.get(_METADATA_KEY)
        if meta is None:
            continue
        default = None if f.default is dataclasses.MISSING else f.default
        specs.append(ParamSpec(
            name=f.name,
            identifier=meta["identifier"] or f.name,
            kind=meta["kind"],
            default=default,
            doc=meta["doc"],
            required=meta["required"],
            model_type=meta["model_type"],
            is_output=meta["is_output"],
        ))
    return tuple(specs)


def _input_order(spec: ParamSpec) -> Tuple[bool, bool, str]:
    # copy_all_inputs must be set before any model input
    return (spec.identifier != COPY_ALL_INPUTS, not spec.required, spec.identifier)


def param_specs(cls: Type["BindingOptions"]) -> List[ParamSpec]:
    """
    Input specs of an options class in the order they are sent:
    ``copy_all_inputs``, then required inputs, then optional inputs, each
    group ordered by native name.
    """
    return sorted(_collect_specs(cls), key=_input_order)


def output_specs(cls: Type["BindingResult"]) -> List[ParamSpec]:
    """Output specs of a result class, ordered by native name."""
    return sorted(_collect_specs(cls), key=lambda s: s.identifier)


# =============================================================================
# OPTIONS / RESULT BASES
# =============================================================================


@dataclass
class BindingOptions:
    """Flags accepted by every program."""
    copy_all_inputs: bool = param(
        ParamKind.BOOL, False,
        "If specified, all input parameters will be deep copied before the method is run.",
    )
    verbose: bool = param(
        ParamKind.BOOL, False,
        "Display informational messages and the full list of parameters and timers at the end of execution.",
    )

    @classmethod
    def specs(cls) -> List[ParamSpec]:
        return param_specs(cls)

    @classmethod
    def resolve_name(cls, name: str) -> Optional[str]:
        """Map a field or native name to the field name, or None if unknown."""
        for spec in _collect_specs(cls):
            if name in (spec.name, spec.identifier):
                return spec.name
        return None

    def values(self) -> Dict[str, Any]:
        """Field values keyed by field name (no copies)."""
        return {spec.name: getattr(self, spec.name) for spec in _collect_specs(type(self))}


@dataclass
class BindingResult:
    """
    Base for per-program output records.

    Matrix and model outputs the program did not produce are None; scalar
    and vector outputs hold the registry value, whose zero value (0, 0.0,
    "", False, []) stands for "not set".
    """

    @classmethod
    def specs(cls) -> List[ParamSpec]:
        return output_specs(cls)

    def as_dict(self) -> Dict[str, Any]:
        return {spec.name: getattr(self, spec.name) for spec in _collect_specs(type(self))}
