"""
Matrix Marshaling
=================

mlpack stores matrices in Armadillo's column-major layout with one data
point per column. numpy callers hold one point per row in C order. The two
layouts share the same memory: a C-contiguous ``(n_points, n_dims)`` array
is exactly the buffer of a column-major ``(n_dims, n_points)`` matrix, so
inputs are reinterpreted without copying and outputs are reshaped back.

Conversions:
    MATRIX / UMATRIX / MATRIX_WITH_INFO   (n_points, n_dims)  <->  n_dims x n_points
    ROW / UROW                            (n,)                <->  1 x n
    COL / UCOL                            (n,)                <->  n x 1
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import numpy as np

from mlpack_bindings.bindings.params import DataWithInfo, ParamKind
from mlpack_bindings.core.error_handling import ParameterError

logger = logging.getLogger(__name__)

# SIZE_MAX travels through the float64 buffer as 2**64, one past the uint64 range.
_UINT64_LIMIT = float(2 ** 64)
SIZE_MAX = np.iinfo(np.uint64).max


@dataclass
class NativeMatrix:
    """
    Wire form of a matrix: a flat float64 buffer in column-major order.

    ``dimensions`` holds one categorical flag per native row and is only set
    for MATRIX_WITH_INFO.
    """
    data: np.ndarray
    n_rows: int
    n_cols: int
    kind: ParamKind
    dimensions: Optional[np.ndarray] = None

    @property
    def n_elem(self) -> int:
        return self.n_rows * self.n_cols

    @property
    def is_empty(self) -> bool:
        return self.n_elem == 0


def _as_float_array(value: Any, kind: ParamKind, name: Optional[str]) -> np.ndarray:
    try:
        arr = np.asarray(value, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise ParameterError(f"cannot convert to a {kind.value}: {e}", param=name) from e
    # no-op for C-contiguous float64 input, so the caller's buffer is shared
    return np.ascontiguousarray(arr)


def _check_unsigned(arr: np.ndarray, kind: ParamKind, name: Optional[str]) -> None:
    if arr.size == 0:
        return
    if not np.all(np.isfinite(arr)):
        raise ParameterError(f"{kind.value} values must be finite", param=name)
    if np.any(arr < 0):
        raise ParameterError(f"{kind.value} values must be non-negative", param=name)
    if np.any(arr != np.floor(arr)):
        raise ParameterError(f"{kind.value} values must be integers", param=name)
    if np.any(arr >= _UINT64_LIMIT):
        raise ParameterError(f"{kind.value} values must be below 2**64", param=name)


def _to_unsigned(arr: np.ndarray) -> np.ndarray:
    if not np.all(np.isfinite(arr)) or np.any(arr < 0):
        raise ValueError("native unsigned buffer holds negative or non-finite values")
    saturated = arr >= _UINT64_LIMIT
    result = np.empty(arr.shape, dtype=np.uint64)
    result[~saturated] = np.rint(arr[~saturated]).astype(np.uint64)
    result[saturated] = SIZE_MAX
    return result


def to_native(
    value: Any, kind: ParamKind, name: Optional[str] = None, check_values: bool = True
) -> NativeMatrix:
    """
    Convert a caller array into its native column-major form.

    ``check_values=False`` skips the unsigned range checks, for buffers that
    stand in for native output (which may carry ``SIZE_MAX``).

    Raises:
        ParameterError: on wrong dimensionality, or invalid values for an
            unsigned kind.
    """
    if not kind.is_matrix:
        raise ValueError(f"{kind.value} is not a matrix kind")

    categorical = None
    if kind is ParamKind.MATRIX_WITH_INFO:
        if isinstance(value, DataWithInfo):
            categorical = value.categorical
            value = value.data
    elif isinstance(value, DataWithInfo):
        raise ParameterError(f"DataWithInfo cannot be passed as a {kind.value}", param=name)

    arr = _as_float_array(value, kind, name)

    if kind.is_two_dimensional:
        if arr.ndim != 2:
            raise ParameterError(
                f"expected a 2-D array (points x dimensions), got {arr.ndim}-D", param=name
            )
        n_points, n_dims = arr.shape
        n_rows, n_cols = n_dims, n_points
    else:
        if arr.ndim == 2 and 1 in arr.shape:
            arr = arr.reshape(-1)
        if arr.ndim != 1:
            raise ParameterError(
                f"expected a 1-D array for {kind.value}, got shape {arr.shape}", param=name
            )
        n = arr.shape[0]
        if kind in (ParamKind.ROW, ParamKind.UROW):
            n_rows, n_cols = 1, n
        else:
            n_rows, n_cols = n, 1

    if kind.is_unsigned and check_values:
        _check_unsigned(arr, kind, name)

    dimensions = None
    if kind is ParamKind.MATRIX_WITH_INFO:
        if categorical is None:
            dimensions = np.zeros(n_rows, dtype=np.bool_)
        else:
            dimensions = np.ascontiguousarray(categorical, dtype=np.bool_)
        if dimensions.shape[0] != n_rows:
            raise ParameterError(
                f"{dimensions.shape[0]} categorical flags for {n_rows} dimensions", param=name
            )

    return NativeMatrix(
        data=arr.reshape(-1),
        n_rows=n_rows,
        n_cols=n_cols,
        kind=kind,
        dimensions=dimensions,
    )


def from_native(native: NativeMatrix, kind: Optional[ParamKind] = None) -> np.ndarray:
    """
    Convert a native matrix back into an owned numpy array.

    Float kinds come back as float64, unsigned kinds as uint64 (mlpack's
    ``SIZE_MAX`` marker survives as ``np.iinfo(np.uint64).max``). 2-D kinds
    have shape ``(n_cols, n_rows)``, i.e. one point per row.

    Raises:
        ValueError: if an unsigned buffer holds negative or non-finite values.
    """
    kind = kind or native.kind
    n_elem = native.n_elem
    flat = np.asarray(native.data, dtype=np.float64).reshape(-1)
    if flat.shape[0] < n_elem:
        raise ValueError(
            f"native buffer holds {flat.shape[0]} values, shape needs {n_elem}"
        )

    # the native buffer is released on clear_settings
    arr = np.array(flat[:n_elem], dtype=np.float64, copy=True)

    if kind.is_two_dimensional:
        arr = arr.reshape(native.n_cols, native.n_rows)

    if kind.is_unsigned:
        arr = _to_unsigned(arr)

    return arr
