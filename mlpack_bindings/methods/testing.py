"""
Binding Self-Test
=================

mlpack ships a small program whose only purpose is to exercise every
parameter kind of a binding layer. It is exposed here as ``test_binding``
(native entry point ``test_go_binding``).

``install_dry_run_handler`` registers a Python stand-in for the native
program on an InMemoryRegistry so the full round trip can run without the
native libraries:

    registry = InMemoryRegistry()
    install_dry_run_handler(registry)
    bridge = MLPackBridge(registry=registry)
    result = test_binding(4.0, 12, "hello", flag1=True, bridge=bridge)
    assert result.string_out == "hello2"
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional

import numpy as np

from mlpack_bindings.bindings.models import ModelHandle
from mlpack_bindings.bindings.params import (
    BindingOptions,
    BindingResult,
    DataWithInfo,
    ParamKind as Kind,
    output as out,
    param,
)
from mlpack_bindings.bindings.program import define_program
from mlpack_bindings.bindings.registry import InMemoryRegistry

logger = logging.getLogger(__name__)

FAMILY = "testing"
MODEL_TYPE = "GaussianKernel"


@dataclass
class TestBindingOptions(BindingOptions):
    __test__ = False

    double_in: Optional[float] = param(Kind.DOUBLE, doc="Input double, must be 4.0.", required=True)
    int_in: Optional[int] = param(Kind.INT, doc="Input int, must be 12.", required=True)
    string_in: Optional[str] = param(Kind.STRING, doc="Input string, must be 'hello'.", required=True)
    build_model: bool = param(Kind.BOOL, False, "If true, a model will be returned.")
    col_in: Optional[np.ndarray] = param(Kind.COL, doc="Input column.")
    flag1: bool = param(Kind.BOOL, False, "Input flag, must be specified.")
    flag2: bool = param(Kind.BOOL, False, "Input flag, must not be specified.")
    matrix_and_info_in: Optional[DataWithInfo] = param(Kind.MATRIX_WITH_INFO, doc="Input matrix and info.")
    matrix_in: Optional[np.ndarray] = param(Kind.MATRIX, doc="Input matrix.")
    model_in: Optional[ModelHandle] = param(Kind.MODEL, doc="Input model.", model_type=MODEL_TYPE)
    row_in: Optional[np.ndarray] = param(Kind.ROW, doc="Input row.")
    str_vector_in: Optional[List[str]] = param(Kind.VEC_STRING, doc="Input vector of strings.")
    ucol_in: Optional[np.ndarray] = param(Kind.UCOL, doc="Input unsigned column.")
    umatrix_in: Optional[np.ndarray] = param(Kind.UMATRIX, doc="Input unsigned matrix.")
    urow_in: Optional[np.ndarray] = param(Kind.UROW, doc="Input unsigned row.")
    vector_in: Optional[List[int]] = param(Kind.VEC_INT, doc="Input vector of numbers.")


@dataclass
class TestBindingResult(BindingResult):
    __test__ = False

    col_out: Optional[np.ndarray] = out(Kind.COL, "Output column. 2x input column")
    double_out: Optional[float] = out(Kind.DOUBLE, "Output double, will be 5.0.")
    int_out: Optional[int] = out(Kind.INT, "Output int, will be 13.")
    matrix_and_info_out: Optional[np.ndarray] = out(
        Kind.MATRIX, "Output matrix and info; all numeric elements multiplied by 3."
    )
    matrix_out: Optional[np.ndarray] = out(Kind.MATRIX, "Output matrix.")
    model_bw_out: Optional[float] = out(Kind.DOUBLE, "The bandwidth of the model.")
    model_out: Optional[ModelHandle] = out(Kind.MODEL, "Output model, with twice the bandwidth.", MODEL_TYPE)
    row_out: Optional[np.ndarray] = out(Kind.ROW, "Output row.  2x input row.")
    str_vector_out: Optional[List[str]] = out(Kind.VEC_STRING, "Output string vector.")
    string_out: Optional[str] = out(Kind.STRING, "Output string, will be 'hello2'.")
    ucol_out: Optional[np.ndarray] = out(Kind.UCOL, "Output unsigned column. 2x input column.")
    umatrix_out: Optional[np.ndarray] = out(Kind.UMATRIX, "Output unsigned matrix.")
    urow_out: Optional[np.ndarray] = out(Kind.UROW, "Output unsigned row.  2x input row.")
    vector_out: Optional[List[int]] = out(Kind.VEC_INT, "Output vector.")


TEST_BINDING = define_program(
    "test_binding", "Golang binding test", TestBindingOptions, TestBindingResult, FAMILY,
    "Exercise every parameter kind of the binding layer.",
    native_name="test_go_binding",
)


def test_binding(
    double_in: float,
    int_in: int,
    string_in: str,
    options: Optional[TestBindingOptions] = None,
    **overrides: Any,
) -> TestBindingResult:
    return TEST_BINDING.run(
        options, double_in=double_in, int_in=int_in, string_in=string_in, **overrides
    )


test_binding.__test__ = False


# =============================================================================
# DRY-RUN HANDLER
# =============================================================================


def _shed_and_double(data: np.ndarray) -> np.ndarray:
    # drop dimension 4, double dimension 2 (points are rows here)
    if data.shape[1] < 5:
        raise ValueError(f"test binding needs at least 5 dimensions, got {data.shape[1]}")
    result = np.delete(data, 4, axis=1)
    result[:, 2] *= 2
    return result


def dry_run_handler(registry: InMemoryRegistry) -> None:
    """Python rendition of mlpack's binding test program."""
    string_in = registry.get_string("string_in")
    int_in = registry.get_int("int_in")
    double_in = registry.get_double("double_in")

    string_out, int_out, double_out = "wrong", 11, 3.0
    if registry.has_param("flag1") and not registry.has_param("flag2"):
        if string_in == "hello":
            string_out = "hello2"
        if int_in == 12:
            int_out = 13
        if double_in == 4.0:
            double_out = 5.0
    registry.set_string("string_out", string_out)
    registry.set_int("int_out", int_out)
    registry.set_double("double_out", double_out)

    if registry.has_param("matrix_in"):
        registry.set_output_array(
            "matrix_out", _shed_and_double(registry.input_array("matrix_in")), Kind.MATRIX
        )
    if registry.has_param("umatrix_in"):
        registry.set_output_array(
            "umatrix_out", _shed_and_double(registry.input_array("umatrix_in")), Kind.UMATRIX
        )

    for src, dst, kind in (
        ("col_in", "col_out", Kind.COL),
        ("row_in", "row_out", Kind.ROW),
        ("ucol_in", "ucol_out", Kind.UCOL),
        ("urow_in", "urow_out", Kind.UROW),
    ):
        if registry.has_param(src):
            registry.set_output_array(dst, registry.input_array(src) * 2, kind)

    if registry.has_param("vector_in"):
        registry.set_vec_int("vector_out", registry.get_vec_int("vector_in")[:-1])
    if registry.has_param("str_vector_in"):
        registry.set_vec_string("str_vector_out", registry.get_vec_string("str_vector_in")[:-1])

    if registry.has_param("matrix_and_info_in"):
        native = registry.params["matrix_and_info_in"]
        data = registry.input_array("matrix_and_info_in")
        numeric = ~np.asarray(native.dimensions, dtype=bool)
        data[:, numeric] *= 3
        registry.set_output_array("matrix_and_info_out", data, Kind.MATRIX)

    if registry.has_param("build_model"):
        handle = registry.store_model(MODEL_TYPE, {"bandwidth": 10.0})
        registry.params["model_out"] = handle
    if registry.has_param("model_in"):
        payload = registry.model_payload(registry.params["model_in"]) or {}
        registry.set_double("model_bw_out", payload.get("bandwidth", 0.0) * 2)

    logger.debug("[dry_run] test binding handler finished")


def install_dry_run_handler(registry: InMemoryRegistry) -> None:
    registry.register_handler(TEST_BINDING.native_name, dry_run_handler)
